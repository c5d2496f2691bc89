"""
Access control engine: organizations, membership and roles
"""

import logging
from typing import Any, Dict, Optional, Tuple

from ..conf import auth_settings
from ..constants import (
    ROLE_ADMIN,
    ROLE_MEMBER,
    MEMBER_ROLES,
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    STEP_LINK_CREATOR,
    STEP_LINK_MEMBER,
    STEP_UNLINK_MEMBER,
    STEP_RETRACT_MEMBERSHIPS,
)
from ..domain import Member, MembershipPatch, Organization, OrgFilter, Page, UserFilter, UserRecord
from ..exceptions import (
    BadRequestError,
    DependencyError,
    ForbiddenError,
    NotFoundError,
    PartialFailureError,
    UnauthorizedError,
)
from ..stores import CredentialStore, DjangoCredentialStore, DjangoOrganizationStore, OrganizationStore


logger = logging.getLogger(__name__)

ORGANIZATION_NOT_FOUND = "Organization not found"
ADMIN_REQUIRED = "Only organization admins can perform this action"
PATCHABLE_FIELDS = ('name', 'description')


class AccessControlEngine:
    """
    Enforces membership and role rules for every organization operation

    Authorization runs in the same order everywhere:
      1. the acting user must exist (UnauthorizedError)
      2. non-members get NotFoundError so the organization stays hidden
      3. members without the admin role get ForbiddenError on admin operations
    """

    def __init__(
        self,
        credential_store: CredentialStore,
        organization_store: OrganizationStore,
        default_page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self.credential_store = credential_store
        self.organization_store = organization_store
        self.default_page_size = default_page_size

    @classmethod
    def from_settings(cls, credential_store=None, organization_store=None) -> 'AccessControlEngine':
        return cls(
            credential_store=credential_store or DjangoCredentialStore(),
            organization_store=organization_store or DjangoOrganizationStore(),
            default_page_size=int(auth_settings.DEFAULT_PAGE_SIZE),
        )

    # Organizations

    def create_organization(self, user_id: str, name: str, description: Optional[str] = None) -> str:
        """
        Create an organization with the acting user as its sole admin

        Raises:
            PartialFailureError: organization created but not linked to the creator
        """
        user = self._acting_user(user_id)
        name = self._clean_name(name)

        org_id = self.organization_store.create_org(Organization(
            id=None,
            name=name,
            created_by=user.id,
            description=description,
            members=[Member(name=user.name, email=user.email, role=ROLE_ADMIN)],
        ))

        self._link(user.id, org_id, STEP_LINK_CREATOR)

        logger.info(f"Organization created: {org_id} by user {user.id}")
        return org_id

    def list_organizations(
        self,
        user_id: str,
        page: int = DEFAULT_PAGE,
        limit: Optional[int] = None,
        search_term: Optional[str] = None,
    ) -> Page[Organization]:
        """Organizations the acting user is a member of, optionally filtered by name"""
        user = self._acting_user(user_id)
        page, limit = self._paging(page, limit)

        org_filter = OrgFilter(member_email=user.email, name_contains=search_term or None)
        total = self.organization_store.count_orgs(org_filter)
        items = self.organization_store.find_orgs(org_filter, skip=(page - 1) * limit, limit=limit)

        return Page(items=items, page=page, limit=limit, total=total)

    def get_organization(self, org_id: str, user_id: str) -> Organization:
        user = self._acting_user(user_id)
        return self._require_member(org_id, user)

    def update_organization(self, org_id: str, user_id: str, patch: Dict[str, Any]) -> Organization:
        """
        Apply a partial update of name and/or description

        Raises:
            BadRequestError: empty patch, unsupported keys, or an empty name
            ConflictError: the organization changed since it was read
        """
        patch = self._clean_patch(patch)
        user = self._acting_user(user_id)
        organization = self._require_admin(org_id, user)

        updated = self.organization_store.update_org(
            organization.id,
            patch,
            expected_version=organization.version,
        )

        logger.info(f"Organization updated: {organization.id} by user {user.id} fields={sorted(patch)}")
        return updated

    def delete_organization(self, org_id: str, user_id: str) -> None:
        """
        Delete the organization and retract its id from every user

        Raises:
            PartialFailureError: organization deleted but some users still list it
        """
        user = self._acting_user(user_id)
        organization = self._require_admin(org_id, user)

        if not self.organization_store.delete_org(organization.id):
            raise NotFoundError(ORGANIZATION_NOT_FOUND)

        try:
            retracted = self.credential_store.update_many_users(
                UserFilter(organization_id=organization.id),
                MembershipPatch(remove=[organization.id]),
            )
        except DependencyError as e:
            logger.error(
                f"Organization {organization.id} deleted but memberships not retracted: "
                f"step={STEP_RETRACT_MEMBERSHIPS}"
            )
            raise PartialFailureError(
                "Organization deleted, membership cleanup is pending",
                step=STEP_RETRACT_MEMBERSHIPS,
                detail={'organization_id': organization.id},
            ) from e

        logger.info(f"Organization deleted: {organization.id} by user {user.id}, {retracted} users unlinked")

    # Members

    def invite_member(self, org_id: str, inviter_id: str, target_email: str) -> Organization:
        """
        Add an existing account to the organization with the member role

        Raises:
            NotFoundError: no account with ``target_email``
            ConflictError: already a member
            PartialFailureError: member added but not linked to the user
        """
        inviter = self._acting_user(inviter_id)
        organization = self._require_admin(org_id, inviter)

        target = self.credential_store.find_user_by_email(target_email)
        if target is None:
            raise NotFoundError("User not found")

        members = organization.with_member_added(
            Member(name=target.name, email=target.email, role=ROLE_MEMBER)
        )
        updated = self.organization_store.update_org(
            organization.id,
            {'members': members},
            expected_version=organization.version,
        )

        self._link(target.id, organization.id, STEP_LINK_MEMBER)

        logger.info(f"Member invited: user {target.id} to {organization.id} by user {inviter.id}")
        return updated

    def list_members(
        self,
        org_id: str,
        user_id: str,
        page: int = DEFAULT_PAGE,
        limit: Optional[int] = None,
    ) -> Page[Member]:
        """Members in insertion order; any member may list them"""
        user = self._acting_user(user_id)
        organization = self._require_member(org_id, user)
        page, limit = self._paging(page, limit)

        skip = (page - 1) * limit
        return Page(
            items=organization.members[skip:skip + limit],
            page=page,
            limit=limit,
            total=len(organization.members),
        )

    def remove_member(self, org_id: str, admin_id: str, target_email: str) -> Organization:
        """
        Remove a member and retract the organization from their user record

        Raises:
            NotFoundError: target is not a member
            BadRequestError: target is the last admin
            PartialFailureError: member removed but the user still lists the organization
        """
        admin = self._acting_user(admin_id)
        organization = self._require_admin(org_id, admin)

        members = organization.with_member_removed(target_email)
        updated = self.organization_store.update_org(
            organization.id,
            {'members': members},
            expected_version=organization.version,
        )

        try:
            self.credential_store.update_many_users(
                UserFilter(email=target_email),
                MembershipPatch(remove=[organization.id]),
            )
        except DependencyError as e:
            logger.error(
                f"Member removed from {organization.id} but not unlinked: "
                f"step={STEP_UNLINK_MEMBER}"
            )
            raise PartialFailureError(
                "Member removed, membership cleanup is pending",
                step=STEP_UNLINK_MEMBER,
                detail={'organization_id': organization.id, 'email': target_email},
            ) from e

        logger.info(f"Member removed from {organization.id} by user {admin.id}")
        return updated

    def change_role(self, org_id: str, admin_id: str, target_email: str, new_role: str) -> Member:
        """
        Change a member's role

        Raises:
            BadRequestError: unknown role, own role, or demoting the last admin
            NotFoundError: target is not a member
        """
        admin = self._acting_user(admin_id)
        organization = self._require_admin(org_id, admin)

        if new_role not in MEMBER_ROLES:
            raise BadRequestError("Invalid role specified")
        if target_email == admin.email:
            raise BadRequestError("You cannot change your own role")

        members = organization.with_role_changed(target_email, new_role)
        updated = self.organization_store.update_org(
            organization.id,
            {'members': members},
            expected_version=organization.version,
        )

        logger.info(f"Role changed in {organization.id} to {new_role} by user {admin.id}")
        return updated.find_member(target_email)

    # Authorization

    def _acting_user(self, user_id: str) -> UserRecord:
        user = self.credential_store.find_user_by_id(user_id) if user_id else None
        if user is None:
            logger.warning(f"Rejected request from unknown user {user_id}")
            raise UnauthorizedError("User not found")
        return user

    def _require_member(self, org_id: str, user: UserRecord) -> Organization:
        organization = self.organization_store.find_org_by_id(org_id)
        if organization is None or not organization.is_member(user.email):
            raise NotFoundError(ORGANIZATION_NOT_FOUND)
        return organization

    def _require_admin(self, org_id: str, user: UserRecord) -> Organization:
        organization = self._require_member(org_id, user)
        if not organization.is_admin(user.email):
            logger.warning(f"User {user.id} is not an admin of {organization.id}")
            raise ForbiddenError(ADMIN_REQUIRED)
        return organization

    # Helpers

    def _link(self, user_id: str, org_id: str, step: str) -> None:
        try:
            linked = self.credential_store.update_user(user_id, MembershipPatch(add=[org_id]))
        except DependencyError as e:
            logger.error(f"Organization {org_id} not linked to user {user_id}: step={step}")
            raise PartialFailureError(
                "Membership was not fully recorded",
                step=step,
                detail={'organization_id': org_id, 'user_id': user_id},
            ) from e

        if not linked:
            logger.warning(f"User {user_id} vanished before organization {org_id} was linked")

    def _paging(self, page, limit) -> Tuple[int, int]:
        if limit is None:
            limit = self.default_page_size
        for label, value in (('page', page), ('limit', limit)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise BadRequestError(f"{label} must be a positive integer")
        return page, limit

    @staticmethod
    def _clean_name(name) -> str:
        if not isinstance(name, str) or not name.strip():
            raise BadRequestError("Organization name is required")
        return name.strip()

    def _clean_patch(self, patch) -> Dict[str, Any]:
        if not isinstance(patch, dict) or not patch:
            raise BadRequestError("No fields to update")

        unknown = sorted(set(patch) - set(PATCHABLE_FIELDS))
        if unknown:
            raise BadRequestError(f"Unsupported fields: {', '.join(unknown)}")

        cleaned = {}
        if 'name' in patch:
            cleaned['name'] = self._clean_name(patch['name'])
        if 'description' in patch:
            description = patch['description']
            if description is not None and not isinstance(description, str):
                raise BadRequestError("Description must be a string")
            cleaned['description'] = description
        return cleaned
