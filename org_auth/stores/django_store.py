"""
Credential and organization stores backed by the Django ORM
"""

import logging
from typing import Any, Dict, Iterator, List, Optional

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from .base import CredentialStore, OrganizationStore, dependency_errors, retry_read
from ..domain import MembershipPatch, Organization, OrgFilter, UserFilter, UserRecord
from ..exceptions import ConflictError, NotFoundError, StaleWriteError
from ..models import (
    Organization as OrganizationModel,
    OrganizationMember,
    User,
    UserOrganization,
)
from ..models.base import coerce_uuid


logger = logging.getLogger(__name__)

CREDENTIAL_STORE = 'Credential store'
ORGANIZATION_STORE = 'Organization store'


class DjangoCredentialStore(CredentialStore):
    """Users in ``org_auth_user``, memberships in ``org_auth_user_organization``"""

    def _users(self):
        return User.objects.prefetch_related('organization_links')

    def _filtered(self, user_filter: UserFilter):
        queryset = User.objects.all()
        if user_filter.organization_id is not None:
            org_pk = coerce_uuid(user_filter.organization_id)
            if org_pk is None:
                return User.objects.none()
            queryset = queryset.filter(organization_links__organization_id=org_pk)
        if user_filter.email is not None:
            queryset = queryset.filter(email=user_filter.email)
        return queryset.distinct()

    @retry_read
    def find_user_by_id(self, user_id: str) -> Optional[UserRecord]:
        pk = coerce_uuid(user_id)
        if pk is None:
            return None
        with dependency_errors(CREDENTIAL_STORE, DatabaseError):
            user = self._users().filter(pk=pk).first()
            return user.to_record() if user else None

    @retry_read
    def find_user_by_email(self, email: str) -> Optional[UserRecord]:
        with dependency_errors(CREDENTIAL_STORE, DatabaseError):
            user = self._users().filter(email=email).first()
            return user.to_record() if user else None

    @retry_read
    def find_users(self, user_filter: UserFilter) -> List[UserRecord]:
        with dependency_errors(CREDENTIAL_STORE, DatabaseError):
            users = self._filtered(user_filter).prefetch_related('organization_links')
            return [user.to_record() for user in users]

    def create_user(self, record: UserRecord) -> str:
        with dependency_errors(CREDENTIAL_STORE, DatabaseError):
            try:
                with transaction.atomic():
                    user = User.objects.create(
                        name=record.name,
                        email=record.email,
                        password_hash=record.password_hash,
                    )
                    self._apply_patch([user.pk], MembershipPatch(add=list(record.organizations)))
            except IntegrityError:
                raise ConflictError("Email already exists")
        return str(user.pk)

    def update_user(self, user_id: str, patch: MembershipPatch) -> bool:
        pk = coerce_uuid(user_id)
        if pk is None:
            return False
        with dependency_errors(CREDENTIAL_STORE, DatabaseError):
            with transaction.atomic():
                if not User.objects.filter(pk=pk).exists():
                    return False
                self._apply_patch([pk], patch)
        return True

    def update_many_users(self, user_filter: UserFilter, patch: MembershipPatch) -> int:
        if user_filter.organization_id is None and user_filter.email is None:
            raise ValueError("update_many_users needs at least one filter criterion")
        with dependency_errors(CREDENTIAL_STORE, DatabaseError):
            with transaction.atomic():
                user_ids = list(self._filtered(user_filter).values_list('pk', flat=True))
                self._apply_patch(user_ids, patch)
        return len(user_ids)

    def _apply_patch(self, user_ids, patch: MembershipPatch):
        """Ordered-set semantics: adding a present id or removing an absent one is a no-op"""
        for org_id in patch.add:
            org_pk = coerce_uuid(org_id)
            if org_pk is None:
                continue
            for user_id in user_ids:
                UserOrganization.objects.get_or_create(user_id=user_id, organization_id=org_pk)

        remove = [pk for pk in (coerce_uuid(org_id) for org_id in patch.remove) if pk is not None]
        if remove and user_ids:
            UserOrganization.objects.filter(
                user_id__in=user_ids,
                organization_id__in=remove
            ).delete()


class DjangoOrganizationStore(OrganizationStore):
    """Organizations in ``org_auth_organization`` with ordered member rows"""

    def _filtered(self, org_filter: OrgFilter):
        queryset = OrganizationModel.objects.all()
        if org_filter.member_email is not None:
            queryset = queryset.filter(members__email=org_filter.member_email)
        if org_filter.name_contains:
            queryset = queryset.filter(name__icontains=org_filter.name_contains)
        return queryset.distinct()

    @retry_read
    def find_org_by_id(self, org_id: str) -> Optional[Organization]:
        pk = coerce_uuid(org_id)
        if pk is None:
            return None
        with dependency_errors(ORGANIZATION_STORE, DatabaseError):
            organization = OrganizationModel.objects.prefetch_related('members').filter(pk=pk).first()
            return organization.to_record() if organization else None

    @retry_read
    def find_orgs(self, org_filter: OrgFilter, skip: int, limit: int) -> List[Organization]:
        with dependency_errors(ORGANIZATION_STORE, DatabaseError):
            organizations = self._filtered(org_filter).prefetch_related('members')[skip:skip + limit]
            return [organization.to_record() for organization in organizations]

    @retry_read
    def count_orgs(self, org_filter: OrgFilter) -> int:
        with dependency_errors(ORGANIZATION_STORE, DatabaseError):
            return self._filtered(org_filter).count()

    def iter_org_ids(self) -> Iterator[str]:
        with dependency_errors(ORGANIZATION_STORE, DatabaseError):
            org_ids = list(OrganizationModel.objects.values_list('pk', flat=True))
        return (str(pk) for pk in org_ids)

    def create_org(self, record: Organization) -> str:
        with dependency_errors(ORGANIZATION_STORE, DatabaseError):
            with transaction.atomic():
                organization = OrganizationModel.objects.create(
                    name=record.name,
                    description=record.description,
                    created_by=coerce_uuid(record.created_by),
                )
                self._write_members(organization.pk, record.members)
        return str(organization.pk)

    def update_org(
        self,
        org_id: str,
        patch: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> Organization:
        unknown = set(patch) - set(self.UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unsupported organization fields: {sorted(unknown)}")

        pk = coerce_uuid(org_id)
        if pk is None:
            raise NotFoundError("Organization not found")

        fields = {name: patch[name] for name in ('name', 'description') if name in patch}

        with dependency_errors(ORGANIZATION_STORE, DatabaseError):
            with transaction.atomic():
                queryset = OrganizationModel.objects.filter(pk=pk)
                if expected_version is not None:
                    queryset = queryset.filter(version=expected_version)

                updated = queryset.update(
                    version=F('version') + 1,
                    updated_at=timezone.now(),
                    **fields
                )
                if not updated:
                    if OrganizationModel.objects.filter(pk=pk).exists():
                        raise StaleWriteError(
                            "Organization was modified concurrently, retry the request"
                        )
                    raise NotFoundError("Organization not found")

                if 'members' in patch:
                    OrganizationMember.objects.filter(organization_id=pk).delete()
                    self._write_members(pk, patch['members'])

                organization = OrganizationModel.objects.prefetch_related('members').get(pk=pk)
                return organization.to_record()

    def delete_org(self, org_id: str) -> bool:
        pk = coerce_uuid(org_id)
        if pk is None:
            return False
        with dependency_errors(ORGANIZATION_STORE, DatabaseError):
            deleted, _ = OrganizationModel.objects.filter(pk=pk).delete()
        return deleted > 0

    def _write_members(self, org_pk, members):
        OrganizationMember.objects.bulk_create([
            OrganizationMember(
                organization_id=org_pk,
                name=member.name,
                email=member.email,
                role=member.role,
                position=position,
            )
            for position, member in enumerate(members)
        ])
