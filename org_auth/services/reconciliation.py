"""
Membership reconciliation

Repairs the user <-> organization links left inconsistent by a partial failure.
"""

import logging
from typing import Dict

from ..domain import MembershipPatch, UserFilter
from ..exceptions import DependencyError
from ..stores import CredentialStore, DjangoCredentialStore, DjangoOrganizationStore, OrganizationStore


logger = logging.getLogger(__name__)


class MembershipReconciler:
    """Makes every user's organization list agree with the member lists"""

    def __init__(self, credential_store: CredentialStore, organization_store: OrganizationStore):
        self.credential_store = credential_store
        self.organization_store = organization_store

    @classmethod
    def from_settings(cls) -> 'MembershipReconciler':
        return cls(
            credential_store=DjangoCredentialStore(),
            organization_store=DjangoOrganizationStore(),
        )

    def reconcile_organization(self, org_id: str) -> Dict[str, int]:
        """
        Reconcile one organization

        Returns:
            dict: counts of users ``linked`` and ``unlinked``
        """
        organization = self.organization_store.find_org_by_id(org_id)

        if organization is None:
            unlinked = self.credential_store.update_many_users(
                UserFilter(organization_id=org_id),
                MembershipPatch(remove=[org_id]),
            )
            if unlinked:
                logger.info(f"Retracted deleted organization {org_id} from {unlinked} users")
            return {'linked': 0, 'unlinked': unlinked}

        org_id = organization.id
        member_emails = {member.email for member in organization.members}
        linked = 0
        for email in member_emails:
            user = self.credential_store.find_user_by_email(email)
            if user is None or org_id in user.organizations:
                continue
            self.credential_store.update_user(user.id, MembershipPatch(add=[org_id]))
            linked += 1

        retract = MembershipPatch(remove=[org_id])
        unlinked = 0
        for user in self.credential_store.find_users(UserFilter(organization_id=org_id)):
            if user.email not in member_emails:
                self.credential_store.update_user(user.id, retract)
                unlinked += 1

        if linked or unlinked:
            logger.info(f"Reconciled organization {org_id}: linked={linked} unlinked={unlinked}")
        return {'linked': linked, 'unlinked': unlinked}

    def reconcile_all(self) -> Dict[str, int]:
        """
        Reconcile every organization

        A dependency failure on one organization is logged and counted, the
        sweep continues with the next one.
        """
        totals = {'organizations': 0, 'linked': 0, 'unlinked': 0, 'failed': 0}
        for org_id in self.organization_store.iter_org_ids():
            try:
                counts = self.reconcile_organization(org_id)
            except DependencyError as e:
                logger.error(f"Reconciliation of organization {org_id} failed: {e}")
                totals['failed'] += 1
                continue
            totals['organizations'] += 1
            totals['linked'] += counts['linked']
            totals['unlinked'] += counts['unlinked']

        logger.info(
            f"Membership reconciliation finished: {totals['organizations']} organizations, "
            f"linked={totals['linked']} unlinked={totals['unlinked']} failed={totals['failed']}"
        )
        return totals
