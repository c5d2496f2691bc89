"""
Tests for membership reconciliation, its Celery task and management command
"""

import uuid
from io import StringIO
from unittest import mock

from django.test import TestCase
from django.core.management import call_command

from ..domain import Member, MembershipPatch, Organization, UserRecord
from ..exceptions import DependencyError
from ..services import MembershipReconciler
from ..stores import DjangoCredentialStore, DjangoOrganizationStore
from ..tasks import reconcile_memberships


class ReconciliationTestCase(TestCase):

    def setUp(self):
        self.credential_store = DjangoCredentialStore()
        self.organization_store = DjangoOrganizationStore()
        self.reconciler = MembershipReconciler(self.credential_store, self.organization_store)

        self.alice = self.create_user('Alice', 'alice@example.com')
        self.bob = self.create_user('Bob', 'bob@example.com')

        # Alice is an admin but was never linked (failed link_creator)
        self.org_id = self.organization_store.create_org(Organization(
            id=None,
            name='Acme',
            created_by=self.alice,
            members=[Member(name='Alice', email='alice@example.com', role='admin')],
        ))
        # Bob still lists the organization (failed unlink_member)
        self.credential_store.update_user(self.bob, MembershipPatch(add=[self.org_id]))

    def create_user(self, name, email):
        return self.credential_store.create_user(
            UserRecord(id=None, name=name, email=email, password_hash='unused')
        )

    def organizations_of(self, user_id):
        return self.credential_store.find_user_by_id(user_id).organizations


class MembershipReconcilerTest(ReconciliationTestCase):

    def test_links_members_and_unlinks_strays(self):
        counts = self.reconciler.reconcile_organization(self.org_id)

        self.assertEqual(counts, {'linked': 1, 'unlinked': 1})
        self.assertEqual(self.organizations_of(self.alice), [self.org_id])
        self.assertEqual(self.organizations_of(self.bob), [])

    def test_second_run_is_noop(self):
        self.reconciler.reconcile_organization(self.org_id)
        self.assertEqual(self.reconciler.reconcile_organization(self.org_id), {'linked': 0, 'unlinked': 0})

    def test_deleted_organization_is_retracted(self):
        self.organization_store.delete_org(self.org_id)

        counts = self.reconciler.reconcile_organization(self.org_id)

        self.assertEqual(counts, {'linked': 0, 'unlinked': 1})
        self.assertEqual(self.organizations_of(self.bob), [])

    def test_reconcile_all(self):
        totals = self.reconciler.reconcile_all()

        self.assertEqual(totals, {'organizations': 1, 'linked': 1, 'unlinked': 1, 'failed': 0})

    def test_reconcile_all_continues_after_failure(self):
        with mock.patch.object(self.reconciler, 'reconcile_organization', side_effect=DependencyError("down")):
            totals = self.reconciler.reconcile_all()

        self.assertEqual(totals['failed'], 1)
        self.assertEqual(totals['organizations'], 0)


class ReconcileTaskTest(ReconciliationTestCase):

    def test_task_single_organization(self):
        self.assertEqual(reconcile_memberships(self.org_id), {'linked': 1, 'unlinked': 1})

    def test_task_all_organizations(self):
        self.assertEqual(reconcile_memberships()['organizations'], 1)


class ReconcileCommandTest(ReconciliationTestCase):

    def test_command_all(self):
        out = StringIO()
        call_command('reconcile_memberships', stdout=out)

        self.assertIn('Reconciled 1 organizations', out.getvalue())
        self.assertEqual(self.organizations_of(self.alice), [self.org_id])

    def test_command_single(self):
        out = StringIO()
        call_command('reconcile_memberships', org_id=self.org_id, stdout=out)

        self.assertIn('linked=1 unlinked=1', out.getvalue())

    def test_command_unknown_org(self):
        out = StringIO()
        call_command('reconcile_memberships', org_id=str(uuid.uuid4()), stdout=out)

        self.assertIn('linked=0 unlinked=0', out.getvalue())
