"""
Tests for the access control engine
"""

import uuid
from unittest import mock

from django.test import TestCase

from ..constants import (
    ROLE_ADMIN,
    ROLE_MEMBER,
    STEP_LINK_CREATOR,
    STEP_LINK_MEMBER,
    STEP_RETRACT_MEMBERSHIPS,
    STEP_UNLINK_MEMBER,
)
from ..domain import UserRecord
from ..exceptions import (
    BadRequestError,
    ConflictError,
    DependencyError,
    ForbiddenError,
    NotFoundError,
    PartialFailureError,
    StaleWriteError,
    UnauthorizedError,
)
from ..models import Organization as OrganizationModel
from ..services import AccessControlEngine
from ..stores import DjangoCredentialStore, DjangoOrganizationStore


class AccessControlTestCase(TestCase):

    def setUp(self):
        self.credential_store = DjangoCredentialStore()
        self.organization_store = DjangoOrganizationStore()
        self.engine = AccessControlEngine(self.credential_store, self.organization_store)

        self.alice = self.create_user('Alice', 'alice@example.com')
        self.bob = self.create_user('Bob', 'bob@example.com')
        self.carol = self.create_user('Carol', 'carol@example.com')

    def create_user(self, name, email):
        return self.credential_store.create_user(
            UserRecord(id=None, name=name, email=email, password_hash='unused')
        )

    def organizations_of(self, user_id):
        return self.credential_store.find_user_by_id(user_id).organizations

    def assert_admin_floor(self, org_id):
        organization = self.organization_store.find_org_by_id(org_id)
        self.assertGreaterEqual(organization.admin_count, 1)


class CreateOrganizationTest(AccessControlTestCase):

    def test_creator_is_sole_admin(self):
        org_id = self.engine.create_organization(self.alice, 'Acme', 'Rockets')
        organization = self.organization_store.find_org_by_id(org_id)

        self.assertEqual(organization.name, 'Acme')
        self.assertEqual(organization.description, 'Rockets')
        self.assertEqual(organization.created_by, self.alice)
        self.assertEqual(len(organization.members), 1)
        self.assertEqual(organization.members[0].email, 'alice@example.com')
        self.assertEqual(organization.members[0].role, ROLE_ADMIN)
        self.assertEqual(organization.version, 1)

    def test_creator_is_linked(self):
        org_id = self.engine.create_organization(self.alice, 'Acme')
        self.assertEqual(self.organizations_of(self.alice), [org_id])

    def test_unknown_user(self):
        with self.assertRaises(UnauthorizedError):
            self.engine.create_organization(str(uuid.uuid4()), 'Acme')
        self.assertFalse(OrganizationModel.objects.exists())

    def test_empty_name(self):
        with self.assertRaises(BadRequestError):
            self.engine.create_organization(self.alice, '   ')

    def test_link_failure_is_partial(self):
        with mock.patch.object(self.credential_store, 'update_user', side_effect=DependencyError("down")):
            with self.assertRaises(PartialFailureError) as ctx:
                self.engine.create_organization(self.alice, 'Acme')

        self.assertEqual(ctx.exception.step, STEP_LINK_CREATOR)
        org_id = ctx.exception.detail['organization_id']
        self.assertIsNotNone(self.organization_store.find_org_by_id(org_id))
        self.assertEqual(self.organizations_of(self.alice), [])


class ListOrganizationsTest(AccessControlTestCase):

    def test_fifteen_organizations_paginate(self):
        for i in range(15):
            self.engine.create_organization(self.alice, f'Org {i}')

        first = self.engine.list_organizations(self.alice, page=1, limit=10)
        second = self.engine.list_organizations(self.alice, page=2, limit=10)

        self.assertEqual(len(first.items), 10)
        self.assertEqual(len(second.items), 5)
        self.assertEqual(first.total, 15)
        self.assertEqual(second.total, 15)
        self.assertEqual(first.total_pages, 2)
        self.assertFalse({o.id for o in first.items} & {o.id for o in second.items})

    def test_default_paging(self):
        self.engine.create_organization(self.alice, 'Acme')
        page = self.engine.list_organizations(self.alice)

        self.assertEqual(page.page, 1)
        self.assertEqual(page.limit, 10)

    def test_only_member_organizations(self):
        acme = self.engine.create_organization(self.alice, 'Acme')
        self.engine.create_organization(self.bob, 'Globex')

        page = self.engine.list_organizations(self.alice)

        self.assertEqual([o.id for o in page.items], [acme])
        self.assertEqual(page.total, 1)

    def test_search_is_case_insensitive_substring(self):
        self.engine.create_organization(self.alice, 'Acme Rockets')
        self.engine.create_organization(self.alice, 'Globex')

        page = self.engine.list_organizations(self.alice, search_term='ROCK')

        self.assertEqual([o.name for o in page.items], ['Acme Rockets'])

    def test_invalid_paging(self):
        for page, limit in [(0, 10), (1, 0), (-1, 10), ('2', 10), (1, 2.5), (True, 10)]:
            with self.subTest(page=page, limit=limit):
                with self.assertRaises(BadRequestError):
                    self.engine.list_organizations(self.alice, page=page, limit=limit)

    def test_unknown_user_checked_before_paging(self):
        with self.assertRaises(UnauthorizedError):
            self.engine.list_organizations('not-a-user', page=0)


class GetOrganizationTest(AccessControlTestCase):

    def setUp(self):
        super().setUp()
        self.org_id = self.engine.create_organization(self.alice, 'Acme')

    def test_member_can_read(self):
        self.assertEqual(self.engine.get_organization(self.org_id, self.alice).name, 'Acme')

    def test_non_member_gets_not_found(self):
        with self.assertRaises(NotFoundError):
            self.engine.get_organization(self.org_id, self.bob)

    def test_missing_and_malformed_ids(self):
        for org_id in [str(uuid.uuid4()), 'not-a-uuid']:
            with self.assertRaises(NotFoundError):
                self.engine.get_organization(org_id, self.alice)

    def test_unknown_user(self):
        with self.assertRaises(UnauthorizedError):
            self.engine.get_organization(self.org_id, 'not-a-user')


class UpdateOrganizationTest(AccessControlTestCase):

    def setUp(self):
        super().setUp()
        self.org_id = self.engine.create_organization(self.alice, 'Acme')
        self.engine.invite_member(self.org_id, self.alice, 'bob@example.com')

    def test_admin_updates(self):
        before = self.organization_store.find_org_by_id(self.org_id)
        updated = self.engine.update_organization(self.org_id, self.alice, {'name': 'Acme Corp', 'description': 'New'})

        self.assertEqual(updated.name, 'Acme Corp')
        self.assertEqual(updated.description, 'New')
        self.assertEqual(updated.version, before.version + 1)
        self.assertEqual(updated.members, before.members)

    def test_partial_patch(self):
        updated = self.engine.update_organization(self.org_id, self.alice, {'description': 'Only this'})
        self.assertEqual(updated.name, 'Acme')
        self.assertEqual(updated.description, 'Only this')

    def test_member_forbidden(self):
        with self.assertRaises(ForbiddenError):
            self.engine.update_organization(self.org_id, self.bob, {'name': 'Bob Corp'})

    def test_non_member_not_found(self):
        with self.assertRaises(NotFoundError):
            self.engine.update_organization(self.org_id, self.carol, {'name': 'Carol Corp'})

    def test_invalid_patches(self):
        for patch in [{}, {'members': []}, {'name': ''}, {'name': 'Ok', 'created_by': 'x'}, {'description': 5}]:
            with self.subTest(patch=patch):
                with self.assertRaises(BadRequestError):
                    self.engine.update_organization(self.org_id, self.alice, patch)

    def test_stale_write_conflicts(self):
        stale = self.organization_store.find_org_by_id(self.org_id)
        self.organization_store.update_org(self.org_id, {'name': 'Changed elsewhere'})

        with mock.patch.object(self.organization_store, 'find_org_by_id', return_value=stale):
            with self.assertRaises(ConflictError):
                self.engine.update_organization(self.org_id, self.alice, {'name': 'Mine'})

        self.assertEqual(self.organization_store.find_org_by_id(self.org_id).name, 'Changed elsewhere')


class DeleteOrganizationTest(AccessControlTestCase):

    def setUp(self):
        super().setUp()
        self.org_id = self.engine.create_organization(self.alice, 'Acme')
        self.engine.invite_member(self.org_id, self.alice, 'bob@example.com')
        self.other_org = self.engine.create_organization(self.bob, 'Globex')

    def test_delete_retracts_memberships(self):
        self.engine.delete_organization(self.org_id, self.alice)

        self.assertIsNone(self.organization_store.find_org_by_id(self.org_id))
        self.assertEqual(self.organizations_of(self.alice), [])
        self.assertEqual(self.organizations_of(self.bob), [self.other_org])

    def test_member_forbidden(self):
        with self.assertRaises(ForbiddenError):
            self.engine.delete_organization(self.org_id, self.bob)
        self.assertIsNotNone(self.organization_store.find_org_by_id(self.org_id))

    def test_retract_failure_is_partial(self):
        with mock.patch.object(self.credential_store, 'update_many_users', side_effect=DependencyError("down")):
            with self.assertRaises(PartialFailureError) as ctx:
                self.engine.delete_organization(self.org_id, self.alice)

        self.assertEqual(ctx.exception.step, STEP_RETRACT_MEMBERSHIPS)
        self.assertEqual(ctx.exception.detail, {'organization_id': self.org_id})
        self.assertIsNone(self.organization_store.find_org_by_id(self.org_id))

    def test_delete_twice(self):
        self.engine.delete_organization(self.org_id, self.alice)
        with self.assertRaises(NotFoundError):
            self.engine.delete_organization(self.org_id, self.alice)


class InviteMemberTest(AccessControlTestCase):

    def setUp(self):
        super().setUp()
        self.org_id = self.engine.create_organization(self.alice, 'Acme')

    def test_invite_appends_member_and_links(self):
        organization = self.engine.invite_member(self.org_id, self.alice, 'bob@example.com')

        self.assertEqual([m.email for m in organization.members], ['alice@example.com', 'bob@example.com'])
        self.assertEqual(organization.find_member('bob@example.com').role, ROLE_MEMBER)
        self.assertEqual(self.organizations_of(self.bob), [self.org_id])
        self.assert_admin_floor(self.org_id)

    def test_invite_unknown_account(self):
        with self.assertRaises(NotFoundError):
            self.engine.invite_member(self.org_id, self.alice, 'nobody@example.com')

    def test_invite_existing_member(self):
        self.engine.invite_member(self.org_id, self.alice, 'bob@example.com')
        with self.assertRaises(ConflictError):
            self.engine.invite_member(self.org_id, self.alice, 'bob@example.com')

        members = self.organization_store.find_org_by_id(self.org_id).members
        self.assertEqual([m.email for m in members].count('bob@example.com'), 1)

    def test_member_cannot_invite(self):
        self.engine.invite_member(self.org_id, self.alice, 'bob@example.com')
        with self.assertRaises(ForbiddenError):
            self.engine.invite_member(self.org_id, self.bob, 'carol@example.com')

    def test_non_member_cannot_invite(self):
        with self.assertRaises(NotFoundError):
            self.engine.invite_member(self.org_id, self.carol, 'bob@example.com')

    def test_link_failure_is_partial(self):
        with mock.patch.object(self.credential_store, 'update_user', side_effect=DependencyError("down")):
            with self.assertRaises(PartialFailureError) as ctx:
                self.engine.invite_member(self.org_id, self.alice, 'bob@example.com')

        self.assertEqual(ctx.exception.step, STEP_LINK_MEMBER)
        self.assertTrue(self.organization_store.find_org_by_id(self.org_id).is_member('bob@example.com'))
        self.assertEqual(self.organizations_of(self.bob), [])


class ListMembersTest(AccessControlTestCase):

    def setUp(self):
        super().setUp()
        self.org_id = self.engine.create_organization(self.alice, 'Acme')
        self.engine.invite_member(self.org_id, self.alice, 'carol@example.com')
        self.engine.invite_member(self.org_id, self.alice, 'bob@example.com')

    def test_insertion_order(self):
        page = self.engine.list_members(self.org_id, self.bob)

        self.assertEqual(
            [m.email for m in page.items],
            ['alice@example.com', 'carol@example.com', 'bob@example.com']
        )
        self.assertEqual(page.total, 3)

    def test_pagination(self):
        page = self.engine.list_members(self.org_id, self.alice, page=2, limit=2)

        self.assertEqual([m.email for m in page.items], ['bob@example.com'])
        self.assertEqual(page.total_pages, 2)

    def test_non_member(self):
        outsider = self.create_user('Dave', 'dave@example.com')
        with self.assertRaises(NotFoundError):
            self.engine.list_members(self.org_id, outsider)

    def test_invalid_paging(self):
        with self.assertRaises(BadRequestError):
            self.engine.list_members(self.org_id, self.alice, page=0)

    def test_unknown_user_checked_before_paging(self):
        with self.assertRaises(UnauthorizedError):
            self.engine.list_members(self.org_id, 'not-a-user', page=0)

    def test_non_member_checked_before_paging(self):
        outsider = self.create_user('Dave', 'dave@example.com')
        with self.assertRaises(NotFoundError):
            self.engine.list_members(self.org_id, outsider, page=0)


class RemoveMemberTest(AccessControlTestCase):

    def setUp(self):
        super().setUp()
        self.org_id = self.engine.create_organization(self.alice, 'Acme')
        self.engine.invite_member(self.org_id, self.alice, 'bob@example.com')

    def test_remove_member_unlinks(self):
        organization = self.engine.remove_member(self.org_id, self.alice, 'bob@example.com')

        self.assertFalse(organization.is_member('bob@example.com'))
        self.assertEqual(self.organizations_of(self.bob), [])
        self.assert_admin_floor(self.org_id)

    def test_remove_non_member(self):
        with self.assertRaises(NotFoundError):
            self.engine.remove_member(self.org_id, self.alice, 'carol@example.com')

    def test_remove_last_admin(self):
        with self.assertRaises(BadRequestError):
            self.engine.remove_member(self.org_id, self.alice, 'alice@example.com')
        self.assert_admin_floor(self.org_id)

    def test_member_cannot_remove(self):
        with self.assertRaises(ForbiddenError):
            self.engine.remove_member(self.org_id, self.bob, 'alice@example.com')

    def test_unlink_failure_is_partial(self):
        with mock.patch.object(self.credential_store, 'update_many_users', side_effect=DependencyError("down")):
            with self.assertRaises(PartialFailureError) as ctx:
                self.engine.remove_member(self.org_id, self.alice, 'bob@example.com')

        self.assertEqual(ctx.exception.step, STEP_UNLINK_MEMBER)
        self.assertFalse(self.organization_store.find_org_by_id(self.org_id).is_member('bob@example.com'))
        self.assertEqual(self.organizations_of(self.bob), [self.org_id])


class ChangeRoleTest(AccessControlTestCase):

    def setUp(self):
        super().setUp()
        self.org_id = self.engine.create_organization(self.alice, 'Acme')
        self.engine.invite_member(self.org_id, self.alice, 'bob@example.com')

    def test_acme_scenario(self):
        organization = self.organization_store.find_org_by_id(self.org_id)
        self.assertEqual(organization.admin_count, 1)
        self.assertEqual([m.email for m in organization.members].count('bob@example.com'), 1)

        promoted = self.engine.change_role(self.org_id, self.alice, 'bob@example.com', ROLE_ADMIN)
        self.assertEqual(promoted.role, ROLE_ADMIN)

        demoted = self.engine.change_role(self.org_id, self.alice, 'bob@example.com', ROLE_MEMBER)
        self.assertEqual(demoted.role, ROLE_MEMBER)
        self.assert_admin_floor(self.org_id)

        # Alice is the only admin left and cannot be demoted, by herself or anyone
        with self.assertRaises(BadRequestError):
            self.engine.change_role(self.org_id, self.alice, 'alice@example.com', ROLE_MEMBER)
        with self.assertRaises(BadRequestError):
            self.engine.remove_member(self.org_id, self.alice, 'alice@example.com')
        self.assert_admin_floor(self.org_id)

    def test_demoted_admin_loses_admin_rights(self):
        self.engine.change_role(self.org_id, self.alice, 'bob@example.com', ROLE_ADMIN)
        self.engine.change_role(self.org_id, self.bob, 'alice@example.com', ROLE_MEMBER)

        with self.assertRaises(ForbiddenError):
            self.engine.change_role(self.org_id, self.alice, 'bob@example.com', ROLE_MEMBER)
        self.assert_admin_floor(self.org_id)

    def test_self_role_change(self):
        self.engine.change_role(self.org_id, self.alice, 'bob@example.com', ROLE_ADMIN)
        with self.assertRaises(BadRequestError):
            self.engine.change_role(self.org_id, self.alice, 'alice@example.com', ROLE_MEMBER)

    def test_invalid_role(self):
        with self.assertRaises(BadRequestError):
            self.engine.change_role(self.org_id, self.alice, 'bob@example.com', 'owner')

    def test_unknown_target(self):
        with self.assertRaises(NotFoundError):
            self.engine.change_role(self.org_id, self.alice, 'carol@example.com', ROLE_ADMIN)

    def test_member_cannot_change_roles(self):
        with self.assertRaises(ForbiddenError):
            self.engine.change_role(self.org_id, self.bob, 'alice@example.com', ROLE_MEMBER)

    def test_concurrent_change_conflicts(self):
        stale = self.organization_store.find_org_by_id(self.org_id)
        self.engine.change_role(self.org_id, self.alice, 'bob@example.com', ROLE_ADMIN)

        with mock.patch.object(self.organization_store, 'find_org_by_id', return_value=stale):
            with self.assertRaises(StaleWriteError):
                self.engine.change_role(self.org_id, self.alice, 'bob@example.com', ROLE_MEMBER)

        organization = self.organization_store.find_org_by_id(self.org_id)
        self.assertTrue(organization.is_admin('bob@example.com'))
