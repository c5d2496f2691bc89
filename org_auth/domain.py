"""
Domain records passed between the core services and the stores

These are plain values. The Django models in ``models/`` are one way to
persist them; the services never touch the ORM directly.
"""

import math
from dataclasses import dataclass, field, replace
from typing import Generic, List, Optional, TypeVar

from .constants import ROLE_ADMIN, ROLE_MEMBER, MEMBER_ROLES
from .exceptions import BadRequestError, ConflictError, NotFoundError

T = TypeVar('T')


@dataclass(frozen=True)
class UserRecord:
    id: Optional[str]
    name: str
    email: str
    password_hash: str
    organizations: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class UserProfile:
    """User record without the password hash"""
    id: str
    name: str
    email: str
    organizations: List[str]

    @classmethod
    def from_record(cls, user: UserRecord) -> 'UserProfile':
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            organizations=list(user.organizations),
        )


@dataclass(frozen=True)
class Member:
    name: str
    email: str
    role: str = ROLE_MEMBER

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


@dataclass(frozen=True)
class Organization:
    """
    Organization with its embedded, insertion-ordered member list

    Member edits return a new member list and leave ``self`` untouched, so
    the caller can write the result with a single conditional update.
    Invariants enforced here:
      - members are unique by email
      - an organization with members always keeps at least one admin
    """

    id: Optional[str]
    name: str
    created_by: str
    description: Optional[str] = None
    members: List[Member] = field(default_factory=list)
    version: int = 1

    def find_member(self, email: str) -> Optional[Member]:
        for member in self.members:
            if member.email == email:
                return member
        return None

    def is_member(self, email: str) -> bool:
        return self.find_member(email) is not None

    def is_admin(self, email: str) -> bool:
        member = self.find_member(email)
        return member is not None and member.is_admin

    @property
    def admin_count(self) -> int:
        return sum(1 for member in self.members if member.is_admin)

    def with_member_added(self, member: Member) -> List[Member]:
        if self.is_member(member.email):
            raise ConflictError("User is already a member")
        return self.members + [member]

    def with_member_removed(self, email: str) -> List[Member]:
        member = self.find_member(email)
        if member is None:
            raise NotFoundError("Member not found")
        if member.is_admin and self.admin_count == 1:
            raise BadRequestError("Cannot remove the last admin of the organization")
        return [m for m in self.members if m.email != email]

    def with_role_changed(self, email: str, new_role: str) -> List[Member]:
        if new_role not in MEMBER_ROLES:
            raise BadRequestError("Invalid role specified")

        member = self.find_member(email)
        if member is None:
            raise NotFoundError("Member not found")

        # Count admins before applying the change
        if new_role != ROLE_ADMIN and member.is_admin and self.admin_count == 1:
            raise BadRequestError("Cannot demote the last admin of the organization")

        return [
            replace(m, role=new_role) if m.email == email else m
            for m in self.members
        ]


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class Page(Generic[T]):
    items: List[T]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


@dataclass(frozen=True)
class MembershipPatch:
    """Organization ids to add to / remove from a user's membership list"""
    add: List[str] = field(default_factory=list)
    remove: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class UserFilter:
    organization_id: Optional[str] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class OrgFilter:
    member_email: Optional[str] = None
    name_contains: Optional[str] = None
