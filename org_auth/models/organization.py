"""
Organization models
"""

from django.db import models

from .base import BaseModel
from ..constants import MEMBER_ROLES, ROLE_MEMBER
from ..domain import Member, Organization as OrganizationRecord


class Organization(BaseModel):
    """Organization; ``version`` is bumped on every write"""

    name = models.CharField(
        max_length=255
    )
    description = models.TextField(
        blank=True,
        null=True
    )
    created_by = models.UUIDField(
        help_text="Id of the creating user"
    )
    version = models.PositiveIntegerField(
        default=1,
        help_text="Optimistic concurrency token"
    )

    class Meta:
        db_table = 'org_auth_organization'
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['name'], name='org_auth_org_name_idx'),
        ]

    def __str__(self):
        return self.name

    def to_record(self) -> OrganizationRecord:
        return OrganizationRecord(
            id=str(self.id),
            name=self.name,
            description=self.description,
            created_by=str(self.created_by),
            members=[member.to_member() for member in self.members.all()],
            version=self.version,
        )


class OrganizationMember(models.Model):
    """Embedded member entry, kept in insertion order by ``position``"""

    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name='members'
    )
    name = models.CharField(
        max_length=255
    )
    email = models.EmailField(
        max_length=255,
        db_index=True
    )
    role = models.CharField(
        max_length=20,
        choices=[(role, role) for role in MEMBER_ROLES],
        default=ROLE_MEMBER
    )
    position = models.PositiveIntegerField()

    class Meta:
        db_table = 'org_auth_organization_member'
        unique_together = ['organization', 'email']
        ordering = ['position']

    def __str__(self):
        return f"{self.email} - {self.organization_id} ({self.role})"

    def to_member(self) -> Member:
        return Member(name=self.name, email=self.email, role=self.role)
