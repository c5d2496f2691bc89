"""
User models
"""

from django.db import models

from .base import BaseModel
from ..domain import UserRecord


class User(BaseModel):
    """Credential record; email uniqueness is case-sensitive as stored"""

    name = models.CharField(
        max_length=255
    )
    email = models.EmailField(
        max_length=255,
        unique=True,
        db_index=True
    )
    password_hash = models.CharField(
        max_length=255
    )

    class Meta:
        db_table = 'org_auth_user'
        ordering = ['created_at']

    def __str__(self):
        return self.email

    def to_record(self) -> UserRecord:
        return UserRecord(
            id=str(self.id),
            name=self.name,
            email=self.email,
            password_hash=self.password_hash,
            organizations=[str(link.organization_id) for link in self.organization_links.all()],
        )


class UserOrganization(models.Model):
    """One entry of a user's ordered organization list"""

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='organization_links'
    )
    organization_id = models.UUIDField(
        db_index=True,
        help_text="Organization id; not a foreign key, retraction is explicit"
    )
    linked_at = models.DateTimeField(
        auto_now_add=True
    )

    class Meta:
        db_table = 'org_auth_user_organization'
        unique_together = ['user', 'organization_id']
        ordering = ['id']

    def __str__(self):
        return f"{self.user_id} -> {self.organization_id}"
