"""
Base model classes
"""

import uuid
from django.db import models


class BaseModel(models.Model):
    """Base model with a UUID key and timestamps"""

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )
    created_at = models.DateTimeField(
        auto_now_add=True
    )
    updated_at = models.DateTimeField(
        auto_now=True
    )

    class Meta:
        abstract = True
        ordering = ['-created_at']


def coerce_uuid(value):
    """Parse an id string, None when it is not a UUID"""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None
