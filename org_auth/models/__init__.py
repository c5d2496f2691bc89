"""
Org Auth data models
"""

from .user import User, UserOrganization
from .organization import Organization, OrganizationMember

__all__ = [
    'User',
    'UserOrganization',
    'Organization',
    'OrganizationMember',
]
