"""
Org Auth collaborators: credential store, organization store, token cache
"""

from .base import CredentialStore, OrganizationStore, TokenCache
from .cache import DjangoTokenCache, RedisTokenCache, token_cache_from_settings
from .django_store import DjangoCredentialStore, DjangoOrganizationStore

__all__ = [
    'CredentialStore',
    'OrganizationStore',
    'TokenCache',
    'DjangoTokenCache',
    'RedisTokenCache',
    'token_cache_from_settings',
    'DjangoCredentialStore',
    'DjangoOrganizationStore',
]
