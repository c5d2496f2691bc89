"""
Token cache implementations

RedisTokenCache talks to Redis directly. DjangoTokenCache runs on any Django
cache alias (django-redis or Django's RedisCache in production, LocMemCache
in tests).
"""

import hashlib
import logging
import uuid
from typing import Optional

import redis
from django.core.cache import caches
from redis.exceptions import RedisError

from .base import TokenCache, dependency_errors, retry_read
from ..conf import auth_settings


logger = logging.getLogger(__name__)

TOKEN_CACHE = 'Token cache'


class RedisTokenCache(TokenCache):
    """Keys are stored verbatim, e.g. ``refresh_token:<token>``"""

    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: str, socket_timeout: float = 5.0) -> 'RedisTokenCache':
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(client)

    @classmethod
    def from_settings(cls) -> 'RedisTokenCache':
        return cls.from_url(
            auth_settings.REDIS_URL,
            socket_timeout=float(auth_settings.REDIS_SOCKET_TIMEOUT),
        )

    @retry_read
    def get(self, key: str) -> Optional[str]:
        with dependency_errors(TOKEN_CACHE, RedisError, OSError):
            return self.client.get(key)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        with dependency_errors(TOKEN_CACHE, RedisError, OSError):
            self.client.set(key, value, ex=ttl_seconds)

    def delete(self, key: str) -> bool:
        # DEL reports how many keys it removed, so only one concurrent caller sees 1
        with dependency_errors(TOKEN_CACHE, RedisError, OSError):
            return self.client.delete(key) == 1

    def ping(self) -> bool:
        with dependency_errors(TOKEN_CACHE, RedisError, OSError):
            return bool(self.client.ping())


class DjangoTokenCache(TokenCache):
    """
    Token cache on top of a Django cache alias

    Token values are longer than some backends accept as keys, so the part
    after the namespace is replaced by its SHA-256 digest.
    """

    KEY_PREFIX = 'org_auth'

    def __init__(self, alias: str = 'default'):
        self.alias = alias

    @classmethod
    def from_settings(cls) -> 'DjangoTokenCache':
        return cls(alias=auth_settings.TOKEN_CACHE_ALIAS)

    @property
    def cache(self):
        return caches[self.alias]

    def make_key(self, key: str) -> str:
        namespace, _, value = key.partition(':')
        digest = hashlib.sha256(value.encode('utf-8')).hexdigest()
        return f"{self.KEY_PREFIX}:{namespace}:{digest}"

    @retry_read
    def get(self, key: str) -> Optional[str]:
        with dependency_errors(TOKEN_CACHE, RedisError, OSError):
            return self.cache.get(self.make_key(key))

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        with dependency_errors(TOKEN_CACHE, RedisError, OSError):
            self.cache.set(self.make_key(key), value, timeout=ttl_seconds)

    def delete(self, key: str) -> bool:
        with dependency_errors(TOKEN_CACHE, RedisError, OSError):
            return bool(self.cache.delete(self.make_key(key)))

    def ping(self) -> bool:
        probe = f"ping:{uuid.uuid4().hex}"
        self.set(probe, '1', 10)
        alive = self.get(probe) == '1'
        self.delete(probe)
        return alive


def token_cache_from_settings() -> TokenCache:
    """Build the token cache selected by ORG_AUTH.TOKEN_CACHE_BACKEND"""
    if auth_settings.TOKEN_CACHE_BACKEND == 'redis':
        return RedisTokenCache.from_settings()
    return DjangoTokenCache.from_settings()
