"""
Org Auth Library - settings
Only a signing key is required, everything else has a default
"""

from decouple import config as env_config
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from .constants import (
    DEFAULT_ACCESS_TOKEN_LIFETIME,
    DEFAULT_REFRESH_TOKEN_LIFETIME,
    DEFAULT_PAGE_SIZE,
    DEFAULT_READ_RETRY_ATTEMPTS,
    DEFAULT_READ_RETRY_WAIT,
)


class OrgAuthSettings:
    """
    Settings object with defaults

    Lookup order for a name:
      1. settings.ORG_AUTH[name]
      2. environment variable ORG_AUTH_<name> (or .env via python-decouple)
      3. DEFAULTS[name]
    """

    DEFAULTS = {
        # JWT
        'JWT_SECRET_KEY': None,  # falls back to Django's SECRET_KEY
        'JWT_ALGORITHM': 'HS256',
        'JWT_PRIVATE_KEY': None,  # RS*/ES* only
        'JWT_PUBLIC_KEY': None,
        'ACCESS_TOKEN_LIFETIME': DEFAULT_ACCESS_TOKEN_LIFETIME,
        'REFRESH_TOKEN_LIFETIME': DEFAULT_REFRESH_TOKEN_LIFETIME,

        # Token cache
        'TOKEN_CACHE_BACKEND': 'django',  # 'django' or 'redis'
        'TOKEN_CACHE_ALIAS': 'default',
        'REDIS_URL': 'redis://localhost:6379/0',
        'REDIS_SOCKET_TIMEOUT': 5.0,

        # Store read retries
        'READ_RETRY_ATTEMPTS': DEFAULT_READ_RETRY_ATTEMPTS,
        'READ_RETRY_WAIT': DEFAULT_READ_RETRY_WAIT,

        # Validation
        'DEFAULT_PAGE_SIZE': DEFAULT_PAGE_SIZE,
        'PASSWORD_MIN_LENGTH': 6,
    }

    INT_SETTINGS = {
        'ACCESS_TOKEN_LIFETIME',
        'REFRESH_TOKEN_LIFETIME',
        'READ_RETRY_ATTEMPTS',
        'DEFAULT_PAGE_SIZE',
        'PASSWORD_MIN_LENGTH',
    }

    FLOAT_SETTINGS = {
        'REDIS_SOCKET_TIMEOUT',
        'READ_RETRY_WAIT',
    }

    ASYMMETRIC_PREFIXES = ('RS', 'ES', 'PS')

    def __init__(self, user_settings=None):
        self._user_settings = user_settings

    @property
    def user_settings(self):
        if self._user_settings is not None:
            return self._user_settings
        return getattr(settings, 'ORG_AUTH', {})

    def __getattr__(self, name):
        if name.startswith('_') or name not in self.DEFAULTS:
            raise AttributeError(f"'{self.__class__.__name__}' object has no attribute '{name}'")

        # 1. Explicit Django setting
        if name in self.user_settings:
            return self.user_settings[name]

        # 2. Environment
        env_value = env_config(f'ORG_AUTH_{name}', default=None)
        if env_value is not None:
            return self._cast(name, env_value)

        # 3. Default
        if name == 'JWT_SECRET_KEY':
            return getattr(settings, 'SECRET_KEY', '')
        return self.DEFAULTS[name]

    def _cast(self, name, value):
        try:
            if name in self.INT_SETTINGS:
                return int(value)
            if name in self.FLOAT_SETTINGS:
                return float(value)
        except ValueError:
            raise ImproperlyConfigured(f"ORG_AUTH_{name} must be numeric, got {value!r}")
        return value

    @property
    def uses_asymmetric_keys(self):
        return self.JWT_ALGORITHM.startswith(self.ASYMMETRIC_PREFIXES)

    def validate(self):
        """Check the settings that have no usable default"""
        if self.uses_asymmetric_keys:
            if not self.JWT_PRIVATE_KEY or not self.JWT_PUBLIC_KEY:
                raise ImproperlyConfigured(
                    f"ORG_AUTH.JWT_PRIVATE_KEY and ORG_AUTH.JWT_PUBLIC_KEY are required "
                    f"for {self.JWT_ALGORITHM}"
                )
        elif not self.JWT_SECRET_KEY:
            raise ImproperlyConfigured(
                "JWT_SECRET_KEY is required. "
                "Configure ORG_AUTH.JWT_SECRET_KEY or set SECRET_KEY in settings.py"
            )

        if self.TOKEN_CACHE_BACKEND not in ('django', 'redis'):
            raise ImproperlyConfigured(
                f"ORG_AUTH.TOKEN_CACHE_BACKEND must be 'django' or 'redis', "
                f"got {self.TOKEN_CACHE_BACKEND!r}"
            )

        for name in ('ACCESS_TOKEN_LIFETIME', 'REFRESH_TOKEN_LIFETIME', 'READ_RETRY_ATTEMPTS'):
            if int(getattr(self, name)) < 1:
                raise ImproperlyConfigured(f"ORG_AUTH.{name} must be a positive integer")

    @property
    def signing_key(self):
        if self.uses_asymmetric_keys:
            return self.JWT_PRIVATE_KEY
        return self.JWT_SECRET_KEY

    @property
    def verifying_key(self):
        if self.uses_asymmetric_keys:
            return self.JWT_PUBLIC_KEY
        return self.JWT_SECRET_KEY


# Global settings instance
auth_settings = OrgAuthSettings()
