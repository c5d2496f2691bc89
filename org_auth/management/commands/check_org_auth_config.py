"""
Check Org Auth configuration and token cache connectivity
"""

from django.core.exceptions import ImproperlyConfigured
from django.core.management.base import BaseCommand, CommandError

from ...conf import auth_settings
from ...exceptions import DependencyError
from ...stores import token_cache_from_settings


class Command(BaseCommand):
    help = 'Check Org Auth configuration'

    def handle(self, *args, **options):
        self.stdout.write("Checking Org Auth configuration...")

        try:
            auth_settings.validate()
        except ImproperlyConfigured as e:
            raise CommandError(f"Configuration check failed: {e}")

        self.stdout.write(f"  JWT algorithm: {auth_settings.JWT_ALGORITHM}")
        self.stdout.write(f"  Access token lifetime: {auth_settings.ACCESS_TOKEN_LIFETIME}s")
        self.stdout.write(f"  Refresh token lifetime: {auth_settings.REFRESH_TOKEN_LIFETIME}s")
        self.stdout.write(f"  Token cache backend: {auth_settings.TOKEN_CACHE_BACKEND}")

        if not auth_settings.uses_asymmetric_keys and len(str(auth_settings.JWT_SECRET_KEY)) < 32:
            self.stdout.write(self.style.WARNING(
                f"  JWT secret key is {len(str(auth_settings.JWT_SECRET_KEY))} characters (recommended: 32+)"
            ))

        try:
            alive = token_cache_from_settings().ping()
        except DependencyError as e:
            raise CommandError(f"Token cache unreachable: {e}")
        if not alive:
            raise CommandError("Token cache did not return the value it stored")

        self.stdout.write("  Token cache: reachable")
        self.stdout.write(self.style.SUCCESS("Configuration check completed"))
