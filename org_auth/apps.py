import logging

from django.apps import AppConfig
from django.conf import settings


logger = logging.getLogger(__name__)


class OrgAuthConfig(AppConfig):
    """Org Auth application config"""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'org_auth'
    verbose_name = 'Org Auth'

    def ready(self):
        # Production deployments run check_org_auth_config explicitly
        if getattr(settings, 'DEBUG', False):
            from django.core.exceptions import ImproperlyConfigured
            from .conf import auth_settings

            try:
                auth_settings.validate()
            except ImproperlyConfigured as e:
                logger.warning(f"Org Auth configuration issue: {e}")
                logger.warning("Run 'python manage.py check_org_auth_config' for details")
            else:
                logger.info("Org Auth configuration validated")
