"""
Django app configuration for django-graphql-transport.
"""

import logging

from django.apps import AppConfig as BaseAppConfig
from django.core.exceptions import ImproperlyConfigured

logger = logging.getLogger(__name__)


class AppConfig(BaseAppConfig):
    """Django app configuration for the GraphQL transport."""

    name = "graphql_transport"
    verbose_name = "GraphQL Transport"
    label = "graphql_transport"

    def ready(self):
        """Validate the transport settings once Django has loaded."""
        self._validate_configuration()

    def _validate_configuration(self):
        from .settings import get_transport_settings

        transport_settings = get_transport_settings()
        for key in ("max_file_size", "max_num_files", "max_field_size"):
            value = getattr(transport_settings, key)
            if value is not None and (not isinstance(value, int) or value < 0):
                raise ImproperlyConfigured(
                    f"GRAPHQL_TRANSPORT['{key}'] must be a non-negative integer or None"
                )
        logger.debug("GraphQL transport settings: %s", transport_settings)
