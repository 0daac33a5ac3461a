"""
Default configuration for the django-graphql-transport library.

Every key consumed by ``graphql_transport.settings.TransportSettings`` is
listed here. Projects override any of them through the ``GRAPHQL_TRANSPORT``
dict in their Django settings.
"""

from __future__ import annotations

from typing import Any

LIBRARY_VERSION = "0.1.0"
LIBRARY_NAME = "django-graphql-transport"

SETTINGS_NAME = "GRAPHQL_TRANSPORT"


# --------------------------------------------------------------------------- #
# Library-wide defaults
# --------------------------------------------------------------------------- #
LIBRARY_DEFAULTS: dict[str, Any] = {
    # Multipart upload limits, in bytes / files. ``None`` means unlimited.
    "max_file_size": None,
    "max_num_files": None,
    # ``None`` falls back to Django's DATA_UPLOAD_MAX_MEMORY_SIZE.
    "max_field_size": None,
    # Accept CBOR for the operations, map and body payloads.
    "enable_cbor": False,
    # Dotted path to the subscription protocol engine callable.
    "subscription_engine": None,
    # Seconds to wait for a bridge to wind down after the client disconnects.
    "subscription_shutdown_timeout": 5.0,
}


def get_library_defaults() -> dict[str, Any]:
    """Return a copy of the library defaults."""
    return dict(LIBRARY_DEFAULTS)
