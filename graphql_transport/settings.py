"""
Settings for the GraphQL transport layer.

Library defaults from ``graphql_transport.defaults`` are merged with the
project's ``GRAPHQL_TRANSPORT`` setting; later sources take precedence and
unknown keys are ignored.
"""

from dataclasses import dataclass
from typing import Any, Optional

from django.conf import settings as django_settings

from .defaults import SETTINGS_NAME, get_library_defaults


def _merge_settings_dicts(*dicts: dict[str, Any]) -> dict[str, Any]:
    """Merge multiple settings dictionaries with later ones taking precedence."""
    result = {}
    for d in dicts:
        if d:
            result.update(d)
    return result


def _get_project_settings() -> dict[str, Any]:
    project_settings = getattr(django_settings, SETTINGS_NAME, None) or {}
    if not isinstance(project_settings, dict):
        return {}
    return project_settings


@dataclass(frozen=True)
class MultipartOptions:
    """Per-request limits applied while streaming a multipart body."""

    max_file_size: Optional[int] = None
    max_num_files: Optional[int] = None
    max_field_size: Optional[int] = None


@dataclass
class TransportSettings:
    """Settings for request decoding and the subscription bridge."""

    max_file_size: Optional[int] = None
    max_num_files: Optional[int] = None
    max_field_size: Optional[int] = None
    enable_cbor: bool = False
    subscription_engine: Optional[str] = None
    subscription_shutdown_timeout: float = 5.0

    @classmethod
    def from_django(cls, **overrides: Any) -> "TransportSettings":
        merged = _merge_settings_dicts(
            get_library_defaults(), _get_project_settings(), overrides
        )
        valid_fields = set(cls.__dataclass_fields__.keys())
        return cls(**{k: v for k, v in merged.items() if k in valid_fields})

    def multipart_options(self) -> MultipartOptions:
        max_field_size = self.max_field_size
        if max_field_size is None:
            max_field_size = getattr(
                django_settings, "DATA_UPLOAD_MAX_MEMORY_SIZE", None
            )
        return MultipartOptions(
            max_file_size=self.max_file_size,
            max_num_files=self.max_num_files,
            max_field_size=max_field_size,
        )


def get_transport_settings() -> TransportSettings:
    """Load the transport settings for the current Django configuration."""
    return TransportSettings.from_django()
