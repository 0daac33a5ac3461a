"""
Testing helpers for django-graphql-transport.

Builds Django requests in the shapes the transport decodes: GET query strings,
JSON bodies and multipart upload bodies with full control over each part's
headers (the Django test client cannot set a content type on plain fields).
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Union

from django.test import RequestFactory

BOUNDARY = "GraphQLTransportBoundary"


@dataclass(frozen=True)
class MultipartPart:
    """One part of a multipart body."""

    name: str
    content: bytes
    filename: Optional[str] = None
    content_type: Optional[str] = None


def _normalize_headers(headers: Optional[Mapping[str, str]]) -> dict[str, str]:
    if not headers:
        return {}
    normalized: dict[str, str] = {}
    for key, value in headers.items():
        if not key:
            continue
        name = key.replace("-", "_").upper()
        if name not in {"CONTENT_TYPE", "CONTENT_LENGTH"} and not name.startswith("HTTP_"):
            name = f"HTTP_{name}"
        normalized[name] = value
    return normalized


def _as_bytes(value: Union[str, bytes, Any]) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    return json.dumps(value).encode("utf-8")


def encode_multipart(parts: Iterable[MultipartPart], boundary: str = BOUNDARY) -> bytes:
    separator = f"--{boundary}".encode("ascii")
    lines: list[bytes] = []
    for part in parts:
        disposition = f'form-data; name="{part.name}"'
        if part.filename is not None:
            disposition += f'; filename="{part.filename}"'
        lines.append(separator)
        lines.append(f"Content-Disposition: {disposition}".encode("utf-8"))
        if part.content_type:
            lines.append(f"Content-Type: {part.content_type}".encode("ascii"))
        lines.append(b"")
        lines.append(part.content)
    lines.append(separator + b"--")
    lines.append(b"")
    return b"\r\n".join(lines)


def upload_parts(
    operations: Any,
    files_map: Any,
    files: Optional[Mapping[str, tuple]] = None,
    *,
    operations_content_type: Optional[str] = None,
    map_content_type: Optional[str] = None,
) -> list[MultipartPart]:
    """
    Build the parts of a GraphQL multipart upload request.

    ``operations`` and ``files_map`` are JSON encoded unless given as bytes.
    ``files`` maps field names to ``(filename, content)`` or
    ``(filename, content, content_type)`` tuples.
    """
    parts = [
        MultipartPart("operations", _as_bytes(operations), content_type=operations_content_type),
        MultipartPart("map", _as_bytes(files_map), content_type=map_content_type),
    ]
    for name, spec in (files or {}).items():
        filename, content, *rest = spec
        content_type = rest[0] if rest else "application/octet-stream"
        parts.append(MultipartPart(name, _as_bytes(content), filename, content_type))
    return parts


def build_request(
    path: str = "/graphql/",
    method: str = "POST",
    *,
    headers: Optional[Mapping[str, str]] = None,
    data: Optional[Any] = None,
    body: Optional[Union[str, bytes]] = None,
    content_type: str = "application/json",
):
    rf = RequestFactory()
    method_upper = method.upper()
    request_headers = _normalize_headers(headers)

    if method_upper in {"GET", "HEAD", "OPTIONS", "TRACE"}:
        return rf.get(path, data=data or {}, **request_headers)

    if body is None:
        body = json.dumps(data if data is not None else {})
    return rf.generic(
        method_upper,
        path,
        data=body,
        content_type=content_type,
        **request_headers,
    )


def build_multipart_request(
    parts: Iterable[MultipartPart],
    path: str = "/graphql/",
    *,
    boundary: str = BOUNDARY,
    headers: Optional[Mapping[str, str]] = None,
):
    return build_request(
        path,
        "POST",
        headers=headers,
        body=encode_multipart(parts, boundary),
        content_type=f"multipart/form-data; boundary={boundary}",
    )
