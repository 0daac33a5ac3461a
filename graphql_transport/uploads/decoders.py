"""
Decoders for the ``operations`` and ``map`` multipart fields and for plain
request bodies.

Payloads are JSON unless CBOR is enabled and the declared content type selects
it: ``application/octet-stream`` (or any ``octet-stream/*``) for multipart
fields, plus ``application/cbor`` for any payload.
"""

from __future__ import annotations

import json
from typing import Any

import cbor2

from ..exceptions import InvalidFilesMap, InvalidRequest, MalformedOperations
from ..request import BatchRequest, GraphQLRequest

CBOR_CONTENT_TYPE = "application/cbor"


def _media_type(content_type: str) -> tuple[str, str]:
    main = (content_type or "").split(";", 1)[0].strip().lower()
    type_, _, subtype = main.partition("/")
    return type_, subtype


def is_octet_stream(content_type: str) -> bool:
    type_, subtype = _media_type(content_type)
    return type_ == "octet-stream" or (type_, subtype) == ("application", "octet-stream")


def is_cbor(content_type: str) -> bool:
    return _media_type(content_type) == ("application", "cbor")


def _loads(raw: bytes, use_cbor: bool) -> Any:
    if use_cbor:
        return cbor2.loads(raw)
    return json.loads(raw)


def parse_batch(payload: Any) -> BatchRequest:
    """
    Interpret a decoded payload as a single request or a batch.

    Raises:
        ValueError: If the payload is neither an object nor a non-empty list of
            objects.
    """
    if isinstance(payload, list):
        if not payload:
            raise ValueError("Received an empty list in the batch request")
        return BatchRequest.batch([GraphQLRequest.from_dict(item) for item in payload])
    if isinstance(payload, dict):
        return BatchRequest.single(GraphQLRequest.from_dict(payload))
    raise ValueError("Expected a GraphQL request object or a list of them")


def decode_operations(raw: bytes, content_type: str, enable_cbor: bool = False) -> BatchRequest:
    """Decode the ``operations`` multipart field."""
    use_cbor = enable_cbor and (is_octet_stream(content_type) or is_cbor(content_type))
    try:
        return parse_batch(_loads(raw, use_cbor))
    except (ValueError, RecursionError) as exc:
        raise MalformedOperations(f"Invalid 'operations' part: {exc}") from exc


def decode_body(raw: bytes, content_type: str, enable_cbor: bool = False) -> BatchRequest:
    """Decode a non-multipart request body."""
    use_cbor = enable_cbor and is_cbor(content_type)
    try:
        return parse_batch(_loads(raw, use_cbor))
    except (ValueError, RecursionError) as exc:
        raise InvalidRequest(f"Invalid request body: {exc}") from exc


def decode_files_map(
    raw: bytes, content_type: str, enable_cbor: bool = False
) -> dict[str, list[str]]:
    """
    Decode the ``map`` multipart field into field name -> variable paths.

    Raises:
        InvalidFilesMap: If the payload cannot be decoded or is not a mapping of
            strings to lists of strings.
    """
    use_cbor = enable_cbor and (is_octet_stream(content_type) or is_cbor(content_type))
    try:
        files_map = _loads(raw, use_cbor)
    except (ValueError, RecursionError) as exc:
        raise InvalidFilesMap(f"Invalid 'map' part: {exc}") from exc

    if not isinstance(files_map, dict):
        raise InvalidFilesMap("The 'map' part must be an object")
    for name, paths in files_map.items():
        if not isinstance(name, str):
            raise InvalidFilesMap("The 'map' part keys must be strings")
        if not isinstance(paths, list) or not all(isinstance(path, str) for path in paths):
            raise InvalidFilesMap(
                f"The 'map' entry '{name}' must be a list of path strings"
            )
    return files_map
