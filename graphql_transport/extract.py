"""
Extract GraphQL requests from Django HTTP requests.

Each request is classified once, from its method and content type, as a GET
query string request, a multipart upload request or a plain body request, and
decoded by the matching decoder. Decoding failures raise a
``ParseRequestError`` subclass, which ``rejection_response`` turns into an
HTTP response.
"""

from __future__ import annotations

import enum
import logging
from typing import Optional

from asgiref.sync import sync_to_async
from django.core.exceptions import RequestDataTooBig
from django.http import HttpRequest, JsonResponse
from django.http.request import RawPostDataException

from .exceptions import InvalidRequest, ParseRequestError, PayloadTooLarge, TransportError
from .request import BatchRequest, GraphQLRequest
from .settings import MultipartOptions, TransportSettings, get_transport_settings
from .uploads import decode_body, receive_batch_multipart

logger = logging.getLogger(__name__)

MULTIPART_FORM_DATA = "multipart/form-data"


class RequestKind(enum.Enum):
    GET_QUERY = "get_query"
    MULTIPART = "multipart"
    JSON_BODY = "json_body"


def classify_request(method: str, content_type: Optional[str]) -> RequestKind:
    """Pick the decoder for a request from its method and content type."""
    if (method or "").upper() == "GET":
        return RequestKind.GET_QUERY
    media_type = (content_type or "").split(";", 1)[0].strip().lower()
    if media_type == MULTIPART_FORM_DATA:
        return RequestKind.MULTIPART
    return RequestKind.JSON_BODY


def _decode_query_string(request: HttpRequest) -> BatchRequest:
    try:
        return BatchRequest.single(GraphQLRequest.from_query_params(request.GET))
    except ValueError as exc:
        raise InvalidRequest(f"Invalid GraphQL query string: {exc}") from exc


def _decode_request_body(
    request: HttpRequest, content_type: str, transport_settings: TransportSettings
) -> BatchRequest:
    try:
        body = request.body
    except RequestDataTooBig as exc:
        raise PayloadTooLarge(str(exc)) from exc
    except (OSError, RawPostDataException) as exc:
        raise TransportError(f"Failed to read the request body: {exc}") from exc
    return decode_body(body, content_type, transport_settings.enable_cbor)


def extract_batch_request(
    request: HttpRequest,
    options: Optional[MultipartOptions] = None,
    transport_settings: Optional[TransportSettings] = None,
) -> BatchRequest:
    """
    Decode a Django request into a ``BatchRequest``.

    Args:
        request: The incoming request.
        options: Multipart limits; defaults to the configured limits.
        transport_settings: Settings override; defaults to the Django settings.

    Raises:
        ParseRequestError: If the request cannot be decoded.
    """
    transport_settings = transport_settings or get_transport_settings()
    content_type = request.META.get("CONTENT_TYPE", "")
    kind = classify_request(request.method, content_type)

    if kind is RequestKind.GET_QUERY:
        return _decode_query_string(request)
    if kind is RequestKind.MULTIPART:
        return receive_batch_multipart(
            request,
            content_type,
            options or transport_settings.multipart_options(),
            enable_cbor=transport_settings.enable_cbor,
        )
    return _decode_request_body(request, content_type, transport_settings)


def extract_request(
    request: HttpRequest,
    options: Optional[MultipartOptions] = None,
    transport_settings: Optional[TransportSettings] = None,
) -> GraphQLRequest:
    """
    Decode a Django request that must carry exactly one operation.

    Raises:
        UnsupportedBatch: If the request carries a batch.
    """
    batch = extract_batch_request(request, options, transport_settings)
    try:
        return batch.into_single()
    except ParseRequestError:
        batch.close()
        raise


async def aextract_batch_request(
    request: HttpRequest,
    options: Optional[MultipartOptions] = None,
    transport_settings: Optional[TransportSettings] = None,
) -> BatchRequest:
    """Async variant of ``extract_batch_request`` for async views."""
    return await sync_to_async(extract_batch_request)(
        request, options=options, transport_settings=transport_settings
    )


def rejection_response(error: ParseRequestError) -> JsonResponse:
    """Build the HTTP response for a request that could not be decoded."""
    if error.status_code >= 500:
        logger.error("Failed to decode GraphQL request: %s", error)
    else:
        logger.info("Rejected GraphQL request (%s): %s", error.code, error)
    return JsonResponse(
        {
            "errors": [
                {
                    "message": error.message,
                    "extensions": {"code": error.code},
                }
            ]
        },
        status=error.status_code,
    )
