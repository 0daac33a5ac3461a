"""
GraphQL responses and their HTTP encoding.

Resolvers influence the HTTP response through the per-operation
``ResponseState`` reachable from ``info.context``: see ``set_cache_control``
and ``add_response_header``. Invalid header names or values are dropped
when the response is encoded; they never fail the request.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from django.core.serializers.json import DjangoJSONEncoder
from django.http import BadHeaderError, JsonResponse
from graphql import GraphQLError

logger = logging.getLogger(__name__)

RESPONSE_STATE_ATTR = "graphql_response_state"

# RFC 9110 token and field-value grammars.
_HEADER_NAME_RE = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")
_HEADER_VALUE_RE = re.compile(r"[\t\x20-\x7e\x80-\xff]*")


def is_valid_header_name(name: Any) -> bool:
    return isinstance(name, str) and bool(_HEADER_NAME_RE.fullmatch(name))


def is_valid_header_value(value: Any) -> bool:
    return isinstance(value, str) and bool(_HEADER_VALUE_RE.fullmatch(value))


@dataclass
class CacheControl:
    """
    Cache-Control directives requested during execution.

    ``max_age`` of ``0`` sets no policy, a positive value renders
    ``max-age=N`` and ``NO_CACHE`` (``-1``) renders ``no-cache``.
    """

    NO_CACHE = -1

    public: bool = True
    max_age: int = 0

    @property
    def no_cache(self) -> bool:
        return self.max_age == self.NO_CACHE

    def value(self) -> Optional[str]:
        directives = []
        if self.no_cache:
            directives.append("no-cache")
        elif self.max_age > 0:
            directives.append(f"max-age={self.max_age}")
        if not self.public:
            directives.append("private")
        return ", ".join(directives) or None

    def merge(self, other: "CacheControl") -> "CacheControl":
        # no-cache on either side wins
        if self.no_cache or other.no_cache:
            max_age = self.NO_CACHE
        elif self.max_age <= 0:
            max_age = other.max_age
        elif other.max_age <= 0:
            max_age = self.max_age
        else:
            max_age = min(self.max_age, other.max_age)
        return CacheControl(public=self.public and other.public, max_age=max_age)


@dataclass
class ResponseState:
    """Per-operation HTTP response settings collected from resolvers."""

    cache_control: CacheControl = field(default_factory=CacheControl)
    http_headers: list[tuple[str, str]] = field(default_factory=list)


def get_response_state(context: Any) -> Optional[ResponseState]:
    return getattr(context, RESPONSE_STATE_ATTR, None)


def set_cache_control(
    context: Any, *, max_age: Optional[int] = None, public: Optional[bool] = None
) -> None:
    """
    Set the cache policy of the operation being executed.

    Pass ``max_age=CacheControl.NO_CACHE`` to send ``no-cache``.
    """
    state = get_response_state(context)
    if state is None:
        logger.debug("No response state on context, ignoring cache control")
        return
    if max_age is not None:
        state.cache_control.max_age = max_age
    if public is not None:
        state.cache_control.public = public


def add_response_header(context: Any, name: str, value: str) -> None:
    """Add an HTTP header to the response of the operation being executed."""
    state = get_response_state(context)
    if state is None:
        logger.debug("No response state on context, ignoring header %s", name)
        return
    state.http_headers.append((name, value))


def format_error(error: Any) -> dict[str, Any]:
    if isinstance(error, GraphQLError):
        return error.formatted
    if isinstance(error, dict):
        return error
    return {"message": str(error)}


@dataclass
class GraphQLResponse:
    """The result of executing one GraphQL operation."""

    data: Any = None
    errors: list[Any] = field(default_factory=list)
    extensions: dict[str, Any] = field(default_factory=dict)
    cache_control: CacheControl = field(default_factory=CacheControl)
    http_headers: list[tuple[str, str]] = field(default_factory=list)

    @classmethod
    def from_execution_result(
        cls, result, state: Optional[ResponseState] = None
    ) -> "GraphQLResponse":
        state = state or ResponseState()
        return cls(
            data=result.data,
            errors=list(result.errors or []),
            extensions=dict(getattr(result, "extensions", None) or {}),
            cache_control=state.cache_control,
            http_headers=list(state.http_headers),
        )

    def is_ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"data": self.data}
        if self.errors:
            payload["errors"] = [format_error(error) for error in self.errors]
        if self.extensions:
            payload["extensions"] = self.extensions
        return payload


class BatchResponse:
    """Responses for a batch request; a single response is a batch of one."""

    def __init__(self, responses: Iterable[GraphQLResponse], is_batch: bool = False):
        self.responses = list(responses)
        self.is_batch = is_batch
        if not is_batch and len(self.responses) != 1:
            raise ValueError("A single response batch holds exactly one response")

    @classmethod
    def single(cls, response: GraphQLResponse) -> "BatchResponse":
        return cls([response], is_batch=False)

    def is_ok(self) -> bool:
        return all(response.is_ok() for response in self.responses)

    def cache_control(self) -> CacheControl:
        merged = CacheControl()
        for index, response in enumerate(self.responses):
            merged = response.cache_control if index == 0 else merged.merge(response.cache_control)
        return merged

    def http_headers(self) -> list[tuple[str, str]]:
        headers: list[tuple[str, str]] = []
        for response in self.responses:
            headers.extend(response.http_headers)
        return headers

    def to_payload(self) -> Any:
        if self.is_batch:
            return [response.to_dict() for response in self.responses]
        return self.responses[0].to_dict()


def _set_header(http_response: JsonResponse, name: str, value: str) -> None:
    try:
        http_response[name] = value
    except (BadHeaderError, UnicodeError) as exc:
        logger.debug("Dropping response header %r rejected by Django: %s", name, exc)


def encode_response(response) -> JsonResponse:
    """
    Serialize a ``BatchResponse`` (or a single ``GraphQLResponse``) to JSON.

    The Cache-Control header is only set for error-free responses.
    """
    if isinstance(response, GraphQLResponse):
        response = BatchResponse.single(response)

    http_response = JsonResponse(
        response.to_payload(), encoder=DjangoJSONEncoder, safe=False
    )

    if response.is_ok():
        cache_control = response.cache_control().value()
        if cache_control is not None:
            if is_valid_header_value(cache_control):
                _set_header(http_response, "Cache-Control", cache_control)
            else:
                logger.debug("Dropping invalid Cache-Control value %r", cache_control)

    for name, value in response.http_headers():
        if is_valid_header_name(name) and is_valid_header_value(value):
            _set_header(http_response, name, value)
        else:
            logger.debug("Dropping invalid response header %r: %r", name, value)

    return http_response
