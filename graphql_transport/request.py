"""
GraphQL request data model.

A ``BatchRequest`` is either a single ``GraphQLRequest`` or an ordered list of
them. Its shape is fixed once decoded. Uploaded files bound into a request's
variables are tracked on that request so they can be released when the
request-handling scope ends.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Optional

from django.core.files import File

from .exceptions import UnsupportedBatch, UploadCloneError

logger = logging.getLogger(__name__)

_INDEX_RE = re.compile(r"[0-9]+")

VARIABLES_PREFIX = "variables."


class UploadValue(File):
    """
    An uploaded file bound to a GraphQL variable.

    The content lives in a temporary file on disk. Each variable slot holds its
    own handle, obtained through ``try_clone``, so the same upload can satisfy
    several paths.
    """

    def __init__(
        self,
        file,
        filename: str,
        content_type: Optional[str] = None,
        path: Optional[str] = None,
        size: Optional[int] = None,
    ):
        super().__init__(file, name=filename)
        self.filename = filename
        self.content_type = content_type
        self.path = path
        if size is not None:
            self.size = size

    @classmethod
    def from_uploaded_file(cls, uploaded) -> "UploadValue":
        """Wrap a Django ``TemporaryUploadedFile``."""
        return cls(
            uploaded,
            filename=uploaded.name,
            content_type=uploaded.content_type,
            path=uploaded.temporary_file_path(),
            size=uploaded.size,
        )

    def try_clone(self) -> "UploadValue":
        if not self.path:
            raise UploadCloneError(f"Upload '{self.filename}' has no temporary file")
        try:
            handle = open(self.path, "rb")
        except OSError as exc:
            raise UploadCloneError(
                f"Failed to re-open temporary file for upload '{self.filename}': {exc}"
            ) from exc
        return UploadValue(
            handle,
            filename=self.filename,
            content_type=self.content_type,
            path=self.path,
            size=self.size,
        )

    def __repr__(self):
        return f"<UploadValue: {self.filename} ({self.content_type})>"


def _optional_mapping(payload: Mapping[str, Any], key: str) -> dict[str, Any]:
    value = payload.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"'{key}' must be an object")
    return value


@dataclass
class GraphQLRequest:
    """A single GraphQL operation document."""

    query: str = ""
    operation_name: Optional[str] = None
    variables: dict[str, Any] = field(default_factory=dict)
    extensions: dict[str, Any] = field(default_factory=dict)
    uploads: list[UploadValue] = field(default_factory=list, repr=False)

    @classmethod
    def from_dict(cls, payload: Any) -> "GraphQLRequest":
        """
        Build a request from a decoded JSON/CBOR object.

        Raises:
            ValueError: If the payload is not an object or a member has the
                wrong type.
        """
        if not isinstance(payload, dict):
            raise ValueError("A GraphQL request must be an object")

        query = payload.get("query")
        if query is None:
            query = ""
        if not isinstance(query, str):
            raise ValueError("'query' must be a string")

        operation_name = payload.get("operationName")
        if operation_name is not None and not isinstance(operation_name, str):
            raise ValueError("'operationName' must be a string")

        return cls(
            query=query,
            operation_name=operation_name,
            variables=_optional_mapping(payload, "variables"),
            extensions=_optional_mapping(payload, "extensions"),
        )

    @classmethod
    def from_query_params(cls, params: Mapping[str, str]) -> "GraphQLRequest":
        """
        Build a request from GET query parameters.

        ``variables`` and ``extensions`` are JSON encoded strings.
        """
        query = params.get("query")
        if not query:
            raise ValueError("Missing 'query' parameter")

        payload: dict[str, Any] = {
            "query": query,
            "operationName": params.get("operationName") or None,
        }
        for key in ("variables", "extensions"):
            raw = params.get(key)
            if raw:
                try:
                    payload[key] = json.loads(raw)
                except ValueError as exc:
                    raise ValueError(f"'{key}' is not valid JSON: {exc}") from exc
        return cls.from_dict(payload)

    def _resolve_variable_slot(self, var_path: str):
        if not var_path.startswith(VARIABLES_PREFIX):
            return None
        parts = var_path[len(VARIABLES_PREFIX):].split(".")
        container: Any = self.variables
        for part in parts[:-1]:
            container = _step(container, part)
            if container is None:
                return None
        last = parts[-1]
        if isinstance(container, dict):
            return (container, last) if last in container else None
        if isinstance(container, list) and _INDEX_RE.fullmatch(last):
            index = int(last)
            return (container, index) if index < len(container) else None
        return None

    def set_upload(self, var_path: str, upload: UploadValue) -> bool:
        """
        Place ``upload`` at ``var_path`` (for example ``variables.files.1``).

        The path must point at an existing slot in the variables. Returns
        ``False`` and leaves the request untouched when it does not.
        """
        slot = self._resolve_variable_slot(var_path)
        if slot is None:
            return False
        container, key = slot
        container[key] = upload
        self.uploads.append(upload)
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "operationName": self.operation_name,
            "variables": self.variables,
            "extensions": self.extensions,
        }

    def close(self) -> None:
        while self.uploads:
            upload = self.uploads.pop()
            try:
                upload.close()
            except OSError as exc:
                logger.debug("Failed to close upload %r: %s", upload, exc)


def _step(container: Any, part: str) -> Any:
    if isinstance(container, dict):
        return container.get(part)
    if isinstance(container, list) and _INDEX_RE.fullmatch(part):
        index = int(part)
        if index < len(container):
            return container[index]
    return None


class BatchRequest:
    """One GraphQL request, or an ordered batch of them."""

    def __init__(self, requests: list[GraphQLRequest], is_batch: bool):
        if not is_batch and len(requests) != 1:
            raise ValueError("A single request batch holds exactly one request")
        self._requests = list(requests)
        self.is_batch = is_batch

    @classmethod
    def single(cls, request: GraphQLRequest) -> "BatchRequest":
        return cls([request], is_batch=False)

    @classmethod
    def batch(cls, requests: list[GraphQLRequest]) -> "BatchRequest":
        return cls(requests, is_batch=True)

    @property
    def requests(self) -> list[GraphQLRequest]:
        return list(self._requests)

    def into_single(self) -> GraphQLRequest:
        if self.is_batch:
            raise UnsupportedBatch()
        return self._requests[0]

    def close(self) -> None:
        """Release every upload bound into the batch."""
        for request in self._requests:
            request.close()

    def __enter__(self) -> "BatchRequest":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[GraphQLRequest]:
        return iter(self._requests)

    def __len__(self) -> int:
        return len(self._requests)

    def __getitem__(self, index: int) -> GraphQLRequest:
        return self._requests[index]

    def __repr__(self):
        shape = "batch" if self.is_batch else "single"
        return f"<BatchRequest {shape} ({len(self._requests)})>"
