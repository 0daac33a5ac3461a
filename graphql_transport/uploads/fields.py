"""
Streaming reader for ``multipart/form-data`` bodies.

Fields are produced lazily, in arrival order, on top of Django's multipart
primitives. A field's content is either read into memory (``read``) or
streamed into a temporary file (``copy_to_file``); whatever the caller leaves
unread is drained before the next field is produced.
"""

from __future__ import annotations

import html
import logging
from typing import Iterator, Optional

from django.core.exceptions import SuspiciousMultipartForm
from django.core.files.uploadedfile import TemporaryUploadedFile
from django.http.multipartparser import (
    ChunkIter,
    InputStreamExhausted,
    LazyStream,
    MultiPartParser,
    MultiPartParserError,
    Parser,
    exhaust,
)
from django.utils.encoding import force_str
from django.utils.http import parse_header_parameters

from ..exceptions import PayloadTooLarge, TransportError
from ..settings import MultipartOptions

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 2**10
DEFAULT_CONTENT_TYPE = "application/json"

_STREAM_ERRORS = (
    MultiPartParserError,
    InputStreamExhausted,
    SuspiciousMultipartForm,
    OSError,
)


def _parse_boundary(content_type: str) -> bytes:
    if not content_type or not content_type.lower().startswith("multipart/"):
        raise TransportError(f"Invalid Content-Type: {content_type}")
    try:
        content_type.encode("ascii")
    except UnicodeEncodeError:
        raise TransportError(
            f"Invalid non-ASCII Content-Type in multipart: {force_str(content_type)}"
        )
    _, opts = parse_header_parameters(content_type)
    boundary = opts.get("boundary")
    if not boundary or not MultiPartParser.boundary_re.match(boundary):
        raise TransportError(f"Invalid boundary in multipart: {force_str(boundary)}")
    return boundary.encode("ascii")


def _sanitize_file_name(file_name: str) -> Optional[str]:
    file_name = html.unescape(file_name)
    file_name = file_name.rsplit("/")[-1]
    file_name = file_name.rsplit("\\")[-1]
    file_name = "".join(char for char in file_name if char.isprintable())
    if file_name in {"", ".", ".."}:
        return None
    return file_name


class MultipartField:
    """A single field of a multipart body."""

    def __init__(
        self,
        reader: "MultipartFieldReader",
        name: str,
        filename: Optional[str],
        content_type: str,
        content_type_params: dict[str, str],
        stream: LazyStream,
    ):
        self._reader = reader
        self._stream = stream
        self.name = name
        self.filename = filename
        self.content_type = content_type
        self.content_type_params = content_type_params

    def _chunks(self) -> Iterator[bytes]:
        while True:
            try:
                chunk = next(self._stream)
            except StopIteration:
                return
            except _STREAM_ERRORS as exc:
                raise TransportError(f"Failed to read field '{self.name}': {exc}") from exc
            yield chunk

    def read(self) -> bytes:
        """Return the field content, bounded by ``max_field_size``."""
        limit = self._reader.options.max_field_size
        size = 0
        parts = []
        for chunk in self._chunks():
            size += len(chunk)
            if limit is not None and size > limit:
                raise PayloadTooLarge(
                    f"Field '{self.name}' exceeds the maximum size of {limit} bytes"
                )
            parts.append(chunk)
        return b"".join(parts)

    def copy_to_file(self) -> TemporaryUploadedFile:
        """
        Stream the field content into a temporary file.

        The returned file is positioned at its start and owned by the caller,
        who must close it to delete the temporary storage.
        """
        self._reader.register_file(self)
        limit = self._reader.options.max_file_size
        uploaded = TemporaryUploadedFile(
            self.filename or self.name,
            self.content_type,
            0,
            self.content_type_params.get("charset"),
            content_type_extra=self.content_type_params,
        )
        size = 0
        try:
            for chunk in self._chunks():
                size += len(chunk)
                if limit is not None and size > limit:
                    raise PayloadTooLarge(
                        f"File '{self.filename}' exceeds the maximum size of {limit} bytes"
                    )
                uploaded.write(chunk)
            uploaded.flush()
            uploaded.seek(0)
        except Exception:
            uploaded.close()
            raise
        uploaded.size = size
        return uploaded

    def __repr__(self):
        return f"<MultipartField: {self.name!r} filename={self.filename!r}>"


class MultipartFieldReader:
    """
    Iterate the fields of a ``multipart/form-data`` body.

    Args:
        stream: File-like object exposing ``read(size)``, usually the
            ``HttpRequest`` itself.
        content_type: The request ``Content-Type`` header carrying the boundary.
        options: Size and file-count limits for this request.
    """

    def __init__(
        self,
        stream,
        content_type: str,
        options: Optional[MultipartOptions] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self._boundary = _parse_boundary(content_type)
        self._input = stream
        self.options = options or MultipartOptions()
        self.chunk_size = chunk_size
        self.num_files = 0

    def register_file(self, field: MultipartField) -> None:
        self.num_files += 1
        limit = self.options.max_num_files
        if limit is not None and self.num_files > limit:
            raise PayloadTooLarge(f"Too many files, the maximum is {limit}")

    def _build_field(self, meta_data, field_stream) -> Optional[MultipartField]:
        try:
            disposition = meta_data["content-disposition"][1]
            name = force_str(disposition["name"], errors="replace").strip()
        except (KeyError, IndexError, AttributeError, TypeError):
            return None

        filename = disposition.get("filename")
        if filename is not None:
            filename = _sanitize_file_name(force_str(filename, errors="replace"))

        content_type, params = meta_data.get("content-type", ("", {}))
        content_type = force_str(content_type).strip().lower() or DEFAULT_CONTENT_TYPE
        params = {key: force_str(value) for key, value in params.items()}
        return MultipartField(self, name, filename, content_type, params, field_stream)

    def __iter__(self) -> Iterator[MultipartField]:
        stream = LazyStream(ChunkIter(self._input, self.chunk_size))
        parts = iter(Parser(stream, self._boundary))
        while True:
            try:
                _item_type, meta_data, field_stream = next(parts)
            except StopIteration:
                break
            except _STREAM_ERRORS as exc:
                raise TransportError(f"Malformed multipart body: {exc}") from exc

            field = self._build_field(meta_data, field_stream)
            if field is None:
                logger.debug("Skipping multipart part without a field name")
            else:
                yield field

            try:
                exhaust(field_stream)
            except _STREAM_ERRORS as exc:
                raise TransportError(f"Malformed multipart body: {exc}") from exc
