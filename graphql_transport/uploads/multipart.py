"""
Decode a GraphQL multipart upload request into a ``BatchRequest``.

Implements the community multipart request convention
(https://github.com/jaydenseric/graphql-multipart-request-spec): an
``operations`` field, a ``map`` field and any number of file fields. Fields may
arrive in any order, so file parts are buffered to temporary storage and bound
once every field has been read.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..exceptions import (
    InvalidFilesMap,
    MalformedOperations,
    MissingMapPart,
    MissingOperationsPart,
)
from ..request import BatchRequest, UploadValue
from ..settings import MultipartOptions
from .binder import PendingUpload, bind_uploads
from .decoders import decode_files_map, decode_operations
from .fields import MultipartFieldReader

logger = logging.getLogger(__name__)

OPERATIONS_FIELD = "operations"
MAP_FIELD = "map"


def receive_batch_multipart(
    stream,
    content_type: str,
    options: Optional[MultipartOptions] = None,
    enable_cbor: bool = False,
) -> BatchRequest:
    """
    Read every field of a multipart body and bind its files into the batch.

    The temporary files written for file parts are deleted before this
    function returns, on success or failure. Uploads bound into the returned
    batch hold their own handles and are released by ``BatchRequest.close()``.
    """
    batch: Optional[BatchRequest] = None
    files_map: Optional[dict[str, list[str]]] = None
    pending: list[PendingUpload] = []

    try:
        for field in MultipartFieldReader(stream, content_type, options):
            if field.name == OPERATIONS_FIELD:
                if batch is not None:
                    raise MalformedOperations("Duplicate 'operations' part")
                batch = decode_operations(field.read(), field.content_type, enable_cbor)
            elif field.name == MAP_FIELD:
                if files_map is not None:
                    raise InvalidFilesMap("Duplicate 'map' part")
                files_map = decode_files_map(field.read(), field.content_type, enable_cbor)
            elif field.name and field.filename:
                uploaded = field.copy_to_file()
                pending.append(
                    PendingUpload(field.name, UploadValue.from_uploaded_file(uploaded))
                )
            else:
                logger.debug("Ignoring multipart field %r without a filename", field.name)

        if batch is None:
            raise MissingOperationsPart()
        if files_map is None:
            raise MissingMapPart()

        try:
            bind_uploads(batch, files_map, pending)
        except Exception:
            batch.close()
            raise
        return batch
    finally:
        for item in pending:
            item.close()
