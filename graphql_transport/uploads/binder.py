"""
Bind uploaded files to the variable paths declared by the files map.

Paths are bound best-effort: a batch path whose index does not parse or is out
of range, or a variable path that does not resolve, is skipped without error.
Only map entries that no file part satisfied are reported, as ``MissingFiles``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from ..exceptions import MissingFiles
from ..request import BatchRequest, GraphQLRequest, UploadValue

logger = logging.getLogger(__name__)

_INDEX_RE = re.compile(r"[0-9]+")


@dataclass
class PendingUpload:
    """A file part written to temporary storage, waiting to be bound."""

    name: str
    upload: UploadValue

    def close(self) -> None:
        self.upload.close()


def _split_batch_path(var_path: str) -> Optional[tuple[int, str]]:
    index, sep, path = var_path.partition(".")
    if not sep or not _INDEX_RE.fullmatch(index):
        return None
    return int(index), path


def _attach(request: GraphQLRequest, var_path: str, upload: UploadValue) -> None:
    clone = upload.try_clone()
    if not request.set_upload(var_path, clone):
        logger.debug("Upload path '%s' does not resolve, skipping", var_path)
        clone.close()


def bind_uploads(
    batch: BatchRequest,
    files_map: dict[str, list[str]],
    pending: Iterable[PendingUpload],
) -> None:
    """
    Attach every pending upload to the paths the files map lists for it.

    ``files_map`` is consumed: each matched entry is removed. Each bound path
    receives its own clone of the upload; the originals stay owned by the
    caller.

    Raises:
        MissingFiles: If entries remain in ``files_map`` after all uploads were
            processed.
        UploadCloneError: If an upload's temporary file cannot be re-opened.
    """
    for item in pending:
        var_paths = files_map.pop(item.name, None)
        if var_paths is None:
            logger.debug("File part '%s' is not referenced by the map", item.name)
            continue

        for var_path in var_paths:
            if not batch.is_batch:
                _attach(batch[0], var_path, item.upload)
                continue

            target = _split_batch_path(var_path)
            if target is None:
                logger.debug("Skipping malformed batch upload path '%s'", var_path)
                continue
            index, path = target
            if index >= len(batch):
                logger.debug("Skipping upload path '%s': no operation %d", var_path, index)
                continue
            _attach(batch[index], path, item.upload)

    if files_map:
        raise MissingFiles(files_map.keys())
