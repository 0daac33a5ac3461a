"""
Multipart upload decoding.
"""

from .binder import PendingUpload, bind_uploads
from .decoders import decode_body, decode_files_map, decode_operations, parse_batch
from .fields import MultipartField, MultipartFieldReader
from .multipart import receive_batch_multipart

__all__ = [
    "MultipartField",
    "MultipartFieldReader",
    "PendingUpload",
    "bind_uploads",
    "decode_body",
    "decode_files_map",
    "decode_operations",
    "parse_batch",
    "receive_batch_multipart",
]
