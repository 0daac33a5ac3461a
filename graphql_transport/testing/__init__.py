from .harness import (
    BOUNDARY,
    MultipartPart,
    build_multipart_request,
    build_request,
    encode_multipart,
    upload_parts,
)

__all__ = [
    "BOUNDARY",
    "MultipartPart",
    "build_multipart_request",
    "build_request",
    "encode_multipart",
    "upload_parts",
]
