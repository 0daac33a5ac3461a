"""
Exceptions raised while decoding GraphQL transport requests.

Every error is local to the request being decoded. Each class carries a
machine readable ``code`` and the HTTP ``status_code`` used when the error is
turned into a rejection response.
"""

from typing import Iterable, Optional


class ParseRequestError(Exception):
    """Base exception for request decoding errors."""

    code = "BAD_REQUEST"
    status_code = 400
    default_message = "Invalid GraphQL request"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRequest(ParseRequestError):
    """Raised when a GET query string or request body cannot be decoded."""

    code = "INVALID_REQUEST"
    default_message = "Invalid GraphQL request"


class MissingOperationsPart(ParseRequestError):
    """Raised when a multipart request has no ``operations`` field."""

    code = "MISSING_OPERATIONS_PART"
    default_message = "Missing 'operations' part in multipart request"


class MissingMapPart(ParseRequestError):
    """Raised when a multipart request has no ``map`` field."""

    code = "MISSING_MAP_PART"
    default_message = "Missing 'map' part in multipart request"


class MalformedOperations(ParseRequestError):
    """Raised when the ``operations`` field is not a request or a list of requests."""

    code = "MALFORMED_OPERATIONS"
    default_message = "The 'operations' part is not a valid GraphQL request"


class InvalidFilesMap(ParseRequestError):
    """Raised when the ``map`` field cannot be decoded."""

    code = "INVALID_FILES_MAP"
    default_message = "The 'map' part is not a mapping of field names to paths"


class MissingFiles(ParseRequestError):
    """Raised when entries of the files map were not satisfied by any file part."""

    code = "MISSING_FILES"
    default_message = "Missing files referenced by the 'map' part"

    def __init__(self, names: Iterable[str] = (), message: Optional[str] = None):
        self.names = sorted(names)
        if message is None and self.names:
            message = f"{self.default_message}: {', '.join(self.names)}"
        super().__init__(message)


class PayloadTooLarge(ParseRequestError):
    """Raised when a file or field exceeds the configured limits."""

    code = "PAYLOAD_TOO_LARGE"
    status_code = 413
    default_message = "Payload too large"


class TransportError(ParseRequestError):
    """Raised when the underlying request stream fails."""

    code = "TRANSPORT_ERROR"
    default_message = "Failed to read the request body"


class UploadCloneError(ParseRequestError):
    """Raised when an uploaded file's temporary storage cannot be re-opened."""

    code = "UPLOAD_CLONE_ERROR"
    status_code = 500
    default_message = "Failed to duplicate uploaded file"


class UnsupportedBatch(ParseRequestError):
    """Raised when a batch request reaches an endpoint that only accepts one operation."""

    code = "UNSUPPORTED_BATCH"
    default_message = "Batch requests are not supported"
