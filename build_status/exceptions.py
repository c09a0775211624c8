"""
Build status error kinds

Every failure that leaves the resolution client is one of three shapes:

    BuildStatusError
    ├── NetworkError   - non-success HTTP status or transport failure (DNS, timeout, reset)
    ├── ParseError     - body is not JSON, or a structurally required field is missing
    └── NotFoundError  - a requested entity is absent from a well-formed response
"""


class BuildStatusError(Exception):
    """Base class for build resolution failures."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class NetworkError(BuildStatusError):
    """
    HTTP request failed.

    Attributes:
        url: Requested URL
        status_code: HTTP status, or None for transport failures (timeouts, DNS, resets)
        body: Response body if one was received
    """

    def __init__(self, message: str, url: str, status_code: int | None = None, body: str = ""):
        self.url = url
        self.status_code = status_code
        self.body = body
        super().__init__(message, {"url": url, "status_code": status_code})

    @property
    def is_transport_error(self) -> bool:
        return self.status_code is None


class ParseError(BuildStatusError):
    """Response body is malformed or lacks a structurally required field."""

    def __init__(self, message: str, url: str | None = None):
        self.url = url
        super().__init__(message, {"url": url} if url else {})


class NotFoundError(BuildStatusError):
    """A requested branch, build or release is not present in the response."""

    def __init__(self, resource: str, identifier: str | int):
        self.resource = resource
        self.identifier = identifier
        message = f"{resource} with identifier '{identifier}' not found"
        super().__init__(message, {"resource": resource, "identifier": str(identifier)})
