"""Error taxonomy shared by services, renderers and routes.

Each error carries a short user-facing message; ``details`` holds an optional
itemized list that routes pass through to the response body.
"""

from typing import Any


class CertforgeError(Exception):
    """Base class for all expected certificate pipeline failures."""

    status_code = 500

    def __init__(self, message: str, *, details: list[str] | None = None):
        self.message = message
        self.details = details or []
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        body: dict[str, Any] = {"detail": self.message}
        if self.details:
            body["errors"] = self.details
        return body


class ValidationError(CertforgeError):
    """Malformed template or participant input, rejected before rendering."""

    status_code = 422


class EncodingError(CertforgeError):
    """QR or image encoding failed."""

    status_code = 500


class RenderError(CertforgeError):
    """Background could not be loaded/decoded, or compositing failed."""

    status_code = 422


class StoreError(CertforgeError):
    """A call to the remote record store failed (assumed transient)."""

    status_code = 503

    def __init__(
        self,
        message: str,
        *,
        table: str | None = None,
        operation: str | None = None,
        upstream_status: int | None = None,
    ):
        self.table = table
        self.operation = operation
        self.upstream_status = upstream_status
        super().__init__(message)


class DuplicateError(CertforgeError):
    """A participant with the same email already exists."""

    status_code = 409


class NotFoundError(CertforgeError):
    """A template or participant referenced by ID does not exist."""

    status_code = 404
