# postship/errors.py
"""
Error taxonomy for the PostShip API.

Every error knows its HTTP status and renders to the common error body
`{"error": <message>, "details": [...]}`; `details` is only present when
there is something field-level to report.
"""
from typing import Any, Dict, List, Optional


class PostShipError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500

    def __init__(self, message: str, details: Optional[List[Dict[str, Any]]] = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(PostShipError):
    """Malformed or out-of-range input. Always the client's fault."""

    status_code = 400

    def __init__(self, message: str = "Validation error", details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message, details)


class NotFoundError(PostShipError):
    status_code = 404


class InternalError(PostShipError):
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
