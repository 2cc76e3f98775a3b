"""
Exceptions for Frappe Client.

Hierarchy:
    FrappeError
    ├── AuthenticationError   login rejected or no session cookie returned
    ├── UsageError            bad configuration or call, raised before any request
    └── FrappeAPIError        normalized failure of a remote call
"""

import json
import logging
from typing import Optional, Dict, Any, List

logger = logging.getLogger(__name__)


class FrappeError(Exception):
    """Base exception for all Frappe Client errors."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON output."""
        result: Dict[str, Any] = {"message": self.message}
        if self.details:
            result["details"] = self.details
        return result


class AuthenticationError(FrappeError):
    """Credential login failed."""


class UsageError(FrappeError):
    """The client was configured or called incorrectly."""


class FrappeAPIError(FrappeError):
    """
    A failed request to the Frappe backend.

    The remote error body is kept as ``response_data``; ``to_dict()`` merges
    it with the normalized fields so callers see one flat record.

    Attributes:
        http_status: HTTP status code (0 when no response was received)
        http_status_text: HTTP reason phrase
        exception: Remote exception identifier (``exception``, else
            ``exc_type``, else empty)
        response_data: Raw remote error body
        server_messages: Decoded ``_server_messages`` entries
    """

    def __init__(
        self,
        message: str,
        http_status: int = 0,
        http_status_text: str = "",
        exception: str = "",
        response_data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details=response_data)
        self.http_status = http_status
        self.http_status_text = http_status_text
        self.exception = exception
        self.response_data: Dict[str, Any] = response_data or {}
        self.server_messages = parse_server_messages(self.response_data.get("_server_messages"))

    @property
    def exc_type(self) -> Optional[str]:
        """Remote exception class name, if reported."""
        return self.response_data.get("exc_type")

    def to_dict(self) -> Dict[str, Any]:
        """Merge the remote body with the normalized fields."""
        result = dict(self.response_data)
        result.update({
            "httpStatus": self.http_status,
            "httpStatusText": self.http_status_text,
            "message": self.message,
            "exception": self.exception,
        })
        return result

    def __str__(self) -> str:
        if self.http_status:
            text = f"{self.message} (HTTP {self.http_status}"
            if self.http_status_text:
                text += f" {self.http_status_text}"
            text += ")"
        else:
            text = self.message
        if self.exception:
            text += f": {self.exception}"
        return text


def parse_server_messages(raw: Any) -> List[str]:
    """
    Decode Frappe's ``_server_messages`` field.

    The field is a JSON-encoded list whose items are themselves JSON-encoded
    objects with a ``message`` key (or plain strings).
    """
    if not raw:
        return []

    try:
        items = json.loads(raw) if isinstance(raw, str) else raw
    except ValueError:
        logger.debug("Could not decode _server_messages: %r", raw)
        return [str(raw)]

    if not isinstance(items, list):
        items = [items]

    messages = []
    for item in items:
        if isinstance(item, str):
            try:
                item = json.loads(item)
            except ValueError:
                messages.append(item)
                continue
        if isinstance(item, dict):
            messages.append(str(item.get("message", item)))
        else:
            messages.append(str(item))
    return messages
