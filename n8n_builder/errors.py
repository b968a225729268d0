""" Error taxonomy shared by the builder, the knowledge base and the n8n client. """

from typing import Any, Dict, Optional


class BuilderError(Exception):
    """Base error. Every error carries a category, a stable code and a details dict."""

    category = "internal"
    default_code = "INTERNAL_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details: Dict[str, Any] = dict(details or {})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(BuilderError):
    """Session, node, node type, schema or credential does not exist."""

    category = "not_found"
    default_code = "NOT_FOUND"

    def __init__(self, message: str, available=None, code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        if available is not None:
            details["available"] = list(available)
        super().__init__(message, code=code, details=details)


class StateError(BuilderError):
    """Operation is not allowed in the current session or draft state."""

    category = "state"
    default_code = "INVALID_STATE"


class ValidationError(BuilderError):
    """Parameters or wiring failed a check. Details carry a fix or suggestion."""

    category = "validation"
    default_code = "VALIDATION_FAILED"


class RemoteError(BuilderError):
    """The n8n API call failed."""

    category = "remote"
    default_code = "REMOTE_ERROR"

    def __init__(self, message: str, status_code: Optional[int] = None, hint: Optional[str] = None,
                 code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        details.setdefault("status_code", status_code)
        if hint:
            details.setdefault("hint", hint)
        super().__init__(message, code=code, details=details)
        self.status_code = status_code
        self.hint = hint
