"""
Domain error taxonomy.

Services raise these; the exception handler registered in main.py turns
them into JSON responses with a stable ``kind`` and HTTP status. None of
them is fatal to the process and none is retried by the service.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class FieldViolation:
    """A single failed field constraint."""

    field: str
    message: str
    type: str = "value_error"

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message, "type": self.type}


class CatalogError(Exception):
    """Base class for errors surfaced to API callers."""

    kind: str = "catalog_error"
    status_code: int = 500
    default_message: str = "Catalog error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "kind": self.kind}


class ValidationError(CatalogError):
    """Malformed or missing input. Carries every violation, not just the first."""

    kind = "validation_error"
    status_code = 422
    default_message = "Validation error"

    def __init__(self, violations: List[FieldViolation], message: Optional[str] = None):
        super().__init__(message)
        self.violations = list(violations)

    @property
    def fields(self) -> List[str]:
        return [v.field for v in self.violations]

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["errors"] = [v.to_dict() for v in self.violations]
        return data


class AuthenticationError(CatalogError):
    """Missing, malformed, expired or unknown credential."""

    kind = "authentication_error"
    status_code = 401
    default_message = "Not authenticated"


class AuthorizationError(CatalogError):
    """Valid credential, insufficient role."""

    kind = "authorization_error"
    status_code = 403
    default_message = "Admin access required"


class NotFoundError(CatalogError):
    """Referenced id does not exist."""

    kind = "not_found"
    status_code = 404
    default_message = "Not found"


class InvalidActionError(CatalogError):
    """Unrecognized review action."""

    kind = "invalid_action"
    status_code = 400
    default_message = "Invalid action"


class ConflictError(CatalogError):
    """State changed underneath the caller, or a uniqueness rule was hit."""

    kind = "conflict"
    status_code = 409
    default_message = "Conflict"
