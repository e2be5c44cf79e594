"""
Quarry exceptions.

Services raise these; the API layer maps them onto HTTP responses.
"""
from __future__ import annotations

from typing import Any, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .permissions.policy import DenialReason


PERMISSION_DENIED_MESSAGE = "You don't have permissions to do that."


class QuarryError(Exception):
    """Base class for all Quarry errors."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(QuarryError):
    """Invalid or unsupported configuration (bad db type, missing key, ...)."""


class NotFoundError(QuarryError):
    status_code = 404

    def __init__(self, model: str, object_id: Any) -> None:
        super().__init__(f"{model} {object_id} not found", {"model": model, "id": object_id})
        self.model = model
        self.object_id = object_id


class InvalidRequestError(QuarryError):
    """The request is well-formed but violates a domain rule."""

    status_code = 400


class PermissionDeniedError(QuarryError):
    status_code = 403

    def __init__(self, reason: "DenialReason") -> None:
        super().__init__(PERMISSION_DENIED_MESSAGE, {"reason": reason.value})
        self.reason = reason


class SerializationError(QuarryError):
    """An entity could not be extracted or loaded with its serdes spec."""
