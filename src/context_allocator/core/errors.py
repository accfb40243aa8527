"""Exception types for context-allocator.

The engine raises only ``ConfigurationError``. Every other condition (empty
input, exhausted budget, oversized items) is reported as a normal result.
``ContentNotFoundError`` belongs to content provider collaborators.
"""

from typing import Any, Dict, Optional


class ContextAllocatorError(Exception):
    """Base class for all context-allocator errors."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(ContextAllocatorError, ValueError):
    """Raised when a budget configuration is malformed.

    Fatal to the allocator being constructed. Weight normalization is a
    defined behavior and never raises this error.
    """


class ContentNotFoundError(ContextAllocatorError, LookupError):
    """Raised by content providers when requested content does not exist."""

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        *,
        available: Optional[list] = None,
    ):
        details: Dict[str, Any] = {
            "resource_type": resource_type,
            "resource_id": resource_id,
        }
        if available is not None:
            details["available"] = list(available)
        super().__init__(f"{resource_type} not found: {resource_id}", details=details)
        self.resource_type = resource_type
        self.resource_id = resource_id
