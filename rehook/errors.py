"""rehook exception hierarchy.

All rehook-specific exceptions inherit from RehookError.
"""

from __future__ import annotations


class RehookError(Exception):
    """Base exception for all rehook errors."""


class ConfigurationError(RehookError):
    """Raised when a component binding is missing or has invalid options."""


class HookNotFoundError(RehookError):
    """Raised when a hook id lookup fails."""

    def __init__(self, hook_id: str) -> None:
        self.hook_id = hook_id
        super().__init__(f"Hook not found: {hook_id}")


class UnknownComponentError(RehookError):
    """Raised when a component type is not registered."""

    def __init__(self, type_name: str) -> None:
        self.type_name = type_name
        super().__init__(f"Unknown component type: {type_name}")


class StorageError(RehookError):
    """Raised for missing namespaces, read-only writes and corrupt records."""


class ProcessingError(RehookError):
    """Raised by a component when a delivery cannot be processed.

    Any ProcessingError aborts the surrounding delivery transaction.
    """


class PayloadError(ProcessingError):
    """Raised when a delivery is malformed or of an unexpected shape."""


class DuplicateDeliveryError(ProcessingError):
    """Raised by components that reject replayed deliveries outright."""

    def __init__(self, delivery_id: str) -> None:
        self.delivery_id = delivery_id
        super().__init__(f"Duplicate delivery: {delivery_id}")


class ExternalAPIError(ProcessingError):
    """Raised when a call against the remote API fails.

    Side effects already issued against the remote API are not undone.
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        self.status = status
        super().__init__(message)
