"""
Custom exceptions for message stores.

All store implementations raise these exceptions so callers can
handle failures the same way regardless of backend.
"""


class MessageStoreError(Exception):
    """Base exception for all message store errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class StoreConfigurationError(MessageStoreError):
    """Raised when a required setting is missing at store creation."""

    def __init__(self, session_id: str, setting: str):
        super().__init__(
            f"sessionID: {session_id}: required setting not found: {setting}",
            {"session_id": session_id, "setting": setting},
        )
        self.session_id = session_id
        self.setting = setting


class StorageIOError(MessageStoreError):
    """Raised when a storage I/O operation fails."""

    def __init__(self, operation: str, path: str | None = None, cause: Exception | None = None):
        details = {"operation": operation}
        if path:
            details["path"] = path
        if cause:
            details["cause"] = str(cause)
        message = f"Storage I/O error during {operation}"
        if path:
            message += f": {path}"
        if cause:
            message += f": {cause}"
        super().__init__(message, details)
        self.operation = operation
        self.path = path
        self.cause = cause


class StoreClosedError(MessageStoreError):
    """Raised when a closed store is used before being refreshed."""

    def __init__(self, session_id: str, operation: str):
        super().__init__(
            f"Store for session {session_id} is closed; refresh() before {operation}",
            {"session_id": session_id, "operation": operation},
        )
        self.session_id = session_id
        self.operation = operation


class StorageConnectionError(MessageStoreError):
    """Raised when connection to a database fails.

    Note: Named StorageConnectionError to avoid shadowing the builtin ConnectionError.
    """

    def __init__(self, endpoint: str, cause: Exception | None = None):
        details = {"endpoint": endpoint}
        if cause:
            details["cause"] = str(cause)
        super().__init__(f"Connection failed to {endpoint}", details)
        self.endpoint = endpoint
        self.cause = cause


class ValidationError(MessageStoreError):
    """Raised when data validation fails."""

    def __init__(self, field: str, reason: str, value: str | None = None):
        details = {"field": field, "reason": reason}
        if value is not None:
            details["value"] = value
        super().__init__(f"Validation failed for {field}: {reason}", details)
        self.field = field
        self.reason = reason
        self.value = value


class SequenceNumberError(ValidationError):
    """Raised when a sequence number is below 1 or too wide to persist."""

    def __init__(self, field: str, value: int, reason: str = "sequence numbers must be >= 1"):
        super().__init__(field, reason, str(value))
