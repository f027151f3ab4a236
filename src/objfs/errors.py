"""objfs error types.

Every public filesystem operation either returns its documented result or
raises exactly one of the errors below. Policy and path errors are raised
locally and synchronously, before any store interaction.
"""

from __future__ import annotations


class ObjfsError(Exception):
    """Base exception for objfs operations.

    Attributes:
        message: Human-readable error message.
        path: Virtual or absolute path associated with the operation (if applicable).
        key: Store key associated with the operation (if applicable).
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        key: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.key = key

    def __str__(self) -> str:
        parts = [self.message]
        if self.path:
            parts.append(f"path={self.path}")
        if self.key:
            parts.append(f"key={self.key}")
        return " ".join(parts)


class InvalidRootError(ObjfsError):
    """Raised when the filesystem root is malformed.

    The root must carry the store scheme prefix (``s3://bucket[/prefix]``).
    Raised at construction time, before any store client is built.
    """

    def __init__(self, message: str = "Invalid root folder", *, path: str | None = None) -> None:
        super().__init__(message, path=path)


class AccessDeniedError(ObjfsError):
    """Raised when the active policy rejects an operation.

    Always raised before any store call is issued, so a denied operation
    never leaves partial effects behind.
    """

    def __init__(
        self,
        message: str = "Access denied",
        *,
        path: str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message, path=path)
        self.operation = operation


class NotFoundError(ObjfsError):
    """Raised when a key does not exist in the store."""

    def __init__(
        self,
        message: str = "Object not found",
        *,
        path: str | None = None,
        key: str | None = None,
    ) -> None:
        super().__init__(message, path=path, key=key)


class StoreError(ObjfsError):
    """Raised when the store adapter cannot complete an operation.

    Wraps backend failures (network, permissions, throttling) other than a
    missing key. The original exception is kept in ``cause`` and chained.
    """

    def __init__(
        self,
        message: str = "Storage backend error",
        *,
        key: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, key=key)
        self.cause = cause


class ConfigError(ObjfsError):
    """Raised when drive configuration is missing or invalid."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []
