"""Custom exceptions for collectd-proxy."""

from typing import Any


class ProxyError(Exception):
    """Base exception for all collectd-proxy errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class ConfigurationError(ProxyError):
    """Configuration-related errors."""

    pass


class TypesDBError(ProxyError):
    """types.db could not be read or parsed."""

    def __init__(self, message: str, path: str | None = None, line: int | None = None) -> None:
        context: dict[str, Any] = {}
        if path is not None:
            context["path"] = path
        if line is not None:
            context["line"] = line
        super().__init__(message, **context)


class ProtocolError(ProxyError):
    """collectd network protocol violation."""

    pass


class BackendError(ProxyError):
    """Base class for time-series backend errors."""

    pass


class BackendWriteError(BackendError):
    """A batch could not be written to the backend."""

    def __init__(self, message: str, status_code: int | None = None, points: int = 0) -> None:
        super().__init__(message, status_code=status_code, points=points)
        self.status_code = status_code


class BackendUnavailableError(BackendError):
    """Backend did not answer the startup handshake."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Backend unreachable at {url}: {reason}", url=url)


class DockerError(ProxyError):
    """Docker CLI invocation failed."""

    pass
