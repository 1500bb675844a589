"""Error types for LM Studio readiness checks."""

from __future__ import annotations

from typing import Optional


LMS_INSTALL_URL = "https://lmstudio.ai/"


class LMStudioError(Exception):
    """Base error with a stable error code."""

    def __init__(self, error_code: str, message: str) -> None:
        super().__init__(message)
        self.error_code = error_code


class ConfigurationMissingError(LMStudioError):
    """The provider entry or its base URL is absent from configuration."""

    def __init__(self, message: str) -> None:
        super().__init__("configuration_missing", message)


class TransportError(LMStudioError):
    """Connection, DNS or timeout failure before an HTTP status was received."""

    def __init__(self, message: str) -> None:
        super().__init__("transport_error", message)


class ServerError(LMStudioError):
    """The server answered with a non-2xx status."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__("server_error", message)
        self.status_code = status_code


class MalformedResponseError(LMStudioError):
    """The response body did not have the expected shape."""

    def __init__(self, message: str) -> None:
        super().__init__("malformed_response", message)


class BinaryNotInstalledError(LMStudioError):
    """The `lms` executable could not be found."""

    def __init__(self, message: str, *, install_url: str = LMS_INSTALL_URL) -> None:
        super().__init__("binary_not_installed", message)
        self.install_url = install_url


class SubprocessFailureError(LMStudioError):
    """The `lms` process could not be spawned or exited non-zero."""

    def __init__(self, message: str, *, exit_code: Optional[int] = None) -> None:
        super().__init__("subprocess_failure", message)
        self.exit_code = exit_code


__all__ = [
    "LMS_INSTALL_URL",
    "LMStudioError",
    "ConfigurationMissingError",
    "TransportError",
    "ServerError",
    "MalformedResponseError",
    "BinaryNotInstalledError",
    "SubprocessFailureError",
]
