"""
Exception classes for GDPS Launcher.

Every error carries a human-readable ``message`` (shown to the user as is),
a machine-readable ``error_code`` and optional ``details``. Each class has a
default code that callers refine when they know more, e.g. ``HostError``
raised with ``error_code="url_too_long"``.
"""

from typing import Any, Dict, Optional


class LauncherError(Exception):
    """Base exception for all GDPS Launcher errors."""

    default_code = "launcher_error"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """
        Args:
            message: Text shown to the user
            error_code: Machine-readable code, defaults to ``default_code``
            details: Extra context for logs and JSON output
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = dict(details or {})

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": type(self).__name__,
            "code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ConfigError(LauncherError):
    """Configuration files or environment did not validate."""

    default_code = "invalid_config"


class ValidationError(LauncherError):
    """Invalid user input. Resolved locally, never reaches the host."""

    default_code = "invalid_input"


class SelectionError(ValidationError):
    """Selection does not reference a live catalog entry."""

    default_code = "invalid_selection"


class HostError(LauncherError):
    """Native host failure while scanning, patching or running the game."""

    default_code = "host_error"


class FetchError(LauncherError):
    """Metadata for one server could not be retrieved."""

    default_code = "fetch_failed"

    def __init__(self, server_id: str, message: str, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.server_id = server_id
        self.details.setdefault("server_id", server_id)


class PatchInProgressError(LauncherError):
    """A patch was requested while another one is running."""

    default_code = "already_in_progress"

    def __init__(self, message: str = "A patch is already in progress", **kwargs: Any):
        super().__init__(message, **kwargs)
