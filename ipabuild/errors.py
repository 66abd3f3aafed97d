"""Fatal error conditions raised by the build pipeline."""
from __future__ import annotations


class BuildError(RuntimeError):
    """Base class for conditions that abort an ``ipa build`` run."""


class UnsupportedToolchainError(BuildError):
    """Raised when the installed Xcode is older than the supported minimum."""

    def __init__(self, found: str | None, minimum: str):
        found_text = found or "unknown version"
        super().__init__(
            f"ipabuild requires Xcode {minimum} or newer (found {found_text}). "
            "Please install or switch to the latest Xcode."
        )
        self.found = found
        self.minimum = minimum


class SelectionError(BuildError):
    """Raised when the workspace, project, scheme or configuration cannot be resolved."""


class AppSettingsNotFoundError(BuildError):
    """Raised when no build target produces an application bundle."""

    def __init__(self) -> None:
        super().__init__("App settings could not be found.")


__all__ = [
    "AppSettingsNotFoundError",
    "BuildError",
    "SelectionError",
    "UnsupportedToolchainError",
]
