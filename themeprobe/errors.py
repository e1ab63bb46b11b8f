"""Exception types raised by themeprobe components."""

from __future__ import annotations


class ThemeProbeError(RuntimeError):
    """Base class for all themeprobe failures."""


class FetchError(ThemeProbeError):
    """Raised when repository evidence cannot be retrieved."""

    def __init__(self, repo: str, message: str) -> None:
        super().__init__(f"{repo}: {message}")
        self.repo = repo


class ParseError(ThemeProbeError):
    """Raised when a stored document or cached blob cannot be decoded."""


class ThemeLookupError(ThemeProbeError, LookupError):
    """Raised when a theme or repository is absent from the inventory."""


class UsageError(ThemeProbeError):
    """Raised for invalid command-line input."""


class ConfigError(ThemeProbeError):
    """Raised when the configuration file cannot be parsed."""


__all__ = [
    "ConfigError",
    "FetchError",
    "ParseError",
    "ThemeLookupError",
    "ThemeProbeError",
    "UsageError",
]
