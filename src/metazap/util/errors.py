from __future__ import annotations

class MetazapError(Exception):
    """Base exception for the application."""

class InputNotFoundError(MetazapError):
    """Raised when the input directory is missing or not a directory."""

class UnsupportedFormatError(MetazapError):
    """Raised when a file is not a PNG or JPEG image."""

class CorruptImageError(MetazapError):
    """Raised when image bytes do not parse as the claimed format."""

class RecompressError(MetazapError):
    """Raised when the external PNG recompressor cannot be configured."""

class UserCancelledError(MetazapError):
    """Raised when the run is cancelled between files."""
