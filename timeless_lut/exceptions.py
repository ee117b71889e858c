"""Custom exception hierarchy for the lookup table decoders."""

from __future__ import annotations


class LutError(Exception):
    """Base class for all lookup table related errors."""


class DecompressionFailure(LutError):
    """Raised when a jewel data stream is truncated or is not a deflate stream."""


class HeaderTooSmall(LutError):
    """Raised when a headered buffer is shorter than its record length header."""

    def __init__(self, actual: int, required: int) -> None:
        super().__init__(
            f"buffer holds {actual} bytes but the record header needs {required}"
        )
        self.actual = actual
        self.required = required


class UnknownJewelType(LutError, KeyError):
    """Raised when a jewel name does not match any known format."""

    def __str__(self) -> str:  # KeyError quotes its argument otherwise
        return str(self.args[0]) if self.args else ""


class DuplicateJewelError(LutError):
    """Raised when a jewel table would silently replace an existing one."""


class MetadataError(LutError):
    """Raised when a companion Lua metadata file cannot be interpreted."""


class LutFormatError(LutError):
    """Raised for malformed persisted tables or format override files."""


__all__ = [
    "LutError",
    "DecompressionFailure",
    "HeaderTooSmall",
    "UnknownJewelType",
    "DuplicateJewelError",
    "MetadataError",
    "LutFormatError",
]
