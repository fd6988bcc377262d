"""Exception hierarchy shared by the diff and patch engines."""

from __future__ import annotations


class XmlMergeError(RuntimeError):
    """Base class for errors raised by xmldiffmerge."""


class DocumentLoadError(XmlMergeError):
    """Raised when a source or target document is missing or unparsable."""

    def __init__(self, path: str, reason: str) -> None:
        """Record the offending document and the underlying reason."""
        self.path = path
        self.reason = reason
        super().__init__(f"cannot load document {path}: {reason}")


class DiffFormatError(XmlMergeError, ValueError):
    """Raised when a serialized diff cannot be read back."""


class PathFormatError(XmlMergeError, ValueError):
    """Raised for a malformed path expression."""

    def __init__(self, path: str, reason: str) -> None:
        """Keep the path so callers can report which entry failed."""
        self.path = path
        self.reason = reason
        super().__init__(f"invalid XPath format ({reason}): {path}")


class PathResolutionError(XmlMergeError):
    """Raised when a path expression cannot be materialised in a document."""


__all__ = [
    "DiffFormatError",
    "DocumentLoadError",
    "PathFormatError",
    "PathResolutionError",
    "XmlMergeError",
]
