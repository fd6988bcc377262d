"""Input/output helpers for xmldiffmerge."""

from .config import default_config, load_config
from .diff_format import deserialize_diff, load_diff, save_diff, serialize_diff
from .documents import document_to_string, load_document, parse_document, write_document
from .logging import StructuredLogger

__all__ = [
    "StructuredLogger",
    "default_config",
    "deserialize_diff",
    "document_to_string",
    "load_config",
    "load_diff",
    "load_document",
    "parse_document",
    "save_diff",
    "serialize_diff",
    "write_document",
]
