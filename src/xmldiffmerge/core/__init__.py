"""Core diff and merge components for xmldiffmerge."""

from .align import Aligner, PairPreProcessor, align_trees, diff_files
from .errors import (
    DiffFormatError,
    DocumentLoadError,
    PathFormatError,
    PathResolutionError,
    XmlMergeError,
)
from .identity import PathBuilder, path_of
from .models import (
    DEFAULT_IDENTIFIERS,
    Config,
    DiffEntry,
    EntryKind,
    TemporaryKeyRule,
    XmlDiff,
)
from .namespaces import bind_namespaces
from .nodes import AttributeRef, NodeIndex, get_value, set_value
from .patch import TreeProcessor, apply_diff, apply_diff_to_file
from .pathexpr import resolve_or_create, select_single

__all__ = [
    "DEFAULT_IDENTIFIERS",
    "Aligner",
    "AttributeRef",
    "Config",
    "DiffEntry",
    "DiffFormatError",
    "DocumentLoadError",
    "EntryKind",
    "NodeIndex",
    "PairPreProcessor",
    "PathBuilder",
    "PathFormatError",
    "PathResolutionError",
    "TemporaryKeyRule",
    "TreeProcessor",
    "XmlDiff",
    "XmlMergeError",
    "align_trees",
    "apply_diff",
    "apply_diff_to_file",
    "bind_namespaces",
    "diff_files",
    "get_value",
    "path_of",
    "resolve_or_create",
    "select_single",
    "set_value",
]
