"""Loading and writing XML documents."""

from __future__ import annotations

import copy
from pathlib import Path

from lxml import etree

from xmldiffmerge.core.errors import DocumentLoadError

INDENT = "  "


def _parser(*, keep_comments: bool) -> etree.XMLParser:
    return etree.XMLParser(
        remove_blank_text=True,
        remove_comments=not keep_comments,
        remove_pis=True,
        resolve_entities=False,
    )


def load_document(path: Path | str, *, keep_comments: bool = True) -> etree._ElementTree:
    """Parse the document at ``path`` with insignificant whitespace stripped."""
    path = Path(path)
    if not path.exists():
        raise DocumentLoadError(str(path), "file not found")
    if not path.is_file():
        raise DocumentLoadError(str(path), "not a file")
    try:
        return etree.parse(str(path), _parser(keep_comments=keep_comments))
    except etree.XMLSyntaxError as exc:
        raise DocumentLoadError(str(path), str(exc)) from exc
    except OSError as exc:
        raise DocumentLoadError(str(path), exc.strerror or str(exc)) from exc


def parse_document(
    text: str | bytes,
    *,
    keep_comments: bool = True,
    source: str = "<string>",
) -> etree._ElementTree:
    """Parse a document held in memory."""
    data = text.encode("utf-8") if isinstance(text, str) else text
    try:
        root = etree.fromstring(data, _parser(keep_comments=keep_comments))
    except etree.XMLSyntaxError as exc:
        raise DocumentLoadError(source, str(exc)) from exc
    return root.getroottree()


def document_to_string(tree: etree._ElementTree) -> str:
    """Return the indented text of ``tree`` without touching the tree itself."""
    formatted = copy.deepcopy(tree)
    etree.indent(formatted, space=INDENT)
    return etree.tostring(formatted, encoding="unicode")


def write_document(tree: etree._ElementTree, path: Path | str) -> None:
    """Write ``tree`` as UTF-8 with two-space indentation and ``\\n`` newlines."""
    etree.indent(tree, space=INDENT)
    data = etree.tostring(tree, encoding="utf-8", xml_declaration=True)
    Path(path).write_bytes(data + b"\n")


__all__ = ["INDENT", "document_to_string", "load_document", "parse_document", "write_document"]
