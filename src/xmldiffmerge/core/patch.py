"""Application of a computed diff to an independently evolved document."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from lxml import etree

from .namespaces import bind_namespaces
from .nodes import AttributeRef, set_value
from .pathexpr import resolve_or_create, select_single

if TYPE_CHECKING:
    from xmldiffmerge.io.logging import StructuredLogger

    from .models import DiffEntry, XmlDiff
    from .nodes import Node


class TreeProcessor(Protocol):
    """Hook run on the target document around patch application."""

    def __call__(self, tree: etree._ElementTree) -> None:
        """Mutate ``tree`` in place."""
        ...


def apply_diff(
    target: etree._ElementTree,
    diff: XmlDiff,
    *,
    pre_process: TreeProcessor | None = None,
    post_process: TreeProcessor | None = None,
    default_prefix: str = "ns",
    logger: StructuredLogger | None = None,
) -> bool:
    """Apply removes, then changes, then adds to ``target`` in place.

    Removes and changes whose path no longer resolves are skipped: the target
    already diverged there. Adds create whatever part of their path is missing.
    """
    if not diff.is_different:
        if logger is not None:
            logger.info("no differences to apply")
        return True

    namespaces = bind_namespaces(target, default_prefix)
    if pre_process is not None:
        pre_process(target)

    skipped = 0
    for entry in diff.removes:
        node = select_single(target, entry.xpath, namespaces)
        if node is None:
            skipped += 1
            _log_skip(logger, "remove", entry)
            continue
        _detach(node, logger)

    for entry in diff.changes:
        node = select_single(target, entry.xpath, namespaces)
        if node is None:
            skipped += 1
            _log_skip(logger, "change", entry)
            continue
        set_value(node, entry.new_value)

    # namespace declarations go first so later adds can use their prefixes
    adds = sorted(diff.adds, key=lambda entry: not _declares_namespace(entry.xpath))
    for entry in adds:
        node = resolve_or_create(target, entry.xpath, namespaces)
        if isinstance(node, AttributeRef) and node.is_namespace:
            if node.key is None:
                if logger is not None:
                    logger.warning("default namespace declarations cannot be added", xpath=entry.xpath)
                continue
            namespaces[node.key] = entry.new_value
        set_value(node, entry.new_value)

    if post_process is not None:
        post_process(target)

    if logger is not None:
        logger.info(
            "diff applied",
            removes=len(diff.removes),
            changes=len(diff.changes),
            adds=len(diff.adds),
            skipped=skipped,
        )
    return True


def apply_diff_to_file(
    path: Path | str,
    diff: XmlDiff,
    *,
    pre_process: TreeProcessor | None = None,
    post_process: TreeProcessor | None = None,
    output: Path | str | None = None,
    default_prefix: str = "ns",
    logger: StructuredLogger | None = None,
) -> bool:
    """Merge ``diff`` into the document at ``path``.

    The result overwrites ``path`` unless ``output`` names another file.
    """
    from xmldiffmerge.io.documents import load_document, write_document

    source = Path(path)
    destination = Path(output) if output is not None else source
    tree = load_document(source)
    success = apply_diff(
        tree,
        diff,
        pre_process=pre_process,
        post_process=post_process,
        default_prefix=default_prefix,
        logger=logger,
    )
    if diff.is_different or destination != source:
        write_document(tree, destination)
    return success


def _declares_namespace(xpath: str) -> bool:
    _, _, last = xpath.rpartition("/")
    return last == "@xmlns" or last.startswith("@xmlns:")


def _detach(node: Node, logger: StructuredLogger | None) -> None:
    if isinstance(node, AttributeRef):
        if not node.is_namespace:
            node.owner.attrib.pop(str(node.key), None)
        return

    parent = node.getparent()
    if parent is None:
        if logger is not None:
            logger.warning("refusing to remove the document root", tag=str(node.tag))
        return
    if node.tail is not None:
        previous = node.getprevious()
        if previous is not None:
            previous.tail = (previous.tail or "") + node.tail
        else:
            parent.text = (parent.text or "") + node.tail
    parent.remove(node)


def _log_skip(logger: StructuredLogger | None, kind: str, entry: DiffEntry) -> None:
    if logger is not None:
        logger.debug("path not found in target, skipping", kind=kind, xpath=entry.xpath)


__all__ = ["TreeProcessor", "apply_diff", "apply_diff_to_file"]
