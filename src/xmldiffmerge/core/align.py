"""Alignment of a modified document against its original."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from lxml import etree

from .identity import PathBuilder, is_within
from .models import DEFAULT_IDENTIFIERS, Config, DiffEntry, XmlDiff
from .namespaces import bind_namespaces
from .nodes import (
    AttributeRef,
    NodeIndex,
    attributes_of,
    child_elements,
    get_value,
    is_blank,
    namespace_declarations,
    values_equal,
)
from .pathexpr import select_single

if TYPE_CHECKING:
    from collections.abc import Sequence

    from xmldiffmerge.io.logging import StructuredLogger


class PairPreProcessor(Protocol):
    """Hook run on both documents before they are compared."""

    def __call__(self, original: etree._ElementTree, modified: etree._ElementTree) -> None:
        """Mutate ``original`` and ``modified`` in place."""
        ...


class Aligner:
    """Classify every node of two documents as added, removed or changed.

    The modified tree is walked first, children before parents, recording
    additions and changes and marking every original node that still has a
    counterpart. A second walk over the original tree reports whatever was
    never marked as removed.
    """

    def __init__(
        self,
        original: etree._ElementTree,
        modified: etree._ElementTree,
        *,
        identifiers: Sequence[str] = DEFAULT_IDENTIFIERS,
        default_prefix: str = "ns",
        logger: StructuredLogger | None = None,
    ) -> None:
        """Bind the two documents and the identity rules used to pair nodes."""
        self._original = original
        self._modified = modified
        self._paths = PathBuilder(tuple(identifiers), default_prefix)
        self._logger = logger
        self._namespaces: dict[str, str] = {}
        self._matched: set[tuple[int, str | None]] = set()
        self._index = NodeIndex(original)

    def align(self) -> XmlDiff:
        """Return the differences leading from the original to the modified tree."""
        diff = XmlDiff()
        self._namespaces = bind_namespaces(self._modified, self._paths.default_prefix)
        self._index = NodeIndex(self._original)
        self._matched = set()
        self._compare(self._modified.getroot(), diff)
        self._collect_removed(self._original.getroot(), diff)
        self._matched.clear()
        return diff

    def _lookup(self, path: str) -> etree._Element | AttributeRef | None:
        return select_single(self._original, path, self._namespaces)

    def _mark(self, node: etree._Element | AttributeRef) -> None:
        self._matched.add(self._index.key(node))

    def _emit(self, entries: list[DiffEntry], entry: DiffEntry, kind: str) -> None:
        entries.append(entry)
        if self._logger is not None:
            self._logger.debug("diff entry", kind=kind, xpath=entry.xpath)

    def _compare(self, element: etree._Element, diff: XmlDiff) -> None:
        for child in child_elements(element):
            self._compare(child, diff)

        for attribute in attributes_of(element):
            self._compare_attribute(attribute, diff)

        path = self._paths.path_of(element)
        counterpart = self._lookup(path)
        value = get_value(element)
        if not isinstance(counterpart, etree._Element):
            if not is_blank(value):
                self._emit(diff.adds, DiffEntry(xpath=path, new_value=value), "add")
            return
        previous = get_value(counterpart)
        if not values_equal(previous, value):
            self._emit(diff.changes, DiffEntry(xpath=path, new_value=value, old_value=previous), "change")
        self._mark(counterpart)

    def _compare_attribute(self, attribute: AttributeRef, diff: XmlDiff) -> None:
        counterpart: AttributeRef | None
        if attribute.is_namespace:
            # XPath cannot select namespace declarations, so pair them by name
            owner = self._lookup(self._paths.path_of(attribute.owner))
            if not isinstance(owner, etree._Element):
                return
            counterpart = next(
                (ref for ref in namespace_declarations(owner) if ref.name == attribute.name),
                None,
            )
        else:
            found = self._lookup(self._paths.path_of(attribute))
            counterpart = found if isinstance(found, AttributeRef) else None

        path = self._paths.path_of(attribute)
        identifier = self._paths.is_identifier(attribute.name)
        if counterpart is None:
            if is_blank(attribute.value) or identifier:
                return
            self._emit(diff.adds, DiffEntry(xpath=path, new_value=attribute.value), "add")
            return
        if not identifier and not values_equal(counterpart.value, attribute.value):
            entry = DiffEntry(xpath=path, new_value=attribute.value, old_value=counterpart.value)
            self._emit(diff.changes, entry, "change")
        self._mark(counterpart)

    def _collect_removed(self, element: etree._Element, diff: XmlDiff) -> None:
        for child in child_elements(element):
            self._collect_removed(child, diff)

        leftover = 0
        removed_roots: list[str] = []
        for attribute in attributes_of(element):
            key = self._index.key(attribute)
            if key in self._matched:
                self._matched.discard(key)
                continue
            leftover += 1
            if not attribute.is_namespace and self._paths.is_identifier(attribute.name):
                root = self._paths.path_of(element)
                removed_roots.append(root)
                diff.removes[:] = [entry for entry in diff.removes if not is_within(entry.xpath, root)]
                self._emit(diff.removes, DiffEntry(xpath=root), "remove")
                continue
            path = self._paths.path_of(attribute)
            if any(is_within(path, root) for root in removed_roots):
                continue
            self._emit(diff.removes, DiffEntry(xpath=path, old_value=attribute.value), "remove")

        key = self._index.key(element)
        matched = key in self._matched
        self._matched.discard(key)
        if matched or leftover or _has_child_elements(element) or _has_sibling_elements(element):
            return
        path = self._paths.path_of(element)
        if any(is_within(path, root) for root in removed_roots):
            return
        self._emit(diff.removes, DiffEntry(xpath=path, old_value=get_value(element)), "remove")


def _has_child_elements(element: etree._Element) -> bool:
    return next(child_elements(element), None) is not None


def _has_sibling_elements(element: etree._Element) -> bool:
    parent = element.getparent()
    if parent is None:
        return False
    return any(sibling is not element for sibling in child_elements(parent))


def align_trees(
    original: etree._ElementTree,
    modified: etree._ElementTree,
    *,
    identifiers: Sequence[str] = DEFAULT_IDENTIFIERS,
    default_prefix: str = "ns",
    logger: StructuredLogger | None = None,
) -> XmlDiff:
    """Compute the differences between two loaded documents."""
    aligner = Aligner(
        original,
        modified,
        identifiers=identifiers,
        default_prefix=default_prefix,
        logger=logger,
    )
    return aligner.align()


def diff_files(
    original_file: Path | str,
    modified_file: Path | str,
    *,
    pre_process: PairPreProcessor | None = None,
    config: Config | None = None,
    logger: StructuredLogger | None = None,
) -> XmlDiff:
    """Load two documents from disk and compute their differences.

    ``pre_process`` runs once on both loaded trees before comparison, for
    example to assign temporary identifier attributes.
    """
    from xmldiffmerge.io.documents import load_document

    settings = config or Config()
    original = load_document(original_file)
    modified = load_document(modified_file)
    if pre_process is not None:
        pre_process(original, modified)

    diff = align_trees(
        original,
        modified,
        identifiers=settings.identifiers,
        default_prefix=settings.default_namespace_prefix,
        logger=logger,
    )
    diff.original_file = str(Path(original_file))
    diff.modified_file = str(Path(modified_file))
    if logger is not None:
        logger.info(
            "diff computed",
            adds=len(diff.adds),
            removes=len(diff.removes),
            changes=len(diff.changes),
        )
    return diff


__all__ = ["Aligner", "PairPreProcessor", "align_trees", "diff_files"]
