"""Temporary identifier attributes for repeated elements without a key.

Sibling elements that share a tag and carry no ``name``/``id``/``key``
attribute are addressed by position, which breaks as soon as one of them is
added, removed or reordered. These hooks give such elements a key derived from
their content before diffing and before merging, and strip it again before
the merged document is written.

Example configuration::

    [[temporary_keys]]
    tag = "system.webServer"
    attribute = "name"
    depth = 2
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from lxml import etree

from xmldiffmerge.core.nodes import child_elements, element_name

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from xmldiffmerge.core.models import TemporaryKeyRule
    from xmldiffmerge.io.logging import StructuredLogger


def derive_key(element: etree._Element, depth: int, default_prefix: str = "ns") -> str | None:
    """Return the name of the element ``depth`` first-children below ``element``.

    Names in a default namespace are spelled with ``default_prefix``, the same
    prefix the generated paths use.
    """
    node = element
    for _ in range(depth):
        first = next(child_elements(node), None)
        if first is None:
            return None
        node = first
    return element_name(node, default_prefix)


class TemporaryKeys:
    """Pre and post processing hooks driven by :class:`TemporaryKeyRule` entries."""

    def __init__(
        self,
        rules: Sequence[TemporaryKeyRule],
        *,
        default_prefix: str = "ns",
        logger: StructuredLogger | None = None,
    ) -> None:
        """Store the rules; the hooks are no-ops when ``rules`` is empty."""
        self._rules = tuple(rules)
        self._default_prefix = default_prefix
        self._logger = logger

    @property
    def rules(self) -> tuple[TemporaryKeyRule, ...]:
        """Return the configured rules."""
        return self._rules

    def _matching(self, tree: etree._ElementTree, rule: TemporaryKeyRule) -> Iterator[etree._Element]:
        for element in tree.getroot().iter(etree.Element):
            if element_name(element, self._default_prefix) == rule.tag:
                yield element

    def assign(self, tree: etree._ElementTree) -> int:
        """Give every matching element lacking the attribute a derived key."""
        assigned = 0
        for rule in self._rules:
            for element in self._matching(tree, rule):
                if element.get(rule.attribute) is not None:
                    continue
                key = derive_key(element, rule.depth, self._default_prefix)
                if key is None:
                    continue
                element.set(rule.attribute, key)
                assigned += 1
        if self._logger is not None and assigned:
            self._logger.debug("temporary keys assigned", count=assigned)
        return assigned

    def strip(self, tree: etree._ElementTree) -> int:
        """Remove the key attribute from every matching element."""
        stripped = 0
        for rule in self._rules:
            for element in self._matching(tree, rule):
                if element.attrib.pop(rule.attribute, None) is not None:
                    stripped += 1
        if self._logger is not None and stripped:
            self._logger.debug("temporary keys stripped", count=stripped)
        return stripped

    def pre_process_pair(self, original: etree._ElementTree, modified: etree._ElementTree) -> None:
        """Diff hook: key both documents."""
        self.assign(original)
        self.assign(modified)

    def pre_process(self, tree: etree._ElementTree) -> None:
        """Merge hook: key the target before paths are resolved."""
        self.assign(tree)

    def post_process(self, tree: etree._ElementTree) -> None:
        """Merge hook: drop the keys before the target is written."""
        self.strip(tree)


__all__ = ["TemporaryKeys", "derive_key"]
