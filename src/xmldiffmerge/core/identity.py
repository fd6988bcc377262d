"""Stable path expressions identifying nodes across document instances."""

from __future__ import annotations

from dataclasses import dataclass

from lxml import etree

from .errors import PathFormatError
from .models import DEFAULT_IDENTIFIERS
from .nodes import AttributeRef, Node, child_elements, element_name


def quote_literal(value: str) -> str:
    """Quote ``value`` as an XPath string literal."""
    if "'" not in value:
        return f"'{value}'"
    if '"' not in value:
        return f'"{value}"'
    raise PathFormatError(value, "identifier value contains both quote characters")


def sibling_ordinal(element: etree._Element) -> int:
    """Return the 1-based position among same-named siblings, 0 when unique."""
    parent = element.getparent()
    if parent is None:
        return 0
    namesakes = [sibling for sibling in child_elements(parent) if sibling.tag == element.tag]
    if len(namesakes) <= 1:
        return 0
    return namesakes.index(element) + 1


@dataclass(frozen=True, slots=True)
class PathBuilder:
    """Build XPath expressions from identifier attributes or sibling ordinals.

    Two nodes from different trees are the same node exactly when the
    builder produces the same string for both.
    """

    identifiers: tuple[str, ...] = DEFAULT_IDENTIFIERS
    default_prefix: str = "ns"

    def is_identifier(self, name: str) -> bool:
        """Return whether ``name`` is one of the identifier attributes."""
        return name in self.identifiers

    def segment(self, element: etree._Element) -> str:
        """Return the path step for ``element`` alone."""
        name = element_name(element, self.default_prefix)
        for identifier in self.identifiers:
            value = element.get(identifier)
            if value is not None:
                return f"{name}[@{identifier}={quote_literal(value)}]"
        ordinal = sibling_ordinal(element)
        return name if ordinal == 0 else f"{name}[{ordinal}]"

    def path_of(self, node: Node) -> str:
        """Return the absolute path of an element or attribute."""
        if isinstance(node, AttributeRef):
            return f"{self.path_of(node.owner)}/@{node.name}"
        segments: list[str] = []
        element: etree._Element | None = node
        while element is not None:
            segments.append(self.segment(element))
            element = element.getparent()
        return "/" + "/".join(reversed(segments))


def path_of(
    node: Node,
    identifiers: tuple[str, ...] = DEFAULT_IDENTIFIERS,
    default_prefix: str = "ns",
) -> str:
    """Return the absolute path of ``node`` using a one-off :class:`PathBuilder`."""
    return PathBuilder(tuple(identifiers), default_prefix).path_of(node)


def is_within(path: str, root: str) -> bool:
    """Return whether ``path`` equals ``root`` or addresses a node below it."""
    return path == root or path.startswith(root + "/")


__all__ = ["PathBuilder", "is_within", "path_of", "quote_literal", "sibling_ordinal"]
