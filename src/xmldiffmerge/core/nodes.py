"""Uniform access to lxml elements and attributes.

lxml exposes attributes as a mapping on their owner element rather than as
nodes, and namespace declarations only through ``nsmap``. The diff and patch
engines need both to behave like addressable nodes with a value, so this
module wraps them in :class:`AttributeRef` and provides value accessors that
treat elements and attributes alike.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from lxml import etree

from .errors import PathResolutionError

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"


@dataclass(frozen=True, slots=True)
class AttributeRef:
    """Reference to an attribute, or a namespace declaration, of an element.

    ``key`` is the lxml attribute key (``local`` or ``{uri}local``). For a
    namespace declaration it is the declared prefix, ``None`` for the default
    namespace.
    """

    owner: etree._Element
    key: str | None
    is_namespace: bool = False

    @property
    def name(self) -> str:
        """Return the qualified name as written in the document."""
        if self.is_namespace:
            return "xmlns" if self.key is None else f"xmlns:{self.key}"
        return attribute_name(self.owner, str(self.key))

    @property
    def value(self) -> str:
        """Return the literal attribute value."""
        if self.is_namespace:
            return self.owner.nsmap.get(self.key, "")
        return self.owner.get(str(self.key), "")


Node = Union[etree._Element, AttributeRef]


def is_element(node: object) -> bool:
    """Return whether ``node`` is a real element (not a comment or PI)."""
    return isinstance(node, etree._Element) and isinstance(node.tag, str)


def child_elements(element: etree._Element) -> Iterator[etree._Element]:
    """Iterate element children, skipping comments and processing instructions."""
    return element.iterchildren(etree.Element)


def element_name(element: etree._Element, default_prefix: str = "ns") -> str:
    """Return ``prefix:local`` for namespaced elements, ``local`` otherwise."""
    qname = etree.QName(element)
    if qname.namespace is None:
        return qname.localname
    prefix = element.prefix if element.prefix is not None else default_prefix
    return f"{prefix}:{qname.localname}"


def attribute_name(owner: etree._Element, key: str) -> str:
    """Translate an lxml attribute key into its qualified name."""
    qname = etree.QName(key)
    if qname.namespace is None:
        return key
    if qname.namespace == XML_NAMESPACE:
        return f"xml:{qname.localname}"
    for prefix, uri in owner.nsmap.items():
        if prefix is not None and uri == qname.namespace:
            return f"{prefix}:{qname.localname}"
    return qname.localname


def _split_name(name: str) -> tuple[str | None, str]:
    prefix, sep, local = name.partition(":")
    return (prefix, local) if sep else (None, name)


def attribute_key(owner: etree._Element, name: str, namespaces: Mapping[str, str]) -> str:
    """Translate a qualified attribute name into an lxml attribute key."""
    prefix, local = _split_name(name)
    if prefix is None:
        return local
    if prefix == "xml":
        return f"{{{XML_NAMESPACE}}}{local}"
    uri = namespaces.get(prefix) or owner.nsmap.get(prefix)
    if uri is None:
        msg = f"unbound namespace prefix {prefix!r} in attribute {name!r}"
        raise PathResolutionError(msg)
    return f"{{{uri}}}{local}"


def element_tag(name: str, namespaces: Mapping[str, str]) -> str:
    """Translate a qualified element name into an lxml tag."""
    prefix, local = _split_name(name)
    if prefix is None:
        return local
    uri = namespaces.get(prefix)
    if uri is None:
        msg = f"unbound namespace prefix {prefix!r} in element {name!r}"
        raise PathResolutionError(msg)
    return f"{{{uri}}}{local}"


def namespace_declarations(element: etree._Element) -> list[AttributeRef]:
    """Return the namespace declarations made on ``element`` itself."""
    parent = element.getparent()
    inherited = parent.nsmap if parent is not None else {}
    return [
        AttributeRef(element, prefix, is_namespace=True)
        for prefix, uri in element.nsmap.items()
        if inherited.get(prefix) != uri
    ]


def attributes_of(element: etree._Element) -> list[AttributeRef]:
    """Return namespace declarations followed by ordinary attributes."""
    refs = namespace_declarations(element)
    refs.extend(AttributeRef(element, key) for key in element.attrib)
    return refs


def is_blank(value: str | None) -> bool:
    """Return ``True`` for ``None``, empty or whitespace-only strings."""
    return value is None or not value.strip()


def values_equal(left: str | None, right: str | None) -> bool:
    """Compare node values case-insensitively; ``None`` only equals ``None``."""
    if left is None or right is None:
        return left is None and right is None
    return left.lower() == right.lower()


def get_value(node: Node) -> str | None:
    """Return the value of an attribute or the first text run of an element."""
    if isinstance(node, AttributeRef):
        return node.value
    if node.text is not None:
        return node.text
    for child in node:
        if child.tail is not None:
            return child.tail
    return None


def set_value(node: Node, value: str | None) -> None:
    """Store ``value`` on an attribute or as the first text run of an element."""
    if isinstance(node, AttributeRef):
        if node.is_namespace:
            declare_namespace(node.owner, node.key, value or "")
        else:
            node.owner.set(str(node.key), value or "")
        return

    if is_blank(value):
        if node.text is not None:
            node.text = None
            return
        for child in node:
            if child.tail is not None:
                child.tail = None
                return
        return

    if node.text is None:
        for child in node:
            if child.tail is not None:
                child.tail = value
                return
    node.text = value


def declare_namespace(owner: etree._Element, prefix: str | None, uri: str) -> None:
    """Declare ``prefix`` on ``owner`` while keeping every existing declaration."""
    if prefix is None:
        msg = "a default namespace cannot be declared on an existing element"
        raise PathResolutionError(msg)
    if owner.nsmap.get(prefix) == uri:
        return
    keep = {p for element in owner.iter(etree.Element) for p in element.nsmap if p is not None}
    keep.add(prefix)
    etree.cleanup_namespaces(owner, top_nsmap={prefix: uri}, keep_ns_prefixes=sorted(keep))


class NodeIndex:
    """Stable per-tree ordinals used as keys for matched-node bookkeeping.

    The index keeps a reference to every element, so lxml hands back the same
    proxy objects for the lifetime of the index.
    """

    def __init__(self, tree: etree._ElementTree) -> None:
        """Number every element of ``tree`` in document order."""
        self._ordinals: dict[etree._Element, int] = {
            element: ordinal for ordinal, element in enumerate(tree.getroot().iter(etree.Element))
        }

    def __len__(self) -> int:
        """Return the number of indexed elements."""
        return len(self._ordinals)

    def key(self, node: Node) -> tuple[int, str | None]:
        """Return the key identifying ``node`` within this tree."""
        if isinstance(node, AttributeRef):
            return self._ordinals[node.owner], node.name
        return self._ordinals[node], None


__all__ = [
    "XML_NAMESPACE",
    "AttributeRef",
    "Node",
    "NodeIndex",
    "attribute_key",
    "attribute_name",
    "attributes_of",
    "child_elements",
    "declare_namespace",
    "element_name",
    "element_tag",
    "get_value",
    "is_blank",
    "is_element",
    "namespace_declarations",
    "set_value",
    "values_equal",
]
