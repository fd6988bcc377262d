"""Namespace prefix registration for XPath evaluation."""

from __future__ import annotations

from lxml import etree

from .nodes import child_elements, namespace_declarations


def bind_namespaces(
    tree: etree._ElementTree | etree._Element,
    default_prefix: str = "ns",
    namespaces: dict[str, str] | None = None,
) -> dict[str, str]:
    """Collect every namespace declared in ``tree`` into a prefix mapping.

    Declarations are registered on the way down, before any descendant is
    visited. The default namespace is registered under ``default_prefix``
    because XPath 1.0 has no syntax for unprefixed namespaced names. When the
    same prefix is declared twice the innermost, last visited, URI wins.
    """
    bound = {} if namespaces is None else namespaces
    root = tree.getroot() if isinstance(tree, etree._ElementTree) else tree
    _register(root, default_prefix, bound)
    return bound


def _register(element: etree._Element, default_prefix: str, bound: dict[str, str]) -> None:
    for declaration in namespace_declarations(element):
        prefix = default_prefix if declaration.key is None else declaration.key
        bound[prefix] = declaration.value
    for child in child_elements(element):
        _register(child, default_prefix, bound)


__all__ = ["bind_namespaces"]
