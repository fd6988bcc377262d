"""Path lookup and resolve-or-create over a restricted XPath grammar.

Only the subset produced by :mod:`xmldiffmerge.core.identity` is interpreted
when creating nodes: child steps, ``@attribute`` steps and one bracketed
predicate per step, either an ordinal (``Tag[2]``) or an equality
(``Tag[@id='v']``, ``Tag[child='v']``). Everything else is left to lxml.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Union

from lxml import etree

from .errors import PathFormatError, PathResolutionError
from .nodes import AttributeRef, attribute_key, element_tag, is_element, set_value

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .nodes import Node

Context = Union[etree._ElementTree, etree._Element, AttributeRef]

_DELIMITER = re.compile(r"[/\[\]=\"']")
_QUOTES = "\"'"


def _evaluate(context: Context, expression: str, namespaces: Mapping[str, str]) -> object:
    if isinstance(context, AttributeRef):
        return None
    if isinstance(context, etree._ElementTree) and not expression.startswith("/"):
        expression = "/" + expression
    try:
        return context.xpath(expression, namespaces=dict(namespaces))
    except etree.XPathError:
        return None


def select_single(context: Context, path: str, namespaces: Mapping[str, str] | None = None) -> Node | None:
    """Return the first element or attribute selected by ``path``.

    Text results, non-node results and evaluation errors such as an undeclared
    prefix all count as "not found".
    """
    results = _evaluate(context, path, namespaces or {})
    if not isinstance(results, list):
        return None
    for result in results:
        if is_element(result):
            return result
        if getattr(result, "is_attribute", False):
            return AttributeRef(result.getparent(), result.attrname)
    return None


def resolve_or_create(context: Context, path: str, namespaces: Mapping[str, str] | None = None) -> Node:
    """Return the node addressed by ``path``, creating missing steps.

    A leading ``/`` rebases ``context`` to the document. When the path already
    resolves, nothing is modified.
    """
    bound: Mapping[str, str] = namespaces or {}
    source = path
    path = path.strip()
    if path.startswith("/"):
        context = _document_of(context)
    path = path.strip("/")
    if not path:
        return _as_node(context, source)

    found = select_single(context, path, bound)
    if found is not None:
        return found
    return _materialise(context, path, source, bound)


def _materialise(context: Context, path: str, source: str, namespaces: Mapping[str, str]) -> Node:
    node = context
    while path:
        match = _DELIMITER.search(path)
        if match is None:
            return _select_or_create(node, path.strip(), source, namespaces)

        delimiter = match.group()
        item = path[: match.start()].strip()
        path = path[match.end() :]

        if delimiter == "[":
            end = _closing_bracket(path, source)
            predicate = path[:end]
            child = select_single(node, f"{item}[{predicate}]", namespaces)
            if child is None:
                child = _create(node, item, source, namespaces)
                if not predicate.strip().isdigit():
                    resolve_or_create(child, predicate, namespaces)
            node = child
            rest = path[end + 1 :]
            path = rest[1:] if rest.startswith("/") else rest
            continue

        if delimiter in "/=":
            if item:
                node = _select_or_create(node, item, source, namespaces)
            if delimiter == "=":
                path = path.lstrip()
            continue

        if delimiter in _QUOTES:
            end = path.find(delimiter)
            if end == -1:
                raise PathFormatError(source, "missing trailing quote")
            if isinstance(node, etree._ElementTree):
                msg = f"cannot assign a value to the document: {source}"
                raise PathResolutionError(msg)
            set_value(node, path[:end])
            path = path[end + 1 :].strip()
            continue

        # a stray closing bracket carries no step of its own
    return _as_node(node, source)


def _closing_bracket(path: str, source: str) -> int:
    depth = 1
    quote: str | None = None
    for index, char in enumerate(path):
        if quote is not None:
            if char == quote:
                quote = None
            continue
        if char in _QUOTES:
            quote = char
        elif char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return index
    if quote is not None:
        raise PathFormatError(source, "missing trailing quote")
    raise PathFormatError(source, "missing closing bracket")


def _select_or_create(node: Context, item: str, source: str, namespaces: Mapping[str, str]) -> Node:
    found = select_single(node, item, namespaces)
    if found is not None:
        return found
    return _create(node, item, source, namespaces)


def _create(node: Context, item: str, source: str, namespaces: Mapping[str, str]) -> Node:
    if isinstance(node, etree._ElementTree):
        root = node.getroot()
        msg = f"document root is <{root.tag}>, cannot create another root {item!r} for {source}"
        raise PathResolutionError(msg)
    if isinstance(node, AttributeRef):
        msg = f"attribute {node.name!r} cannot have children ({source})"
        raise PathResolutionError(msg)

    if item.startswith("@"):
        name = item[1:].strip()
        if name == "xmlns" or name.startswith("xmlns:"):
            prefix = name.partition(":")[2] or None
            return AttributeRef(node, prefix, is_namespace=True)
        key = attribute_key(node, name, namespaces)
        try:
            node.set(key, "")
        except ValueError as exc:
            msg = f"cannot create attribute {name!r} for {source}"
            raise PathResolutionError(msg) from exc
        return AttributeRef(node, key)

    try:
        return etree.SubElement(node, element_tag(item, namespaces))
    except ValueError as exc:
        msg = f"cannot create element {item!r} for {source}"
        raise PathResolutionError(msg) from exc


def _document_of(context: Context) -> etree._ElementTree:
    if isinstance(context, etree._ElementTree):
        return context
    if isinstance(context, AttributeRef):
        return context.owner.getroottree()
    return context.getroottree()


def _as_node(context: Context, source: str) -> Node:
    if isinstance(context, etree._ElementTree):
        msg = f"path does not address a node: {source}"
        raise PathResolutionError(msg)
    return context


__all__ = ["Context", "resolve_or_create", "select_single"]
