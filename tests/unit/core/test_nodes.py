from __future__ import annotations

import pytest

from xmldiffmerge.core.errors import PathResolutionError
from xmldiffmerge.core.namespaces import bind_namespaces
from xmldiffmerge.core.nodes import (
    AttributeRef,
    NodeIndex,
    attributes_of,
    get_value,
    is_blank,
    namespace_declarations,
    set_value,
    values_equal,
)
from xmldiffmerge.io.documents import parse_document


def test_element_value_is_first_text_run() -> None:
    """Element values come from the first text child, even after a comment."""
    tree = parse_document("<a><b>text</b><c/><d><!--note-->after</d></a>")
    b, c, d = tree.getroot()

    assert get_value(b) == "text"
    assert get_value(c) is None
    assert get_value(d) == "after"


def test_set_value_inserts_replaces_and_removes_text() -> None:
    """Blank values remove the text run; others replace or insert it."""
    tree = parse_document("<a><b>old</b><c><x/></c></a>")
    b, c = tree.getroot()

    set_value(b, "new")
    set_value(c, "inserted")
    assert b.text == "new"
    assert c.text == "inserted"

    set_value(b, "  ")
    assert b.text is None


def test_attribute_refs_read_and_write_values() -> None:
    """Attribute references behave like nodes with a value."""
    tree = parse_document('<a x="1"/>')
    ref = AttributeRef(tree.getroot(), "x")

    set_value(ref, "2")
    assert get_value(ref) == "2"
    assert ref.name == "x"


def test_namespace_declarations_are_listed_where_declared() -> None:
    """Each element only reports the namespaces it declares itself."""
    tree = parse_document('<r xmlns:p="urn:p"><c xmlns:q="urn:q"/></r>')
    root = tree.getroot()

    assert [ref.name for ref in namespace_declarations(root)] == ["xmlns:p"]
    assert [ref.name for ref in namespace_declarations(root[0])] == ["xmlns:q"]
    assert [ref.name for ref in attributes_of(root[0])] == ["xmlns:q"]
    assert namespace_declarations(root)[0].value == "urn:p"


def test_bind_namespaces_collects_every_prefix() -> None:
    """Prefixes declared anywhere in the document are registered."""
    tree = parse_document('<r xmlns:p="urn:p"><c xmlns:q="urn:q"><p:d/></c></r>')

    assert bind_namespaces(tree) == {"p": "urn:p", "q": "urn:q"}


def test_bind_namespaces_registers_default_namespace_under_prefix() -> None:
    """The default namespace is reachable through the configured prefix."""
    tree = parse_document('<r xmlns="urn:d"><c/></r>')

    assert bind_namespaces(tree) == {"ns": "urn:d"}
    assert bind_namespaces(tree, default_prefix="d") == {"d": "urn:d"}
    assert tree.xpath("/d:r/d:c", namespaces=bind_namespaces(tree, "d"))


def test_declaring_a_namespace_on_an_existing_element() -> None:
    """Namespace declaration refs declare their prefix when given a value."""
    tree = parse_document("<r><c/></r>")
    ref = AttributeRef(tree.getroot(), "p", is_namespace=True)

    set_value(ref, "urn:p")

    assert tree.getroot().nsmap.get("p") == "urn:p"


def test_default_namespace_cannot_be_declared_late() -> None:
    """lxml cannot retrofit a default namespace onto existing elements."""
    tree = parse_document("<r/>")

    with pytest.raises(PathResolutionError):
        set_value(AttributeRef(tree.getroot(), None, is_namespace=True), "urn:d")


def test_value_comparison_ignores_case() -> None:
    """Values compare case-insensitively and None only equals None."""
    assert values_equal("TRUE", "true")
    assert values_equal(None, None)
    assert not values_equal(None, "")
    assert not values_equal("a", "b")
    assert values_equal("Straße", "STRAßE")
    assert not values_equal("straße", "STRASSE")


def test_is_blank() -> None:
    """Whitespace-only values count as blank."""
    assert is_blank(None)
    assert is_blank(" \t")
    assert not is_blank("x")


def test_node_index_keys_are_stable() -> None:
    """Index keys identify elements and attributes independently of proxies."""
    tree = parse_document('<a><b x="1"/></a>')
    index = NodeIndex(tree)
    b = tree.getroot()[0]

    assert len(index) == 2
    assert index.key(tree.getroot()) == (0, None)
    assert index.key(AttributeRef(b, "x")) == (1, "x")
    assert index.key(tree.xpath("/a/b")[0]) == index.key(b)
