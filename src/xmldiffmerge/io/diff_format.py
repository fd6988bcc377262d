"""XML text format for stored diffs.

A diff is written as::

    <XmlDiff OriginalFile="a.config" ModifiedFile="b.config">
      <Adds>
        <Diff XPath="/a/b/@x" NewValue="2" OldValue=""/>
      </Adds>
      <Removes/>
      <Changes/>
    </XmlDiff>
"""

from __future__ import annotations

from pathlib import Path

from lxml import etree

from xmldiffmerge.core.errors import DiffFormatError
from xmldiffmerge.core.models import DiffEntry, XmlDiff

from .documents import INDENT

ROOT_TAG = "XmlDiff"
ENTRY_TAG = "Diff"
_GROUPS: tuple[tuple[str, str], ...] = (("Adds", "adds"), ("Removes", "removes"), ("Changes", "changes"))
_FIELDS: tuple[tuple[str, str], ...] = (("XPath", "xpath"), ("NewValue", "new_value"), ("OldValue", "old_value"))


def serialize_diff(diff: XmlDiff, *, compact: bool = True) -> str:
    """Render ``diff`` as XML text.

    Compact output has no indentation and carries an XML declaration; the
    readable form is indented by two spaces and omits the declaration.
    """
    root = etree.Element(ROOT_TAG, {"OriginalFile": diff.original_file, "ModifiedFile": diff.modified_file})
    for group_tag, field in _GROUPS:
        group = etree.SubElement(root, group_tag)
        for entry in getattr(diff, field):
            etree.SubElement(group, ENTRY_TAG, {attr: getattr(entry, name) for attr, name in _FIELDS})

    if compact:
        return etree.tostring(root, encoding="utf-8", xml_declaration=True).decode("utf-8")
    etree.indent(root, space=INDENT)
    return etree.tostring(root, encoding="unicode")


def deserialize_diff(text: str | bytes) -> XmlDiff:
    """Rebuild an :class:`XmlDiff` from :func:`serialize_diff` output."""
    data = text.encode("utf-8") if isinstance(text, str) else text
    parser = etree.XMLParser(
        remove_blank_text=True,
        remove_comments=True,
        remove_pis=True,
        resolve_entities=False,
    )
    try:
        root = etree.fromstring(data, parser)
    except etree.XMLSyntaxError as exc:
        msg = f"unparsable diff document: {exc}"
        raise DiffFormatError(msg) from exc

    if root.tag != ROOT_TAG:
        msg = f"expected <{ROOT_TAG}> root element, found <{root.tag}>"
        raise DiffFormatError(msg)

    fields = dict(_GROUPS)
    groups: dict[str, list[DiffEntry]] = {field: [] for field in fields.values()}
    for group in root.iterchildren(etree.Element):
        field = fields.get(group.tag)
        if field is None:
            msg = f"unknown diff group <{group.tag}>"
            raise DiffFormatError(msg)
        for record in group.iterchildren(etree.Element):
            if record.tag != ENTRY_TAG:
                msg = f"unexpected <{record.tag}> in <{group.tag}>"
                raise DiffFormatError(msg)
            values = {name: record.get(attr, "") for attr, name in _FIELDS}
            groups[field].append(DiffEntry(**values))

    return XmlDiff(
        original_file=root.get("OriginalFile", ""),
        modified_file=root.get("ModifiedFile", ""),
        **groups,
    )


def save_diff(path: Path | str, diff: XmlDiff, *, compact: bool = False) -> None:
    """Write ``diff`` to ``path`` as UTF-8."""
    Path(path).write_text(serialize_diff(diff, compact=compact) + "\n", encoding="utf-8")


def load_diff(path: Path | str) -> XmlDiff:
    """Read a diff previously written by :func:`save_diff`."""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(path)
    return deserialize_diff(path.read_bytes())


__all__ = ["ENTRY_TAG", "ROOT_TAG", "deserialize_diff", "load_diff", "save_diff", "serialize_diff"]
