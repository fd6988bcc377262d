"""Core data models for xmldiffmerge."""

from __future__ import annotations

from enum import Enum
import typing

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_IDENTIFIERS: tuple[str, ...] = ("name", "id", "key")


class EntryKind(str, Enum):
    """The three groups a diff entry can belong to."""

    add = "add"
    remove = "remove"
    change = "change"


class DiffEntry(BaseModel):
    """A single add, remove or change record keyed by an XPath expression."""

    xpath: str = ""
    new_value: str = ""
    old_value: str = ""

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("xpath", "new_value", "old_value", mode="before")
    @classmethod
    def _coerce_missing(cls, value: typing.Any) -> str:
        """Store absent values as empty strings, never ``None``."""
        return "" if value is None else str(value)


def _empty_entries() -> list[DiffEntry]:
    return []


class XmlDiff(BaseModel):
    """Ordered differences between an original and a modified document.

    ``adds``, ``removes`` and ``changes`` keep discovery order. The patch
    engine consumes them as removes, then changes, then adds.
    """

    original_file: str = ""
    modified_file: str = ""
    adds: list[DiffEntry] = Field(default_factory=_empty_entries)
    removes: list[DiffEntry] = Field(default_factory=_empty_entries)
    changes: list[DiffEntry] = Field(default_factory=_empty_entries)

    model_config = ConfigDict(extra="forbid")

    @property
    def entry_count(self) -> int:
        """Return the combined number of entries."""
        return len(self.adds) + len(self.removes) + len(self.changes)

    @property
    def is_different(self) -> bool:
        """Return whether the two documents differ at all."""
        return self.entry_count > 0

    def iter_entries(self) -> typing.Iterator[tuple[EntryKind, DiffEntry]]:
        """Yield every entry in application order."""
        for entry in self.removes:
            yield EntryKind.remove, entry
        for entry in self.changes:
            yield EntryKind.change, entry
        for entry in self.adds:
            yield EntryKind.add, entry


class TemporaryKeyRule(BaseModel):
    """Assign a temporary identifier attribute to elements lacking one."""

    tag: str
    attribute: str = "name"
    depth: int = Field(default=2, ge=1)

    model_config = ConfigDict(frozen=True, extra="forbid")


def _empty_key_rules() -> list[TemporaryKeyRule]:
    return []


class Config(BaseModel):
    """Top level configuration schema validated from TOML files."""

    identifiers: list[str] = Field(default_factory=lambda: list(DEFAULT_IDENTIFIERS))
    default_namespace_prefix: str = "ns"
    compact_diff: bool = False
    json_logs: bool = False
    log_level: str = "INFO"
    temporary_keys: list[TemporaryKeyRule] = Field(default_factory=_empty_key_rules)

    model_config = ConfigDict(extra="forbid")

    @field_validator("identifiers")
    @classmethod
    def _check_identifiers(cls, value: list[str]) -> list[str]:
        """Require a non-empty list of distinct attribute names."""
        if not value:
            msg = "at least one identifier attribute is required"
            raise ValueError(msg)
        if len(set(value)) != len(value):
            msg = "identifier attributes must be unique"
            raise ValueError(msg)
        return value

    @field_validator("default_namespace_prefix")
    @classmethod
    def _check_prefix(cls, value: str) -> str:
        """Prefixes end up inside XPath expressions and must be bare names."""
        if not value or not value.replace("_", "a").replace("-", "a").isalnum() or value[0].isdigit():
            msg = f"invalid namespace prefix: {value!r}"
            raise ValueError(msg)
        return value

    @field_validator("log_level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        """Normalise the level name to upper case."""
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR"}:
            msg = f"unknown log level: {value}"
            raise ValueError(msg)
        return level


__all__ = [
    "DEFAULT_IDENTIFIERS",
    "Config",
    "DiffEntry",
    "EntryKind",
    "TemporaryKeyRule",
    "XmlDiff",
]
