"""Shared fixtures for the xmldiffmerge test suite."""
from __future__ import annotations
import io
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from lxml import etree

from xmldiffmerge.io.documents import parse_document
from xmldiffmerge.io.logging import StructuredLogger

if TYPE_CHECKING:
    from collections.abc import Callable

ORIGINAL_CONFIG = """
<configuration>
  <appSettings>
    <add key="Timeout" value="30"/>
    <add key="Legacy" value="yes"/>
  </appSettings>
  <connection server="db1" retries="3">primary</connection>
</configuration>
"""

MODIFIED_CONFIG = """
<configuration>
  <appSettings>
    <add key="Timeout" value="60"/>
    <add key="Theme" value="dark"/>
  </appSettings>
  <connection server="db1" pool="10">secondary</connection>
</configuration>
"""

TARGET_CONFIG = """
<configuration>
  <!-- shipped defaults -->
  <appSettings>
    <add key="Timeout" value="30"/>
    <add key="Legacy" value="yes"/>
    <add key="NewFeature" value="on"/>
  </appSettings>
  <connection server="db1" retries="3">primary</connection>
  <logging level="info"/>
</configuration>
"""

MERGED_CONFIG = """
<configuration>
  <!-- shipped defaults -->
  <appSettings>
    <add key="Timeout" value="60"/>
    <add key="NewFeature" value="on"/>
    <add key="Theme" value="dark"/>
  </appSettings>
  <connection server="db1" pool="10">secondary</connection>
  <logging level="info"/>
</configuration>
"""


def canonical_text(document: etree._ElementTree | str) -> str:
    """Serialize a document, or parse-then-serialize text, without formatting."""
    tree = parse_document(document) if isinstance(document, str) else document
    return etree.tostring(tree.getroot(), encoding="unicode")


@pytest.fixture
def canonical() -> Callable[[etree._ElementTree | str], str]:
    """Return a helper producing comparable document text."""
    return canonical_text


@pytest.fixture
def samples() -> dict[str, str]:
    """Return the sample original, modified, target and expected merged documents."""
    return {
        "original": ORIGINAL_CONFIG,
        "modified": MODIFIED_CONFIG,
        "target": TARGET_CONFIG,
        "merged": MERGED_CONFIG,
    }


@pytest.fixture
def log_stream() -> io.StringIO:
    """Capture structured log output."""
    return io.StringIO()


@pytest.fixture
def logger(log_stream: io.StringIO) -> StructuredLogger:
    """Return a JSON logger writing to :func:`log_stream`."""
    return StructuredLogger(name="xmldiffmerge.test", json_mode=True, stream=log_stream)


@pytest.fixture
def config_files(tmp_path: Path) -> dict[str, Path]:
    """Write the sample original, modified and target documents to disk."""
    files = {
        "original": tmp_path / "original.config",
        "modified": tmp_path / "modified.config",
        "target": tmp_path / "shipped.config",
    }
    files["original"].write_text(ORIGINAL_CONFIG.strip() + "\n", encoding="utf-8")
    files["modified"].write_text(MODIFIED_CONFIG.strip() + "\n", encoding="utf-8")
    files["target"].write_text(TARGET_CONFIG.strip() + "\n", encoding="utf-8")
    return files


__all__ = [
    "MERGED_CONFIG",
    "MODIFIED_CONFIG",
    "ORIGINAL_CONFIG",
    "TARGET_CONFIG",
    "canonical_text",
]
