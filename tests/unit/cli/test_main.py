"""Tests covering the diff/apply/merge CLI commands."""

from __future__ import annotations

import importlib
import json
import sys
from typing import TYPE_CHECKING

import pytest
from typer.testing import CliRunner

from xmldiffmerge.cli.runtime import build_merge_context, derived_outputs
from xmldiffmerge.core.models import Config, TemporaryKeyRule
from xmldiffmerge.io.diff_format import load_diff
from xmldiffmerge.io.documents import parse_document

cli_main = importlib.import_module("xmldiffmerge.cli.main")

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from pytest_mock import MockerFixture


runner = CliRunner()


def test_diff_prints_readable_diff(config_files: dict[str, Path]) -> None:
    """Without an output file the diff is printed in the readable layout."""
    result = runner.invoke(cli_main.app, ["diff", str(config_files["original"]), str(config_files["modified"])])

    assert result.exit_code == 0, result.output
    assert "<XmlDiff" in result.output
    assert "  <Adds>" in result.output
    assert "/configuration/connection/@retries" in result.output


def test_diff_writes_compact_file(config_files: dict[str, Path], tmp_path: Path) -> None:
    """``--output`` stores the diff and prints a summary."""
    output = tmp_path / "stored.diff.xml"

    result = runner.invoke(
        cli_main.app,
        ["diff", str(config_files["original"]), str(config_files["modified"]), "-o", str(output), "--compact"],
    )

    assert result.exit_code == 0, result.output
    assert "adds=2 removes=2 changes=2" in result.output
    assert output.read_text(encoding="utf-8").startswith("<?xml")
    assert load_diff(output).entry_count == 6


def test_diff_json_output(config_files: dict[str, Path]) -> None:
    """JSON mode emits the diff model and silences log lines."""
    result = runner.invoke(
        cli_main.app,
        ["diff", str(config_files["original"]), str(config_files["modified"]), "--json"],
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["is_different"] is True
    assert payload["original_file"] == str(config_files["original"])
    assert len(payload["adds"]) == 2


def test_apply_merges_stored_diff(
    config_files: dict[str, Path],
    tmp_path: Path,
    samples: dict[str, str],
    canonical: Callable[[object], str],
) -> None:
    """A stored diff is merged into the target, in place by default."""
    stored = tmp_path / "stored.diff.xml"
    runner.invoke(
        cli_main.app,
        ["diff", str(config_files["original"]), str(config_files["modified"]), "-o", str(stored)],
    )

    result = runner.invoke(cli_main.app, ["apply", str(stored), str(config_files["target"])])

    assert result.exit_code == 0, result.output
    assert f"Merged 6 entries into {config_files['target']}" in result.output
    assert canonical(config_files["target"].read_text(encoding="utf-8")) == canonical(samples["merged"])


def test_merge_writes_diff_and_merged_copy(
    config_files: dict[str, Path],
    samples: dict[str, str],
    canonical: Callable[[object], str],
) -> None:
    """Merge keeps the target and writes both derived files beside it."""
    target = config_files["target"]
    before = target.read_text(encoding="utf-8")
    diff_path, merged_path = derived_outputs(target)

    result = runner.invoke(
        cli_main.app,
        ["merge", str(config_files["original"]), str(config_files["modified"]), str(target)],
    )

    assert result.exit_code == 0, result.output
    assert f"Diff: {diff_path} (adds=2 removes=2 changes=2)" in result.output
    assert f"Merged: {merged_path}" in result.output
    assert "[Done]" in result.output
    assert target.read_text(encoding="utf-8") == before
    assert load_diff(diff_path).entry_count == 6
    assert canonical(merged_path.read_text(encoding="utf-8")) == canonical(samples["merged"])


def test_merge_json_payload(config_files: dict[str, Path], tmp_path: Path) -> None:
    """JSON mode reports the written files and entry counts."""
    output = tmp_path / "out.config"
    diff_file = tmp_path / "out.diff.xml"

    result = runner.invoke(
        cli_main.app,
        [
            "merge",
            str(config_files["original"]),
            str(config_files["modified"]),
            str(config_files["target"]),
            "--output",
            str(output),
            "--diff-file",
            str(diff_file),
            "--json",
        ],
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload == {
        "diff_file": str(diff_file),
        "merged_file": str(output),
        "success": True,
        "adds": 2,
        "removes": 2,
        "changes": 2,
    }
    assert output.exists()


def test_missing_document_exits_with_error(config_files: dict[str, Path], tmp_path: Path) -> None:
    """Unreadable inputs are reported with exit code 1."""
    result = runner.invoke(
        cli_main.app,
        ["diff", str(tmp_path / "missing.config"), str(config_files["modified"])],
    )

    assert result.exit_code == 1
    assert "file not found" in result.output


def test_missing_config_exits_with_usage_error(config_files: dict[str, Path], tmp_path: Path) -> None:
    """A missing configuration file is reported with exit code 2."""
    result = runner.invoke(
        cli_main.app,
        [
            "diff",
            str(config_files["original"]),
            str(config_files["modified"]),
            "--config",
            str(tmp_path / "missing.toml"),
        ],
    )

    assert result.exit_code == 2
    assert "Configuration file not found" in result.output


def test_config_file_controls_identifiers(config_files: dict[str, Path], tmp_path: Path) -> None:
    """Identifier lists from the configuration change the diff paths."""
    config_path = tmp_path / "xmldiffmerge.toml"
    config_path.write_text('[identity]\nidentifiers = ["value"]\n', encoding="utf-8")

    result = runner.invoke(
        cli_main.app,
        [
            "diff",
            str(config_files["original"]),
            str(config_files["modified"]),
            "--config",
            str(config_path),
            "--json",
        ],
    )

    assert result.exit_code == 0, result.output
    paths = [entry["xpath"] for entry in json.loads(result.stdout)["adds"]]
    assert "/configuration/appSettings/add[@value='dark']/@key" in paths


def test_main_returns_exit_status(config_files: dict[str, Path], tmp_path: Path) -> None:
    """The console entry point returns status codes instead of exiting."""
    output = tmp_path / "main.diff.xml"

    ok = cli_main.main(["diff", str(config_files["original"]), str(config_files["modified"]), "-o", str(output)])
    failed = cli_main.main(["apply", str(tmp_path / "missing.diff.xml"), str(config_files["target"])])

    assert ok == 0
    assert output.exists()
    assert failed == 1


def test_context_wires_key_hooks_only_with_rules(config_files: dict[str, Path], mocker: MockerFixture) -> None:
    """Temporary key hooks are passed to the engines only when configured."""
    plain = build_merge_context(Config(), json_logs=True, silence_logs=True)
    keyed = build_merge_context(
        Config(temporary_keys=[TemporaryKeyRule(tag="add", attribute="name", depth=1)]),
        json_logs=True,
        silence_logs=True,
    )
    spy = mocker.patch("xmldiffmerge.cli.runtime.diff_files", autospec=True)

    plain.compute_diff(config_files["original"], config_files["modified"])
    keyed.compute_diff(config_files["original"], config_files["modified"])

    first, second = spy.call_args_list
    assert first.kwargs["pre_process"] is None
    assert second.kwargs["pre_process"] == keyed.keys.pre_process_pair


def test_main_reads_process_arguments(
    config_files: dict[str, Path],
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Without an explicit argv the console script reads ``sys.argv``."""
    output = tmp_path / "argv.diff.xml"
    monkeypatch.setattr(
        sys,
        "argv",
        ["xmldiffmerge", "diff", str(config_files["original"]), str(config_files["modified"]), "-o", str(output)],
    )

    assert cli_main.main() == 0
    assert load_diff(output).entry_count == 6


def test_main_reports_usage_errors_as_exit_code(capsys: pytest.CaptureFixture[str]) -> None:
    """Missing arguments print a usage error and return exit code 2."""
    status = cli_main.main(["diff"])

    assert status == 2
    captured = capsys.readouterr()
    assert "Missing argument" in captured.err + captured.out


def test_context_passes_namespace_prefix_to_key_hooks() -> None:
    """Temporary keys match default-namespace tags through the configured prefix."""
    context = build_merge_context(
        Config(
            default_namespace_prefix="d",
            temporary_keys=[TemporaryKeyRule(tag="d:location", attribute="name", depth=1)],
        ),
        json_logs=True,
        silence_logs=True,
    )
    tree = parse_document('<c xmlns="urn:d"><location><x/></location></c>')

    assert context.keys.assign(tree) == 1
    assert tree.getroot()[0].get("name") == "d:x"
