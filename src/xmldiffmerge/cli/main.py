"""CLI entry point for xmldiffmerge built with Typer."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import typer

from xmldiffmerge.cli.runtime import (
    MergeContext,
    build_merge_context,
    derived_outputs,
    load_cli_config,
)
from xmldiffmerge.core.errors import XmlMergeError
from xmldiffmerge.io.diff_format import load_diff, save_diff, serialize_diff

if TYPE_CHECKING:
    from collections.abc import Sequence

    from xmldiffmerge.core.models import XmlDiff


app = typer.Typer(add_completion=False, no_args_is_help=True)


def _emit_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False))


def _prepare_context(config_path: Path | None, *, json_logs: bool, silence_logs: bool) -> MergeContext:
    try:
        config = load_cli_config(config_path)
    except FileNotFoundError as exc:
        typer.echo(f"Configuration file not found: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc

    return build_merge_context(config, json_logs=json_logs, silence_logs=silence_logs)


def _fail(exc: Exception) -> typer.Exit:
    typer.echo(str(exc), err=True)
    return typer.Exit(code=1)


def _summary(diff: XmlDiff) -> str:
    return f"adds={len(diff.adds)} removes={len(diff.removes)} changes={len(diff.changes)}"


@app.callback()
def cli_root() -> None:
    """Diff two similar XML documents and merge the result into a third."""


ConfigOption = Annotated[Path | None, typer.Option(help="Path to a configuration TOML.")]
OutputOption = Annotated[Path | None, typer.Option("--output", "-o", help="Write the result to this file.")]
JsonFlag = Annotated[
    bool,
    typer.Option("--json", "--json-output", help="Emit JSON instead of text."),
]


@app.command("diff")
def diff_command(
    original: Annotated[Path, typer.Argument(help="Original, unmodified document.")],
    modified: Annotated[Path, typer.Argument(help="Modified copy of the original.")],
    output: OutputOption = None,
    compact: Annotated[
        bool | None,
        typer.Option("--compact/--readable", help="Serialized diff layout; defaults to the config value."),
    ] = None,
    config: ConfigOption = None,
    json_output: JsonFlag = False,
) -> None:
    """Compute the differences between ORIGINAL and MODIFIED."""
    context = _prepare_context(config, json_logs=json_output, silence_logs=json_output)
    try:
        diff = context.compute_diff(original, modified)
    except (XmlMergeError, FileNotFoundError) as exc:
        raise _fail(exc) from exc

    use_compact = context.config.compact_diff if compact is None else compact
    if output is not None:
        save_diff(output, diff, compact=use_compact)

    if json_output:
        payload = diff.model_dump(mode="json")
        payload["is_different"] = diff.is_different
        _emit_json(payload)
        return
    if output is not None:
        typer.echo(f"Wrote {output} ({_summary(diff)})")
        return
    typer.echo(serialize_diff(diff, compact=use_compact))


@app.command("apply")
def apply_command(
    diff_file: Annotated[Path, typer.Argument(help="Stored diff produced by the diff command.")],
    target: Annotated[Path, typer.Argument(help="Document receiving the differences.")],
    output: OutputOption = None,
    config: ConfigOption = None,
    json_output: JsonFlag = False,
) -> None:
    """Apply a stored diff to TARGET."""
    context = _prepare_context(config, json_logs=json_output, silence_logs=json_output)
    try:
        diff = load_diff(diff_file)
        success = context.apply(diff, target, output)
    except (XmlMergeError, FileNotFoundError) as exc:
        raise _fail(exc) from exc

    destination = output or target
    if json_output:
        _emit_json({"target": str(destination), "success": success, "entries": diff.entry_count})
        return
    typer.echo(f"Merged {diff.entry_count} entries into {destination}")


@app.command("merge")
def merge_command(
    original: Annotated[Path, typer.Argument(help="Original, unmodified document.")],
    modified: Annotated[Path, typer.Argument(help="Modified copy of the original.")],
    target: Annotated[Path, typer.Argument(help="Independently evolved document to merge into.")],
    output: OutputOption = None,
    diff_file: Annotated[
        Path | None,
        typer.Option(help="Where to keep the computed diff; defaults to <target>.diff.xml."),
    ] = None,
    config: ConfigOption = None,
    json_output: JsonFlag = False,
) -> None:
    """Diff ORIGINAL and MODIFIED and merge the result into a copy of TARGET."""
    context = _prepare_context(config, json_logs=json_output, silence_logs=json_output)
    default_diff, default_merged = derived_outputs(target)
    diff_path = diff_file or default_diff
    merged_path = output or default_merged
    try:
        diff = context.compute_diff(original, modified)
        save_diff(diff_path, diff, compact=context.config.compact_diff)
        success = context.apply(diff, target, merged_path)
    except (XmlMergeError, FileNotFoundError) as exc:
        raise _fail(exc) from exc

    if json_output:
        _emit_json(
            {
                "diff_file": str(diff_path),
                "merged_file": str(merged_path),
                "success": success,
                "adds": len(diff.adds),
                "removes": len(diff.removes),
                "changes": len(diff.changes),
            },
        )
        return
    lines = [
        f"Diff: {diff_path} ({_summary(diff)})",
        f"Merged: {merged_path}",
        "[Done]",
    ]
    typer.echo("\n".join(lines))


def main(argv: Sequence[str] | None = None) -> int:
    """Execute the xmldiffmerge CLI and return the exit status.

    ``argv`` defaults to ``sys.argv``. Usage errors are reported by click and
    surface as exit code 2.
    """
    command = typer.main.get_command(app)
    args = None if argv is None else list(argv)
    try:
        command.main(args=args, prog_name="xmldiffmerge", standalone_mode=True)
    except SystemExit as exc:
        # standalone mode always finishes through sys.exit
        code = exc.code
        if code is None:
            return 0
        return code if isinstance(code, int) else 1
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    raise SystemExit(main())
