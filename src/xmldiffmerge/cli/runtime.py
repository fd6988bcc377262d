"""Helpers shared across CLI commands for diffing and merging."""

from __future__ import annotations

import io
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from xmldiffmerge.core.align import diff_files
from xmldiffmerge.core.patch import apply_diff_to_file
from xmldiffmerge.io import StructuredLogger, default_config, load_config
from xmldiffmerge.plugins.temporary_keys import TemporaryKeys

if TYPE_CHECKING:
    from xmldiffmerge.core.models import Config, XmlDiff


@dataclass(slots=True)
class MergeContext:
    """Container bundling CLI dependencies for diffing and merging."""

    config: Config
    logger: StructuredLogger
    keys: TemporaryKeys

    def compute_diff(self, original: Path, modified: Path) -> XmlDiff:
        """Diff ``original`` against ``modified`` using the configured hooks."""
        return diff_files(
            original,
            modified,
            pre_process=self.keys.pre_process_pair if self.keys.rules else None,
            config=self.config,
            logger=self.logger.child("diff"),
        )

    def apply(self, diff: XmlDiff, target: Path, output: Path | None = None) -> bool:
        """Merge ``diff`` into ``target``, writing to ``output`` when given."""
        return apply_diff_to_file(
            target,
            diff,
            pre_process=self.keys.pre_process if self.keys.rules else None,
            post_process=self.keys.post_process if self.keys.rules else None,
            output=output,
            default_prefix=self.config.default_namespace_prefix,
            logger=self.logger.child("patch"),
        )


def load_cli_config(config_path: Path | None) -> Config:
    """Load configuration from ``config_path`` or fall back to defaults."""
    if config_path is None:
        return default_config()
    return load_config(path=config_path)


def build_merge_context(
    config: Config,
    *,
    json_logs: bool,
    silence_logs: bool,
) -> MergeContext:
    """Assemble the context required by CLI commands."""
    stream = io.StringIO() if silence_logs else sys.stderr
    logger = StructuredLogger(
        name="xmldiffmerge",
        json_mode=json_logs or config.json_logs,
        stream=stream,
        level=config.log_level,
    )
    keys = TemporaryKeys(
        config.temporary_keys,
        default_prefix=config.default_namespace_prefix,
        logger=logger.child("keys"),
    )
    return MergeContext(config=config, logger=logger, keys=keys)


def derived_outputs(target: Path) -> tuple[Path, Path]:
    """Return the default diff file and merged file paths for ``target``.

    ``app.config`` yields ``app.diff.xml`` and ``app.merged.config`` beside it.
    """
    directory = target.parent
    return directory / f"{target.stem}.diff.xml", directory / f"{target.stem}.merged{target.suffix}"


__all__ = ["MergeContext", "build_merge_context", "derived_outputs", "load_cli_config"]
