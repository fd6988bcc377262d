"""Configuration loading utilities for xmldiffmerge."""

from __future__ import annotations

import tomllib
from collections.abc import Mapping as MappingABC
from pathlib import Path
from typing import Any, cast
from collections.abc import Mapping

from xmldiffmerge.core.models import Config


def default_config() -> Config:
    """Return the configuration used when no config file is provided."""
    return Config()


def load_config(
    *,
    path: Path | str | None = None,
    data: str | bytes | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Config:
    """Load and validate configuration from TOML data.

    Exactly one of ``path`` or ``data`` must be provided. ``overrides`` allows
    callers to patch specific tables before validation, which is useful for
    CLI flags or tests.
    """
    if (path is None and data is None) or (path is not None and data is not None):
        msg = "Provide exactly one of 'path' or 'data' when loading configuration."
        raise ValueError(msg)

    raw_content: dict[str, Any]
    if path is not None:
        raw_content = tomllib.loads(_read_config_file(Path(path)))
    else:
        if data is None:
            msg = "Configuration data must be provided when path is omitted."
            raise ValueError(msg)
        text = data if isinstance(data, str) else data.decode()
        raw_content = tomllib.loads(text)

    if overrides is not None:
        typed_overrides: dict[str, Any] = {str(key): value for key, value in overrides.items()}
        raw_content = _merge_dicts(dict(raw_content), typed_overrides)

    normalised = _normalise(raw_content)

    return Config.model_validate(normalised)


def _read_config_file(path: Path) -> str:
    if not path.exists():
        raise FileNotFoundError(path)
    if not path.is_file():
        msg = f"Configuration path is not a file: {path}"
        raise ValueError(msg)
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Unable to read configuration file {path}: {exc}"
        raise ValueError(msg) from exc


def _merge_dicts(base: dict[str, Any], updates: Mapping[str, Any]) -> dict[str, Any]:
    for key, value in updates.items():
        if (
            key in base
            and isinstance(base[key], MappingABC)
            and isinstance(value, MappingABC)
        ):
            nested_base = cast("dict[str, Any]", dict(base[key]))
            nested_updates = cast("Mapping[str, Any]", value)
            base[key] = _merge_dicts(nested_base, nested_updates)
        else:
            base[key] = value
    return base


def _normalise(raw: Mapping[str, Any]) -> dict[str, Any]:
    identity = raw.get("identity", {})
    diff = raw.get("diff", {})
    logging = raw.get("logging", {})

    config_dict: dict[str, Any] = {
        "temporary_keys": list(raw.get("temporary_keys", [])),
    }
    optional: dict[str, Any] = {
        "identifiers": identity.get("identifiers", raw.get("identifiers")),
        "default_namespace_prefix": identity.get(
            "default_namespace_prefix", raw.get("default_namespace_prefix"),
        ),
        "compact_diff": diff.get("compact", raw.get("compact_diff")),
        "json_logs": logging.get("json", raw.get("json_logs")),
        "log_level": logging.get("level", raw.get("log_level")),
    }
    config_dict.update({key: value for key, value in optional.items() if value is not None})
    return config_dict


__all__ = ["default_config", "load_config"]
