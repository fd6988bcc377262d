"""Structured logging utilities."""

from __future__ import annotations

import json
from collections.abc import Mapping as MappingABC
from datetime import datetime, UTC
import re
from typing import Any, TextIO, cast
from collections.abc import Mapping

from pydantic import BaseModel, SecretStr, field_validator

_LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


class _SanitizedText(BaseModel):
    """Model that normalises sensitive fragments in log text."""

    text: SecretStr

    @field_validator("text", mode="before")
    @classmethod
    def _mask_sensitive_data(cls, value: Any) -> str:
        text = str(value)
        # connection strings and app settings routinely carry credentials
        patterns = [
            (r"://[^:/@\s]+:[^@\s]+@", "://***:***@"),
            (r"\b(password|pwd|token|secret)(\s*[=:]\s*)[^;\s\"'<>]+", r"\1\2***"),
        ]
        for pattern, replacement in patterns:
            text = re.sub(pattern, replacement, text, flags=re.IGNORECASE)
        return text


def _sanitize_log_output(text: str) -> str:
    """Mask sensitive fragments in the provided text."""
    sanitized = _SanitizedText.model_validate({"text": text})
    return sanitized.text.get_secret_value()


def _sanitize_log_value(value: Any) -> Any:
    """Apply sanitisation recursively to structured log data."""
    if isinstance(value, str):
        return _sanitize_log_output(value)
    if isinstance(value, MappingABC):
        typed_mapping = cast("Mapping[Any, Any]", value)
        sanitised_mapping: dict[Any, Any] = {}
        for key, item in typed_mapping.items():
            sanitised_mapping[key] = _sanitize_log_value(item)
        return sanitised_mapping
    if isinstance(value, (list, tuple)):
        typed_items = cast("list[Any]", value)
        return [_sanitize_log_value(item) for item in typed_items]
    return value


class StructuredLogger:
    """Simple structured logger supporting JSON lines and text output."""

    def __init__(
        self,
        *,
        name: str,
        json_mode: bool = False,
        stream: TextIO | None = None,
        level: str = "DEBUG",
    ) -> None:
        """Initialise the structured logger."""
        if level.upper() not in _LEVELS:
            msg = f"unknown log level: {level}"
            raise ValueError(msg)
        self._name = name
        self._json_mode = json_mode
        self._stream: TextIO = stream or _default_stream()
        self._threshold = _LEVELS[level.upper()]

    @property
    def name(self) -> str:
        """Return the logger name."""
        return self._name

    @property
    def json_mode(self) -> bool:
        """Return whether JSON mode is enabled."""
        return self._json_mode

    def child(self, suffix: str) -> StructuredLogger:
        """Return a logger sharing this one's settings under ``name.suffix``."""
        logger = StructuredLogger(name=f"{self._name}.{suffix}", json_mode=self._json_mode, stream=self._stream)
        logger._threshold = self._threshold
        return logger

    def debug(self, message: str, **fields: Any) -> None:
        """Log a DEBUG-level message."""
        self._emit("DEBUG", message, fields)

    def info(self, message: str, **fields: Any) -> None:
        """Log an INFO-level message."""
        self._emit("INFO", message, fields)

    def warning(self, message: str, **fields: Any) -> None:
        """Log a WARNING-level message."""
        self._emit("WARNING", message, fields)

    def error(self, message: str, **fields: Any) -> None:
        """Log an ERROR-level message."""
        self._emit("ERROR", message, fields)

    def _emit(self, level: str, message: str, fields: dict[str, Any]) -> None:
        if _LEVELS[level] < self._threshold:
            return
        timestamp = datetime.now(UTC).isoformat()
        sanitised_message = _sanitize_log_output(message)
        sanitised_fields = {key: _sanitize_log_value(value) for key, value in fields.items()}
        if self._json_mode:
            payload: dict[str, Any] = {
                "timestamp": timestamp,
                "level": level,
                "logger": self._name,
                "message": sanitised_message,
            }
            payload.update(sanitised_fields)
            self._stream.write(json.dumps(payload, ensure_ascii=False) + "\n")
        else:
            line = f"[{timestamp}] {level:<7} {self._name}: {sanitised_message}"
            if sanitised_fields:
                extras = " ".join(
                    f"{key}={json.dumps(value, ensure_ascii=False)}" for key, value in sanitised_fields.items()
                )
                line = f"{line} | {extras}"
            self._stream.write(line + "\n")
        self._stream.flush()


def _default_stream() -> TextIO:
    import sys

    return sys.stderr


__all__ = ["StructuredLogger"]
