"""Logging configuration primitives for structured logging."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class LogConfig(BaseModel):
    """Where structured log lines go and from which level."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    level: str = "INFO"
    console_output: bool = True
    console_stream: Any = None
    file_path: str | None = None

    @field_validator("level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.strip().upper()


__all__ = ["LogConfig"]
