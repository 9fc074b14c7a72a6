"""Configuration management using Pydantic Settings."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class SwMcConfig(BaseSettings):
    """Settings for sw-mc, loaded from ``SW_MC_*`` environment variables or ``.env``."""

    model_config = {"env_prefix": "SW_MC_", "env_file": ".env", "extra": "ignore"}

    log_level: LogLevel = Field(
        default=LogLevel.WARNING,
        description="Logging level used by setup_logging_from_config",
    )
    log_file: Optional[Path] = Field(
        default=None,
        description="Path to a log file. No file logging when unset",
    )
    microcontroller_dir: Optional[Path] = Field(
        default=None,
        description="Explicit microcontroller folder. Skips platform discovery",
    )
    preserve_unknown: bool = Field(
        default=True,
        description="Keep unknown attributes and elements instead of rejecting them",
    )

    def get_data_dir(self) -> Path:
        """Per-user directory for sw-mc's own files."""
        if os.name == "nt":
            base = Path(os.environ.get("USERPROFILE", Path.home()))
        else:
            base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
        return base / ".sw-mc"

    def get_log_file_path(self) -> Path:
        """Resolve the log file path, creating its directory."""
        path = self.log_file or self.get_data_dir() / "logs" / "sw-mc.log"
        path.parent.mkdir(parents=True, exist_ok=True)
        return path
