"""Locating the game's saved microcontrollers on this machine."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Iterator, Optional

from sw_mc.config import SwMcConfig
from sw_mc.logging_config import get_logger
from sw_mc.models.errors import MicrocontrollerFolderNotFoundError
from sw_mc.models.microcontroller import Microcontroller

logger = get_logger("paths")

MICROCONTROLLER_SUBDIR = Path("Stormworks") / "data" / "microprocessors"
MICROCONTROLLER_EXT = ".xml"


def get_platform() -> str:
    """Return the current platform identifier."""
    if sys.platform == "win32":
        return "windows"
    elif sys.platform == "darwin":
        return "macos"
    return "linux"


def get_data_dir() -> Optional[Path]:
    """Per-user application data directory, as the game resolves it."""
    platform = get_platform()

    if platform == "windows":
        appdata = os.environ.get("APPDATA")
        return Path(appdata) if appdata else None

    elif platform == "macos":
        return Path.home() / "Library" / "Application Support"

    else:  # linux
        data_home = os.environ.get("XDG_DATA_HOME")
        if data_home:
            return Path(data_home)
        return Path.home() / ".local" / "share"


def find_microcontroller_folder(config: Optional[SwMcConfig] = None) -> Path:
    """Find the folder the game saves microcontrollers to.

    Args:
        config: Settings; ``microcontroller_dir`` overrides discovery.

    Returns:
        Path to an existing directory.

    Raises:
        MicrocontrollerFolderNotFoundError: No such directory on this machine.
    """
    if config is not None and config.microcontroller_dir is not None:
        folder = Path(config.microcontroller_dir)
        if folder.is_dir():
            logger.debug("Using configured microcontroller folder: %s", folder)
            return folder
        raise MicrocontrollerFolderNotFoundError(
            f"Configured microcontroller folder does not exist: {folder}",
            details={"path": str(folder)},
        )

    data_dir = get_data_dir()
    if data_dir is None:
        raise MicrocontrollerFolderNotFoundError(
            "Cannot determine the application data directory",
            details={"platform": get_platform()},
        )

    folder = data_dir / MICROCONTROLLER_SUBDIR
    if not folder.is_dir():
        raise MicrocontrollerFolderNotFoundError(
            f"Microcontroller folder not found: {folder}",
            details={"path": str(folder), "platform": get_platform()},
        )
    logger.debug("Found microcontroller folder: %s", folder)
    return folder


def list_microcontroller_files(folder: Path) -> list[Path]:
    """Saved microcontroller files in ``folder``, sorted by name."""
    return sorted(
        p for p in Path(folder).iterdir()
        if p.is_file() and p.suffix.lower() == MICROCONTROLLER_EXT
    )


def load_microcontrollers(
    folder: Optional[Path] = None,
    config: Optional[SwMcConfig] = None,
) -> Iterator[tuple[Path, Microcontroller]]:
    """Parse every saved microcontroller in a folder.

    Args:
        folder: Folder to read. Discovered with ``find_microcontroller_folder``
            when omitted.
        config: Settings for discovery and ``preserve_unknown``.

    Raises:
        MicrocontrollerFolderNotFoundError: No folder given and none found.
        ParseError: A file is not a valid microcontroller.
    """
    config = config or SwMcConfig()
    if folder is None:
        folder = find_microcontroller_folder(config)
    for path in list_microcontroller_files(folder):
        yield path, Microcontroller.from_file(path, preserve_unknown=config.preserve_unknown)
