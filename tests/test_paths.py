"""Tests for locating and loading saved microcontrollers."""

from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from sw_mc.config import SwMcConfig
from sw_mc.models.errors import MicrocontrollerFolderNotFoundError, ParseError
from sw_mc.utils import paths
from sw_mc.utils.paths import (
    MICROCONTROLLER_SUBDIR,
    find_microcontroller_folder,
    list_microcontroller_files,
    load_microcontrollers,
)


@pytest.fixture
def game_folder(tmp_path: Path, fixtures_dir: Path) -> Path:
    folder = tmp_path / "microprocessors"
    folder.mkdir()
    for name in ("adder.xml", "blank.xml"):
        shutil.copy(fixtures_dir / name, folder / name)
    (folder / "notes.txt").write_text("not a microcontroller")
    (folder / "nested.xml").mkdir()
    return folder


class TestPlatform:
    def test_linux_uses_xdg_data_home(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr(paths, "get_platform", lambda: "linux")
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
        assert paths.get_data_dir() == tmp_path

    def test_linux_default(self, monkeypatch):
        monkeypatch.setattr(paths, "get_platform", lambda: "linux")
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        assert paths.get_data_dir() == Path.home() / ".local" / "share"

    def test_windows_appdata(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr(paths, "get_platform", lambda: "windows")
        monkeypatch.setenv("APPDATA", str(tmp_path))
        assert paths.get_data_dir() == tmp_path

    def test_windows_without_appdata(self, monkeypatch):
        monkeypatch.setattr(paths, "get_platform", lambda: "windows")
        monkeypatch.delenv("APPDATA", raising=False)
        assert paths.get_data_dir() is None

    def test_macos(self, monkeypatch):
        monkeypatch.setattr(paths, "get_platform", lambda: "macos")
        assert paths.get_data_dir() == Path.home() / "Library" / "Application Support"


class TestFindFolder:
    def test_discovered_under_data_dir(self, tmp_path: Path, monkeypatch):
        folder = tmp_path / MICROCONTROLLER_SUBDIR
        folder.mkdir(parents=True)
        monkeypatch.setattr(paths, "get_data_dir", lambda: tmp_path)
        assert find_microcontroller_folder() == folder

    def test_not_installed(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr(paths, "get_data_dir", lambda: tmp_path)
        with pytest.raises(MicrocontrollerFolderNotFoundError) as exc_info:
            find_microcontroller_folder()
        assert exc_info.value.details["path"] == str(tmp_path / MICROCONTROLLER_SUBDIR)

    def test_no_data_dir(self, monkeypatch):
        monkeypatch.setattr(paths, "get_data_dir", lambda: None)
        with pytest.raises(MicrocontrollerFolderNotFoundError):
            find_microcontroller_folder()

    def test_config_override(self, game_folder: Path, monkeypatch):
        monkeypatch.setattr(paths, "get_data_dir", lambda: None)
        config = SwMcConfig(microcontroller_dir=game_folder)
        assert find_microcontroller_folder(config) == game_folder

    def test_config_override_missing(self, tmp_path: Path):
        config = SwMcConfig(microcontroller_dir=tmp_path / "absent")
        with pytest.raises(MicrocontrollerFolderNotFoundError):
            find_microcontroller_folder(config)


class TestListAndLoad:
    def test_lists_xml_files_only(self, game_folder: Path):
        files = list_microcontroller_files(game_folder)
        assert [f.name for f in files] == ["adder.xml", "blank.xml"]

    def test_load_folder(self, game_folder: Path):
        loaded = dict(load_microcontrollers(game_folder))
        assert loaded[game_folder / "adder.xml"].name == "Adder"
        assert loaded[game_folder / "blank.xml"].components == []

    def test_load_from_config(self, game_folder: Path):
        config = SwMcConfig(microcontroller_dir=game_folder)
        names = [mc.name for _, mc in load_microcontrollers(config=config)]
        assert names == ["Adder", "New microcontroller"]

    def test_bad_file_raises(self, game_folder: Path):
        (game_folder / "broken.xml").write_text("<microprocessor")
        with pytest.raises(ParseError):
            list(load_microcontrollers(game_folder))
