"""Shared test fixtures and sample microcontrollers."""

from __future__ import annotations

from pathlib import Path

import pytest

from sw_mc.models.microcontroller import Microcontroller
from sw_mc.models.types import NodeMode, Position, SignalType

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def read_fixture(name: str) -> str:
    """Fixture text exactly as stored, without newline translation."""
    return (FIXTURES_DIR / name).read_bytes().decode("utf-8")


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def blank_xml() -> str:
    return read_fixture("blank.xml")


@pytest.fixture
def adder_xml() -> str:
    return read_fixture("adder.xml")


@pytest.fixture
def features_xml() -> str:
    return read_fixture("features.xml")


@pytest.fixture
def adder(adder_xml: str) -> Microcontroller:
    return Microcontroller.from_text(adder_xml)


@pytest.fixture
def features(features_xml: str) -> Microcontroller:
    return Microcontroller.from_text(features_xml)


@pytest.fixture
def built_adder() -> Microcontroller:
    """Two number inputs summed into one number output, built in memory."""
    mc = Microcontroller.new(name="Built adder", width=2, length=1)
    mc.add_io(SignalType.NUMBER, NodeMode.INPUT, label="A")
    mc.add_io(SignalType.NUMBER, NodeMode.INPUT, label="B")
    mc.add_io(SignalType.NUMBER, NodeMode.OUTPUT, label="Sum")
    mc.add_component("add", Position(x=0.5, y=-1.25))
    return mc
