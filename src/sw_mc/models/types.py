"""Pydantic models for the value types shared across microcontroller elements."""

from __future__ import annotations

from enum import IntEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Enums ---

class SignalType(IntEnum):
    """Signal carried by a wire or IO node (the schema's ``type`` code)."""

    ON_OFF = 0
    NUMBER = 1
    POWER = 2
    FLUID = 3
    ELECTRIC = 4
    COMPOSITE = 5
    VIDEO = 6
    AUDIO = 7
    ROPE = 8


class NodeMode(IntEnum):
    OUTPUT = 0
    INPUT = 1


# --- Preserved markup ---

class XmlNode(BaseModel):
    """A raw element kept verbatim because the schema does not model it."""

    tag: str
    attributes: dict[str, str] = Field(default_factory=dict)
    children: list[XmlNode] = Field(default_factory=list)
    text: Optional[str] = None


class Extras(BaseModel):
    """Unknown content of one element, plus the order it was read in.

    ``attribute_order`` lists every attribute name of the source element,
    known or not. ``child_order`` lists one key per source child: the tag for
    a modeled child, ``#<i>`` for ``children[i]``.
    """

    attributes: dict[str, str] = Field(default_factory=dict)
    children: list[XmlNode] = Field(default_factory=list)
    attribute_order: list[str] = Field(default_factory=list)
    child_order: list[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.attributes and not self.children


class ElementBase(BaseModel):
    """Base for every modeled element: carries its preserved unknown content."""

    model_config = ConfigDict(validate_assignment=True)

    extras: Extras = Field(default_factory=Extras)


# --- Geometry ---

class Position(ElementBase):
    """Logic-view position of a component (``<pos x y>``). One grid square is 0.25."""

    x: float = 0.0
    y: float = 0.0

    def is_origin(self) -> bool:
        return self.x == 0 and self.y == 0


class NodePosition(ElementBase):
    """Design-view position of an IO node (``<position x z>``)."""

    x: float = 0.0
    z: float = 0.0

    def is_origin(self) -> bool:
        return self.x == 0 and self.z == 0


# --- Property values ---

class NumberText(ElementBase):
    """A number setting as typed by the player plus the value it evaluates to."""

    text: str = Field(description="Text as entered in the game, kept verbatim")
    value: float = Field(default=0.0, description="Numeric value of the text")

    @classmethod
    def from_value(cls, value: float) -> NumberText:
        from sw_mc.codec.primitives import format_float

        return cls(text=format_float(value), value=value)


class DropdownItem(ElementBase):
    label: str
    value: NumberText


class DropdownList(ElementBase):
    items: list[DropdownItem] = Field(default_factory=list)


class ScriptBlock(BaseModel):
    """Lua source attached to a script component, stored exactly as read."""

    source: str = ""
