"""sw-mc: lossless reading and writing of Stormworks microcontroller files."""

from sw_mc.models.elements import (
    BridgeComponent,
    Component,
    Connection,
    Endpoint,
    InputSlot,
    IONode,
    OutputSlot,
)
from sw_mc.models.microcontroller import Microcontroller
from sw_mc.models.types import NodeMode, Position, SignalType
from sw_mc.utils.paths import find_microcontroller_folder

__version__ = "0.1.0"

__all__ = [
    "BridgeComponent",
    "Component",
    "Connection",
    "Endpoint",
    "IONode",
    "InputSlot",
    "Microcontroller",
    "NodeMode",
    "OutputSlot",
    "Position",
    "SignalType",
    "find_microcontroller_folder",
]
