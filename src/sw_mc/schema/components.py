"""Registry of every logic and bridge component kind the game writes."""

from __future__ import annotations

from sw_mc.codec.primitives import ValueKind
from sw_mc.models.types import DropdownList, SignalType
from sw_mc.schema.fields import (
    AttributeSpec,
    ChildSpec,
    ComponentKind,
    KindRegistry,
    PortSpec,
    PropertyValues,
)

ON_OFF = SignalType.ON_OFF
NUMBER = SignalType.NUMBER
COMPOSITE = SignalType.COMPOSITE
VIDEO = SignalType.VIDEO
AUDIO = SignalType.AUDIO

# Composite writers address channels 1..32 plus a start-channel slot
COMPOSITE_CHANNELS = 32
VARIABLE_CHANNEL = -1


def _ports(prefix: str, specs: tuple[tuple[str, SignalType], ...]) -> tuple[PortSpec, ...]:
    return tuple(PortSpec(name, f"{prefix}{i}", signal) for i, (name, signal) in enumerate(specs, 1))


def _in(*specs: tuple[str, SignalType]) -> tuple[PortSpec, ...]:
    return _ports("in", specs)


def _out(*specs: tuple[str, SignalType]) -> tuple[PortSpec, ...]:
    return _ports("out", specs)


def _expression() -> AttributeSpec:
    return AttributeSpec("expression", "e", ValueKind.STRING, default="")


def _number(name: str, tag: str | None = None) -> ChildSpec:
    return ChildSpec(name, tag or name)


def _gate(code: int, name: str) -> ComponentKind:
    return ComponentKind(code, name, _in(("input_a", ON_OFF), ("input_b", ON_OFF)), _out(("out", ON_OFF)))


def _arithmetic(code: int, name: str, result: SignalType = NUMBER) -> ComponentKind:
    return ComponentKind(code, name, _in(("input_a", NUMBER), ("input_b", NUMBER)), _out(("out", result)))


def _switchbox(code: int, name: str, signal: SignalType) -> ComponentKind:
    return ComponentKind(
        code, name, _in(("on", signal), ("off", signal), ("switch", ON_OFF)), _out(("out", signal))
    )


def _timer(code: int, name: str, output: str, resettable: bool) -> ComponentKind:
    inputs = [("enable", ON_OFF), ("duration", NUMBER)]
    if resettable:
        inputs.append(("reset", ON_OFF))
    return ComponentKind(
        code,
        name,
        _in(*inputs),
        _out((output, ON_OFF)),
        attributes=(AttributeSpec("units", "u", ValueKind.UINT8, default=0),),
    )


# --- Composite channel quirks ---

def _read_channel_active(port: PortSpec, index: int, properties: PropertyValues) -> bool:
    # The variable-channel slot only exists when the channel comes from a wire
    return index != 1 or properties.get("channel") == VARIABLE_CHANNEL


def _write_channel_active(port: PortSpec, index: int, properties: PropertyValues) -> bool:
    if port.tag == "inc":
        return True
    if port.tag == "inoff":
        return properties.get("offset") == VARIABLE_CHANNEL
    count = properties.get("count") or 0
    return index <= count


def _composite_read(code: int, name: str, result: SignalType) -> ComponentKind:
    return ComponentKind(
        code,
        name,
        _in(("composite", COMPOSITE), ("variable_channel", NUMBER)),
        _out(("out", result)),
        attributes=(AttributeSpec("channel", "i", ValueKind.INT8, default=0),),
        # The game writes the variable-channel slot after the output
        port_order=("in1", "out1", "in2"),
        port_active=_read_channel_active,
    )


def _composite_write(code: int, name: str, channel: SignalType) -> ComponentKind:
    inputs = (
        (PortSpec("composite", "inc", COMPOSITE),)
        + tuple(PortSpec(f"channel_{i}", f"in{i}", channel) for i in range(1, COMPOSITE_CHANNELS + 1))
        + (PortSpec("start_channel", "inoff", NUMBER),)
    )
    return ComponentKind(
        code,
        name,
        inputs,
        _out(("out", COMPOSITE)),
        attributes=(
            AttributeSpec("count", "count", ValueKind.UINT8, default=1, required=True),
            AttributeSpec("offset", "offset", ValueKind.INT8, default=0),
        ),
        port_active=_write_channel_active,
    )


def _function(code: int, name: str, args: str, signal: SignalType) -> ComponentKind:
    return ComponentKind(
        code,
        name,
        _in(*((arg, signal) for arg in args)),
        _out(("out", signal)),
        attributes=(_expression(),),
    )


LOGIC_KINDS = KindRegistry(
    "logic",
    [
        ComponentKind(0, "not", _in(("input", ON_OFF)), _out(("out", ON_OFF))),
        _gate(1, "and"),
        _gate(2, "or"),
        _gate(3, "xor"),
        _gate(4, "nand"),
        _gate(5, "nor"),
        _arithmetic(6, "add"),
        _arithmetic(7, "subtract"),
        _arithmetic(8, "multiply"),
        ComponentKind(
            9,
            "divide",
            _in(("input_a", NUMBER), ("input_b", NUMBER)),
            _out(("out", NUMBER), ("divide_by_zero", ON_OFF)),
        ),
        _function(10, "function_3", "xyz", NUMBER),
        ComponentKind(
            11,
            "clamp",
            _in(("input", NUMBER)),
            _out(("out", NUMBER)),
            children=(_number("min"), _number("max")),
        ),
        ComponentKind(
            12,
            "threshold",
            _in(("input", NUMBER)),
            _out(("out", ON_OFF)),
            children=(_number("min"), _number("max")),
        ),
        ComponentKind(
            13,
            "memory_register",
            _in(("set", ON_OFF), ("reset", ON_OFF), ("number", NUMBER)),
            _out(("out", NUMBER)),
            children=(_number("reset_value", "r"),),
        ),
        ComponentKind(14, "abs", _in(("input", NUMBER)), _out(("out", NUMBER))),
        ComponentKind(15, "constant_number", (), _out(("out", NUMBER)), children=(_number("value", "n"),)),
        ComponentKind(16, "constant_on", (), _out(("out", ON_OFF))),
        _arithmetic(17, "greater_than", ON_OFF),
        _arithmetic(18, "less_than", ON_OFF),
        ComponentKind(
            19,
            "property_slider",
            (),
            _out(("out", NUMBER)),
            attributes=(AttributeSpec("name", "name", ValueKind.STRING, default="value"),),
            children=(_number("min"), _number("max"), _number("int"), _number("value", "v")),
        ),
        ComponentKind(
            20,
            "property_dropdown",
            (),
            _out(("out", NUMBER)),
            attributes=(AttributeSpec("name", "name", ValueKind.STRING, default="value"),),
            children=(ChildSpec("items", "items", DropdownList),),
        ),
        ComponentKind(
            21,
            "numerical_junction",
            _in(("pass", NUMBER), ("switch", ON_OFF)),
            # The game tags both outputs "out1"
            (PortSpec("on_path", "out1", NUMBER), PortSpec("off_path", "out1", NUMBER)),
        ),
        _switchbox(22, "numerical_switchbox", NUMBER),
        ComponentKind(
            23,
            "pid_controller",
            _in(("setpoint", NUMBER), ("process_variable", NUMBER), ("active", ON_OFF)),
            _out(("out", NUMBER)),
            children=(_number("kp"), _number("ki"), _number("kd")),
        ),
        ComponentKind(
            24, "sr_latch", _in(("set", ON_OFF), ("reset", ON_OFF)), _out(("out", ON_OFF), ("not_out", ON_OFF))
        ),
        ComponentKind(
            25,
            "jk_flip_flop",
            _in(("set", ON_OFF), ("reset", ON_OFF)),
            _out(("out", ON_OFF), ("not_out", ON_OFF)),
        ),
        ComponentKind(
            26,
            "capacitor",
            _in(("charge", ON_OFF)),
            _out(("stored", ON_OFF)),
            attributes=(
                AttributeSpec("charge_time", "ct", ValueKind.FLOAT, default=1.0),
                AttributeSpec("discharge_time", "dt", ValueKind.FLOAT, default=1.0),
            ),
        ),
        ComponentKind(
            27,
            "blinker",
            _in(("control", ON_OFF)),
            _out(("out", ON_OFF)),
            attributes=(
                AttributeSpec("on_duration", "on", ValueKind.FLOAT, default=1.0),
                AttributeSpec("off_duration", "off", ValueKind.FLOAT, default=1.0),
            ),
        ),
        ComponentKind(28, "push_to_toggle", _in(("toggle", ON_OFF)), _out(("state", ON_OFF))),
        _composite_read(29, "composite_read_on_off", ON_OFF),
        ComponentKind(
            30,
            "old_composite_write_on_off",
            _in(("composite", COMPOSITE), ("value", ON_OFF)),
            _out(("out", COMPOSITE)),
            attributes=(AttributeSpec("channel", "i", ValueKind.UINT8, default=0),),
        ),
        _composite_read(31, "composite_read_number", NUMBER),
        ComponentKind(
            32,
            "old_composite_write_number",
            _in(("composite", COMPOSITE), ("value", NUMBER)),
            _out(("out", COMPOSITE)),
            attributes=(AttributeSpec("channel", "i", ValueKind.UINT8, default=0),),
        ),
        ComponentKind(
            33,
            "property_toggle",
            (),
            _out(("out", ON_OFF)),
            attributes=(
                AttributeSpec("name", "n", ValueKind.STRING, default="toggle"),
                AttributeSpec("on_label", "on", ValueKind.STRING, default="on"),
                AttributeSpec("off_label", "off", ValueKind.STRING, default="off"),
                AttributeSpec("value", "v", ValueKind.BOOL, default=False),
            ),
        ),
        ComponentKind(
            34,
            "property_number",
            (),
            _out(("out", NUMBER)),
            attributes=(AttributeSpec("name", "n", ValueKind.STRING, default="number"),),
            children=(_number("value", "v"),),
        ),
        ComponentKind(35, "delta", _in(("input", NUMBER)), _out(("out", NUMBER))),
        _function(36, "function_8", "xyzwabcd", NUMBER),
        ComponentKind(
            37,
            "up_down_counter",
            _in(("up", ON_OFF), ("down", ON_OFF), ("reset", ON_OFF)),
            _out(("out", NUMBER)),
            attributes=(AttributeSpec("mode", "m", ValueKind.UINT8, default=0),),
            children=(
                _number("reset_value", "r"),
                _number("increment", "i"),
                _number("min"),
                _number("max"),
            ),
        ),
        _arithmetic(38, "modulo"),
        ComponentKind(
            39,
            "pid_controller_advanced",
            _in(
                ("setpoint", NUMBER),
                ("process_variable", NUMBER),
                ("p", NUMBER),
                ("i", NUMBER),
                ("d", NUMBER),
                ("active", ON_OFF),
            ),
            _out(("out", NUMBER)),
        ),
        _composite_write(40, "composite_write_number", NUMBER),
        _composite_write(41, "composite_write_on_off", ON_OFF),
        ComponentKind(
            42,
            "equal",
            _in(("input_a", NUMBER), ("input_b", NUMBER)),
            _out(("out", ON_OFF)),
            children=(_number("epsilon", "e"),),
        ),
        ComponentKind(
            43,
            "tooltip_number",
            _in(("number", NUMBER), ("is_error", ON_OFF)),
            (),
            attributes=(
                AttributeSpec("label", "l", ValueKind.STRING, default="", required=True),
                AttributeSpec("mode", "m", ValueKind.UINT8, default=0),
            ),
        ),
        ComponentKind(
            44,
            "tooltip_on_off",
            _in(("display", ON_OFF)),
            (),
            attributes=(
                AttributeSpec("label", "l", ValueKind.STRING, default="", required=True),
                AttributeSpec("on_label", "on", ValueKind.STRING, default="on", required=True),
                AttributeSpec("off_label", "off", ValueKind.STRING, default="off", required=True),
                AttributeSpec("mode", "m", ValueKind.UINT8, default=0),
            ),
        ),
        ComponentKind(
            45, "function_1", _in(("x", NUMBER)), _out(("out", NUMBER)), attributes=(_expression(),)
        ),
        _function(46, "function_4_bool", "xyzw", ON_OFF),
        _function(47, "function_8_bool", "xyzwabcd", ON_OFF),
        ComponentKind(
            48,
            "pulse",
            _in(("input", ON_OFF)),
            _out(("out", ON_OFF)),
            # Absent means "off to on"
            attributes=(AttributeSpec("mode", "m", ValueKind.UINT8, default=None),),
        ),
        _timer(49, "timer_ton", "complete", resettable=False),
        _timer(50, "timer_tof", "timing", resettable=False),
        _timer(51, "timer_rto", "complete", resettable=True),
        _timer(52, "timer_rtf", "timing", resettable=True),
        _switchbox(53, "composite_switchbox", COMPOSITE),
        ComponentKind(54, "number_to_composite_binary", _in(("input", NUMBER)), _out(("out", COMPOSITE))),
        ComponentKind(55, "composite_binary_to_number", _in(("input", COMPOSITE)), _out(("out", NUMBER))),
        ComponentKind(
            56,
            "lua_script",
            _in(("data_in", COMPOSITE), ("video_in", VIDEO)),
            _out(("data_out", COMPOSITE), ("video_out", VIDEO)),
            attributes=(AttributeSpec("script", "script", ValueKind.SCRIPT, default=None),),
        ),
        _switchbox(57, "video_switchbox", VIDEO),
        ComponentKind(
            58,
            "property_text",
            (),
            (),
            attributes=(
                AttributeSpec("name", "n", ValueKind.STRING, default="text", required=True),
                AttributeSpec("value", "v", ValueKind.STRING, default=""),
            ),
        ),
        _switchbox(59, "audio_switchbox", AUDIO),
    ],
)


def _bridge(code: int, name: str, signal: SignalType, incoming: bool) -> ComponentKind:
    """Bridge halves carry one wired port; the opposite slot is written but unused."""
    if incoming:
        inputs = (PortSpec("unused_input", "in1", signal, unused=True),)
        outputs = (PortSpec("output", "out1", signal),)
    else:
        inputs = (PortSpec("input", "in1", signal),)
        outputs = (PortSpec("unused_output", "out1", signal, unused=True),)
    return ComponentKind(code, name, inputs, outputs, bridge=True)


BRIDGE_KINDS = KindRegistry(
    "bridge",
    [
        _bridge(0, "on_off_in", ON_OFF, incoming=True),
        _bridge(1, "on_off_out", ON_OFF, incoming=False),
        _bridge(2, "number_in", NUMBER, incoming=True),
        _bridge(3, "number_out", NUMBER, incoming=False),
        _bridge(4, "composite_in", COMPOSITE, incoming=True),
        _bridge(5, "composite_out", COMPOSITE, incoming=False),
        _bridge(6, "video_in", VIDEO, incoming=True),
        _bridge(7, "video_out", VIDEO, incoming=False),
        _bridge(8, "audio_in", AUDIO, incoming=True),
        _bridge(9, "audio_out", AUDIO, incoming=False),
    ],
)

_BRIDGE_BY_SIGNAL = {
    ON_OFF: ("on_off_in", "on_off_out"),
    NUMBER: ("number_in", "number_out"),
    COMPOSITE: ("composite_in", "composite_out"),
    VIDEO: ("video_in", "video_out"),
    AUDIO: ("audio_in", "audio_out"),
}


def bridge_kind_for(signal: SignalType, incoming: bool) -> ComponentKind:
    """Bridge kind backing an IO node. Signals without a bridge fall back to number."""
    names = _BRIDGE_BY_SIGNAL.get(signal, _BRIDGE_BY_SIGNAL[NUMBER])
    return BRIDGE_KINDS.lookup(names[0] if incoming else names[1])
