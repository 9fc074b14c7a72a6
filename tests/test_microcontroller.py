"""Tests for building and editing microcontrollers in memory."""

from __future__ import annotations

import pytest

from sw_mc.models.elements import BridgeComponent, Component
from sw_mc.models.errors import (
    ComponentIdTooHigh,
    DuplicateComponentId,
    DuplicateNodeId,
    InvalidSize,
    MissingBridgeComponent,
    NodeIdTooHigh,
    UnknownComponentKindError,
    ValidationError,
)
from sw_mc.models.microcontroller import (
    DEFAULT_DESCRIPTION,
    DEFAULT_NAME,
    DEFAULT_NODE_DESCRIPTION,
    DEFAULT_NODE_LABEL,
    Microcontroller,
)
from sw_mc.models.types import DropdownList, NodeMode, NumberText, Position, SignalType
from sw_mc.schema.components import BRIDGE_KINDS, LOGIC_KINDS, bridge_kind_for


class TestNew:
    def test_defaults(self):
        mc = Microcontroller.new()
        assert mc.name == DEFAULT_NAME
        assert mc.description == DEFAULT_DESCRIPTION
        assert (mc.width, mc.length) == (2, 2)
        assert mc.id_counter == 0
        assert mc.id_counter_node is None
        assert mc.icon == [0] * 16
        assert mc.nodes == [] and mc.components == [] and mc.bridge_components == []

    def test_invalid_size(self):
        with pytest.raises(InvalidSize):
            Microcontroller.new(width=7)
        with pytest.raises(InvalidSize):
            Microcontroller.new(length=0)

    def test_size_limits_accepted(self):
        assert Microcontroller.new(width=6, length=1).width == 6


class TestAddComponent:
    def test_ids_increase(self):
        mc = Microcontroller.new()
        first = mc.add_component("and")
        second = mc.add_component(8)
        assert (first.id, second.id) == (1, 2)
        assert second.kind_name == "multiply"
        assert mc.id_counter == 2

    def test_initial_properties(self):
        mc = Microcontroller.new()
        slider = mc.add_component("property_slider")
        assert slider.properties["name"] == "value"
        assert slider.properties["min"] == NumberText(text="0")
        assert isinstance(mc.add_component("property_dropdown").properties["items"], DropdownList)
        assert mc.add_component("capacitor").properties["charge_time"] == 1.0

    def test_slots_created(self):
        mc = Microcontroller.new()
        divide = mc.add_component("divide")
        assert len(divide.inputs) == 2
        assert len(divide.outputs) == 2
        assert all(slot is not None and not slot.connected for slot in divide.inputs)

    def test_position(self):
        mc = Microcontroller.new()
        component = mc.add_component("abs", Position(x=0.5, y=0.75))
        assert (component.position.x, component.position.y) == (0.5, 0.75)

    def test_unknown_kind(self):
        mc = Microcontroller.new()
        with pytest.raises(UnknownComponentKindError):
            mc.add_component("flux_capacitor")
        with pytest.raises(UnknownComponentKindError):
            mc.add_component(60)
        assert mc.id_counter == 0

    def test_unknown_property(self):
        with pytest.raises(ValidationError):
            Component.create("and", 1, colour="red")


class TestRemoveComponent:
    def test_last_id_steps_counter_back(self):
        mc = Microcontroller.new()
        mc.add_component("and")
        mc.add_component("or")
        removed = mc.remove_component(2)
        assert removed.kind_name == "or"
        assert mc.id_counter == 1

    def test_earlier_id_keeps_counter(self):
        mc = Microcontroller.new()
        mc.add_component("and")
        mc.add_component("or")
        mc.remove_component(1)
        assert mc.id_counter == 2
        assert [c.id for c in mc.components] == [2]

    def test_missing_id(self):
        assert Microcontroller.new().remove_component(5) is None


class TestIO:
    def test_add_input(self):
        mc = Microcontroller.new()
        node = mc.add_io(SignalType.NUMBER, NodeMode.INPUT)
        assert (node.id, node.component_id) == (1, 1)
        assert node.label == DEFAULT_NODE_LABEL
        assert node.description == DEFAULT_NODE_DESCRIPTION
        bridge = mc.get_component(1)
        assert isinstance(bridge, BridgeComponent)
        assert bridge.kind_name == "number_in"
        assert mc.id_counter_node == 1
        assert mc.id_counter == 1

    def test_add_output_after_components(self):
        mc = Microcontroller.new()
        mc.add_component("and")
        node = mc.add_io(SignalType.ON_OFF, NodeMode.OUTPUT, label="Lamp", description="")
        assert (node.id, node.component_id) == (1, 2)
        assert mc.get_component(2).kind_name == "on_off_out"
        assert node.description == ""

    def test_signal_without_bridge_uses_number(self):
        mc = Microcontroller.new()
        mc.add_io(SignalType.POWER, NodeMode.INPUT)
        assert mc.bridge_components[0].kind_name == "number_in"

    def test_remove_io(self, built_adder: Microcontroller):
        node = built_adder.remove_io(3)
        assert node.label == "Sum"
        assert built_adder.id_counter_node == 2
        assert built_adder.get_component(3) is None
        assert [n.id for n in built_adder.nodes] == [1, 2]
        assert built_adder.remove_io(9) is None

    def test_emitted_node(self, built_adder: Microcontroller):
        text = built_adder.to_text()
        assert '<n id="3" component_id="3">' in text
        assert f'<node label="Sum" type="1" description="{DEFAULT_NODE_DESCRIPTION}"/>' in text


class TestValidateStructure:
    def test_valid(self, built_adder: Microcontroller, features: Microcontroller):
        built_adder.validate_structure()
        features.validate_structure()

    def test_duplicate_component_id(self, built_adder: Microcontroller):
        built_adder.components.append(Component.create("and", 4))
        with pytest.raises(DuplicateComponentId):
            built_adder.validate_structure()

    def test_component_id_above_counter(self, built_adder: Microcontroller):
        built_adder.components.append(Component.create("and", 10))
        with pytest.raises(ComponentIdTooHigh):
            built_adder.validate_structure()

    def test_duplicate_node_id(self, built_adder: Microcontroller):
        built_adder.nodes.append(built_adder.nodes[0].model_copy())
        with pytest.raises(DuplicateNodeId):
            built_adder.validate_structure()

    def test_node_id_above_counter(self, built_adder: Microcontroller):
        built_adder.id_counter_node = 2
        with pytest.raises(NodeIdTooHigh):
            built_adder.validate_structure()

    def test_missing_bridge(self, built_adder: Microcontroller):
        built_adder.bridge_components.pop()
        with pytest.raises(MissingBridgeComponent):
            built_adder.validate_structure()

    def test_size_after_edit(self):
        mc = Microcontroller.new()
        mc.width = 9
        with pytest.raises(InvalidSize):
            mc.validate_structure()

    def test_not_run_by_parser(self, adder_xml: str):
        mc = Microcontroller.from_text(adder_xml.replace('id_counter="4"', 'id_counter="1"'))
        with pytest.raises(ComponentIdTooHigh):
            mc.validate_structure()


class TestRegistry:
    def test_logic_codes_are_contiguous(self):
        assert sorted(kind.code for kind in LOGIC_KINDS) == list(range(60))

    def test_bridge_codes(self):
        assert sorted(kind.code for kind in BRIDGE_KINDS) == list(range(10))
        assert all(kind.bridge for kind in BRIDGE_KINDS)

    def test_names_unique(self):
        names = [kind.name for kind in LOGIC_KINDS]
        assert len(names) == len(set(names))

    def test_lookup(self):
        assert LOGIC_KINDS.lookup("lua_script").code == 56
        assert LOGIC_KINDS.lookup(56).name == "lua_script"
        assert "pulse" in LOGIC_KINDS
        assert 60 not in LOGIC_KINDS

    def test_bridge_kind_for(self):
        assert bridge_kind_for(SignalType.VIDEO, incoming=False).name == "video_out"
        assert bridge_kind_for(SignalType.AUDIO, incoming=True).code == 8
        assert bridge_kind_for(SignalType.ROPE, incoming=False).name == "number_out"

    def test_bridge_unused_ports(self):
        incoming = BRIDGE_KINDS.lookup("on_off_in")
        assert incoming.inputs[0].unused and not incoming.outputs[0].unused
        outgoing = BRIDGE_KINDS.lookup("composite_out")
        assert outgoing.outputs[0].unused
        assert not outgoing.inputs[0].unused
