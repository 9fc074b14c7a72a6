"""Structural emitter: Microcontroller model -> microcontroller markup.

Every element is built in two steps. The known attributes and children are
produced in canonical order with default omission applied, then merged with
the element's Extras: items that were read from a document go back in the
order they were read, new items follow in canonical order, and unknown
content is slotted in where it originally sat.
"""

from __future__ import annotations

from typing import Any, Optional

from sw_mc.codec.markup import render_document
from sw_mc.codec.primitives import ValueKind, encode, format_float
from sw_mc.logging_config import get_logger
from sw_mc.models.elements import Component, InputSlot, IONode, OutputSlot
from sw_mc.models.errors import EncodeError, InvalidInMemoryValue
from sw_mc.models.microcontroller import ICON_SIZE, Microcontroller
from sw_mc.models.types import (
    DropdownList,
    Extras,
    NodePosition,
    NumberText,
    Position,
    XmlNode,
)
from sw_mc.schema.fields import ComponentKind

logger = get_logger("emitter")

Attributes = list[tuple[str, str]]
Children = list[tuple[str, XmlNode]]

_EMPTY = Extras()


def emit_microcontroller(mc: Microcontroller) -> str:
    """Render a Microcontroller as a complete document.

    Raises:
        InvalidInMemoryValue: A field holds a value its declared kind cannot
            represent.
    """
    root = _MicrocontrollerWriter(mc).build()
    text = render_document(root)
    logger.debug("Emitted microcontroller '%s' (%d characters)", mc.name, len(text))
    return text


def build_element(tag: str, attributes: Attributes, children: Children, extras: Extras) -> XmlNode:
    """Merge known attributes and children with preserved ones."""
    return XmlNode(
        tag=tag,
        attributes=dict(_merge_attributes(attributes, extras)),
        children=_merge_children(children, extras),
    )


def _merge_attributes(known: Attributes, extras: Extras) -> Attributes:
    pending = dict(known)
    unknown = dict(extras.attributes)
    merged: Attributes = []
    for name in extras.attribute_order:
        if name in pending:
            merged.append((name, pending.pop(name)))
        elif name in unknown:
            merged.append((name, unknown.pop(name)))
    merged.extend((name, value) for name, value in known if name in pending)
    merged.extend(unknown.items())
    return merged


def _merge_children(known: Children, extras: Extras) -> list[XmlNode]:
    # FIFO per tag, so repeated tags keep their relative order
    pending: dict[str, list[XmlNode]] = {}
    for key, node in known:
        pending.setdefault(key, []).append(node)
    used_extras: set[int] = set()
    merged: list[XmlNode] = []

    for key in extras.child_order:
        if key.startswith("#"):
            index = int(key[1:])
            if index < len(extras.children) and index not in used_extras:
                used_extras.add(index)
                merged.append(extras.children[index])
        elif pending.get(key):
            merged.append(pending[key].pop(0))

    remaining = {key: list(nodes) for key, nodes in pending.items()}
    for key, _ in known:
        if remaining.get(key):
            merged.append(remaining[key].pop(0))
    merged.extend(node for i, node in enumerate(extras.children) if i not in used_extras)
    return merged


class _MicrocontrollerWriter:
    """Builds the element tree for one Microcontroller."""

    def __init__(self, mc: Microcontroller):
        self.mc = mc

    # --- Values ---

    def value(self, path: str, value: Any, kind: Optional[ValueKind] = None) -> str:
        try:
            return encode(value, kind)
        except EncodeError as e:
            raise InvalidInMemoryValue(path, value, str(e)) from e

    def container(self, path: str) -> Extras:
        return self.mc.containers.get(path, _EMPTY)

    # --- Root ---

    def build(self) -> XmlNode:
        mc = self.mc
        attrs: Attributes = []
        if mc.name != "":
            attrs.append(("name", self.value("name", mc.name, ValueKind.STRING)))
        if mc.description != "":
            attrs.append(("description", self.value("description", mc.description, ValueKind.STRING)))
        attrs.append(("width", self.value("width", mc.width, ValueKind.UINT8)))
        attrs.append(("length", self.value("length", mc.length, ValueKind.UINT8)))
        if mc.id_counter != 0:
            attrs.append(("id_counter", self.value("id_counter", mc.id_counter, ValueKind.UINT32)))
        if mc.id_counter_node is not None:
            attrs.append(
                ("id_counter_node", self.value("id_counter_node", mc.id_counter_node, ValueKind.UINT32))
            )

        if len(mc.icon) != ICON_SIZE:
            raise InvalidInMemoryValue("icon", mc.icon, f"expected {ICON_SIZE} entries")
        for i, sym in enumerate(mc.icon):
            if sym != 0:
                attrs.append((f"sym{i}", self.value(f"icon[{i}]", sym, ValueKind.UINT16)))

        children: Children = [("nodes", self.nodes()), ("group", self.group())]
        return build_element("microprocessor", attrs, children, mc.extras)

    # --- IO nodes ---

    def nodes(self) -> XmlNode:
        items = [("n", self.node(f"nodes[{i}]", node)) for i, node in enumerate(self.mc.nodes)]
        return build_element("nodes", [], items, self.container("nodes"))

    def node(self, path: str, node: IONode) -> XmlNode:
        attrs: Attributes = []
        if int(node.mode) != 0:
            attrs.append(("mode", self.value(f"{path}.mode", int(node.mode), ValueKind.UINT8)))
        if int(node.signal_type) != 0:
            attrs.append(("type", self.value(f"{path}.signal_type", int(node.signal_type), ValueKind.UINT8)))
        inner_attrs: Attributes = [("label", self.value(f"{path}.label", node.label, ValueKind.STRING))]
        inner_attrs.extend(attrs)
        inner_attrs.append(("description", self.value(f"{path}.description", node.description, ValueKind.STRING)))

        inner_children: Children = []
        position = self.node_position(f"{path}.position", node.position)
        if position is not None:
            inner_children.append(("position", position))
        inner = build_element("node", inner_attrs, inner_children, node.node_extras)

        wrapper_attrs: Attributes = [
            ("id", self.value(f"{path}.id", node.id, ValueKind.UINT32)),
            ("component_id", self.value(f"{path}.component_id", node.component_id, ValueKind.UINT32)),
        ]
        return build_element("n", wrapper_attrs, [("node", inner)], node.extras)

    def node_position(self, path: str, position: NodePosition) -> Optional[XmlNode]:
        if position.is_origin() and position.extras.is_empty():
            return None
        attrs: Attributes = []
        if position.x != 0:
            attrs.append(("x", self.value(f"{path}.x", position.x, ValueKind.FLOAT)))
        if position.z != 0:
            attrs.append(("z", self.value(f"{path}.z", position.z, ValueKind.FLOAT)))
        return build_element("position", attrs, [], position.extras)

    # --- Group ---

    def group(self) -> XmlNode:
        mc = self.mc
        components = [self.component(f"components[{i}]", c) for i, c in enumerate(mc.components)]
        bridges = [
            self.component(f"bridge_components[{i}]", c) for i, c in enumerate(mc.bridge_components)
        ]

        children: Children = [
            ("data", self.data()),
            ("components", self.list_container("group/components", "components", [w for w, _ in components])),
            (
                "components_bridge",
                self.list_container("group/components_bridge", "components_bridge", [w for w, _ in bridges]),
            ),
            ("groups", self.record("group/groups", "groups")),
            (
                "component_states",
                self.states("group/component_states", "component_states", mc.components, components),
            ),
            (
                "component_bridge_states",
                self.states(
                    "group/component_bridge_states", "component_bridge_states", mc.bridge_components, bridges
                ),
            ),
            ("group_states", self.record("group/group_states", "group_states")),
        ]
        return build_element("group", [], children, self.container("group"))

    def data(self) -> XmlNode:
        attrs: Attributes = []
        if self.mc.data_type is not None:
            attrs.append(("type", self.value("data_type", self.mc.data_type, ValueKind.STRING)))
        children: Children = [
            ("inputs", self.record("group/data/inputs", "inputs")),
            ("outputs", self.record("group/data/outputs", "outputs")),
        ]
        return build_element("data", attrs, children, self.container("group/data"))

    def record(self, path: str, tag: str) -> XmlNode:
        return build_element(tag, [], [], self.container(path))

    def list_container(self, path: str, tag: str, items: list[XmlNode]) -> XmlNode:
        return build_element(tag, [], [(item.tag, item) for item in items], self.container(path))

    def states(
        self,
        path: str,
        tag: str,
        components: list[Component],
        built: list[tuple[XmlNode, XmlNode]],
    ) -> XmlNode:
        entries = []
        for i, (component, (_, obj)) in enumerate(zip(components, built)):
            attrs: dict[str, str] = {}
            if component.id != 0:
                attrs["id"] = obj.attributes["id"]
            attrs.update((k, v) for k, v in obj.attributes.items() if k != "id")
            entry = XmlNode(tag=f"c{i}", attributes=attrs, children=list(obj.children))
            entries.append((entry.tag, entry))
        return build_element(tag, [], entries, self.container(path))

    # --- Components ---

    def component(self, path: str, component: Component) -> tuple[XmlNode, XmlNode]:
        """Returns the ``<c>`` wrapper and the ``<object>`` inside it."""
        kind = component.kind
        obj_attrs: Attributes = [("id", self.value(f"{path}.id", component.id, ValueKind.UINT32))]
        obj_children: Children = []

        position = self.position(f"{path}.position", component.position)
        if position is not None:
            obj_children.append(("pos", position))

        if kind is not None:
            obj_children.extend(self.ports(path, component, kind))
            for spec in kind.attributes:
                value = component.properties.get(spec.name, spec.default)
                if spec.is_default(value):
                    continue
                obj_attrs.append((spec.tag, self.value(f"{path}.properties.{spec.name}", value, spec.kind)))
            for child_spec in kind.children:
                value = component.properties.get(child_spec.name)
                child_path = f"{path}.properties.{child_spec.name}"
                if value is None:
                    if child_spec.required:
                        raise InvalidInMemoryValue(child_path, value, "required setting is missing")
                    continue
                obj_children.append((child_spec.tag, self.property_child(child_path, child_spec.tag, value)))

        obj = build_element("object", obj_attrs, obj_children, component.extras)

        wrapper_attrs: Attributes = []
        if component.type_code != 0:
            wrapper_attrs.append(("type", self.value(f"{path}.type_code", component.type_code, ValueKind.UINT8)))
        wrapper = build_element("c", wrapper_attrs, [("object", obj)], component.wrapper_extras)
        return wrapper, obj

    def ports(self, path: str, component: Component, kind: ComponentKind) -> Children:
        slots: dict[str, list[XmlNode]] = {}
        for index, port in enumerate(kind.inputs):
            slot = component.inputs[index] if index < len(component.inputs) else None
            if slot is None or not kind.input_active(index, component.properties):
                continue
            node = self.input_slot(f"{path}.inputs[{index}]", port.tag, slot)
            slots.setdefault(port.tag, []).append(node)
        for index, port in enumerate(kind.outputs):
            slot = component.outputs[index] if index < len(component.outputs) else None
            if slot is not None:
                slots.setdefault(port.tag, []).append(self.output_slot(port.tag, slot))

        ordered: Children = []
        for tag in kind.ordered_port_tags():
            if slots.get(tag):
                ordered.append((tag, slots[tag].pop(0)))
        return ordered

    def input_slot(self, path: str, tag: str, slot: InputSlot) -> XmlNode:
        attrs: Attributes = []
        if slot.component_id is not None:
            attrs.append(("component_id", self.value(f"{path}.component_id", slot.component_id, ValueKind.UINT32)))
        if slot.node_index != 0:
            attrs.append(("node_index", self.value(f"{path}.node_index", slot.node_index, ValueKind.UINT8)))
        return build_element(tag, attrs, [], slot.extras)

    def output_slot(self, tag: str, slot: OutputSlot) -> XmlNode:
        return build_element(tag, [], [], slot.extras)

    def position(self, path: str, position: Position) -> Optional[XmlNode]:
        if position.is_origin() and position.extras.is_empty():
            return None
        attrs: Attributes = []
        if position.x != 0:
            attrs.append(("x", self.value(f"{path}.x", position.x, ValueKind.FLOAT)))
        if position.y != 0:
            attrs.append(("y", self.value(f"{path}.y", position.y, ValueKind.FLOAT)))
        return build_element("pos", attrs, [], position.extras)

    def property_child(self, path: str, tag: str, value: Any) -> XmlNode:
        if isinstance(value, NumberText):
            return self.number_text(path, tag, value)
        if isinstance(value, DropdownList):
            items = []
            for i, item in enumerate(value.items):
                item_path = f"{path}.items[{i}]"
                attrs = [("l", self.value(f"{item_path}.label", item.label, ValueKind.STRING))]
                v = self.number_text(f"{item_path}.value", "v", item.value)
                items.append(("i", build_element("i", attrs, [("v", v)], item.extras)))
            return build_element(tag, [], items, value.extras)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return self.number_text(path, tag, NumberText(text=format_float(float(value)), value=float(value)))
        raise InvalidInMemoryValue(path, value, "expected a NumberText")

    def number_text(self, path: str, tag: str, number: NumberText) -> XmlNode:
        attrs: Attributes = [("text", self.value(f"{path}.text", number.text, ValueKind.STRING))]
        if number.value != 0:
            attrs.append(("value", self.value(f"{path}.value", number.value, ValueKind.FLOAT)))
        return build_element(tag, attrs, [], number.extras)
