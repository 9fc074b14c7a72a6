"""Structural parser: microcontroller markup -> Microcontroller model.

The document is parsed with lxml into an element tree, then walked once,
element by element. Each element is read through an ``_ElementReader`` that
consumes the attributes and children the schema knows about; whatever is
left over is kept in the element's ``Extras`` together with the source order,
so the emitter can put it back where it was.
"""

from __future__ import annotations

import re
from typing import Any, Optional, Type, Union

from lxml import etree

from sw_mc.codec.markup import ProtectedText
from sw_mc.codec.primitives import ValueKind, decode
from sw_mc.logging_config import get_logger
from sw_mc.models.elements import BridgeComponent, Component, InputSlot, IONode, OutputSlot
from sw_mc.models.errors import (
    DecodeError,
    EncodingError,
    MalformedDocument,
    MalformedValue,
    MissingRequiredAttribute,
    MissingRequiredElement,
    ParseError,
    UnexpectedAttribute,
    UnexpectedElement,
    UnterminatedElement,
)
from sw_mc.models.microcontroller import ICON_SIZE, Microcontroller
from sw_mc.models.types import (
    DropdownItem,
    DropdownList,
    Extras,
    NodeMode,
    NodePosition,
    NumberText,
    Position,
    SignalType,
    XmlNode,
)
from sw_mc.schema.fields import ChildSpec

logger = get_logger("parser")

ROOT_TAG = "microprocessor"
STATE_TAG_PATTERN = re.compile(r"^c\d+$")

_UNTERMINATED_CODES = frozenset({
    etree.ErrorTypes.ERR_TAG_NOT_FINISHED,
    etree.ErrorTypes.ERR_LTSLASH_REQUIRED,
})
_ENCODING_CODES = frozenset({
    etree.ErrorTypes.ERR_INVALID_ENCODING,
    etree.ErrorTypes.ERR_UNKNOWN_ENCODING,
    etree.ErrorTypes.ERR_UNSUPPORTED_ENCODING,
})


class _ParseContext:
    """Per-document parse state."""

    def __init__(self, protected: ProtectedText, preserve_unknown: bool):
        self.protected = protected
        self.preserve_unknown = preserve_unknown
        self.preserved = 0

    def line(self, element: etree._Element) -> Optional[int]:
        if element.sourceline is None:
            return None
        return self.protected.original_line(element.sourceline)


class _ElementReader:
    """Consumes the known attributes and children of one source element."""

    def __init__(self, element: etree._Element, ctx: _ParseContext):
        self.element = element
        self.tag = element.tag
        self.ctx = ctx
        self._attributes = dict(element.attrib)
        self._attribute_order = list(self._attributes)
        self._children = [child for child in element if isinstance(child.tag, str)]
        self._claimed: set[int] = set()

    @property
    def line(self) -> Optional[int]:
        return self.ctx.line(self.element)

    def attribute(
        self,
        name: str,
        kind: ValueKind,
        default: Any = None,
        required: bool = False,
    ) -> Any:
        text = self._attributes.pop(name, None)
        if text is None:
            if required:
                raise MissingRequiredAttribute(self.tag, name, self.line)
            return default
        try:
            return decode(text, kind)
        except DecodeError as e:
            raise MalformedValue(self.tag, name, text, str(e), self.line) from e

    def enum_attribute(self, name: str, enum_cls: type, default: Any) -> Any:
        text = self._attributes.get(name)
        value = self.attribute(name, ValueKind.UINT8, default)
        try:
            return enum_cls(value)
        except ValueError as e:
            raise MalformedValue(self.tag, name, text or "", f"not a valid {enum_cls.__name__}", self.line) from e

    def child(self, tag: str, required: bool = False) -> Optional[etree._Element]:
        for index, child in enumerate(self._children):
            if index not in self._claimed and child.tag == tag:
                self._claimed.add(index)
                return child
        if required:
            raise MissingRequiredElement(self.tag, tag, self.line)
        return None

    def children(self, tag: Union[str, re.Pattern]) -> list[etree._Element]:
        found = []
        for index, child in enumerate(self._children):
            if index in self._claimed:
                continue
            matches = tag.match(child.tag) if isinstance(tag, re.Pattern) else child.tag == tag
            if matches:
                self._claimed.add(index)
                found.append(child)
        return found

    def finish(self, strict_children: bool = False) -> Extras:
        """Collect what was not consumed into Extras.

        Args:
            strict_children: Reject unknown children even when unknown data
                is preserved (list containers).

        Raises:
            UnexpectedAttribute: Unknown attribute while rejecting unknown data.
            UnexpectedElement: Unknown child that may not be kept.
        """
        attributes: dict[str, str] = {}
        for name, text in self._attributes.items():
            if not self.ctx.preserve_unknown:
                raise UnexpectedAttribute(self.tag, name, self.line)
            attributes[name] = text

        children: list[XmlNode] = []
        child_order: list[str] = []
        for index, child in enumerate(self._children):
            if index in self._claimed:
                child_order.append(child.tag)
                continue
            if strict_children or not self.ctx.preserve_unknown:
                raise UnexpectedElement(child.tag, self.tag, self.ctx.line(child))
            child_order.append(f"#{len(children)}")
            children.append(to_xml_node(child))

        if attributes or children:
            self.ctx.preserved += len(attributes) + len(children)
            logger.debug(
                "Preserving unknown content on <%s>: attributes=%s children=%s",
                self.tag,
                list(attributes),
                [c.tag for c in children],
            )
        return Extras(
            attributes=attributes,
            children=children,
            attribute_order=self._attribute_order,
            child_order=child_order,
        )


def to_xml_node(element: etree._Element) -> XmlNode:
    """Copy an element subtree's tags, attributes and leaf text.

    Text is kept only on elements without children. Tails and mixed content
    are dropped, as is whitespace-only text (indentation).
    """
    children = [to_xml_node(child) for child in element if isinstance(child.tag, str)]
    text = element.text if not children and element.text and element.text.strip() else None
    return XmlNode(
        tag=element.tag,
        attributes=dict(element.attrib),
        children=children,
        text=text,
    )


# --- Entry point ---

def parse_microcontroller(
    source: Union[str, bytes],
    *,
    preserve_unknown: bool = True,
) -> Microcontroller:
    """Parse microcontroller markup.

    Args:
        source: Document text, or UTF-8 bytes.
        preserve_unknown: Keep unknown attributes and children verbatim.
            When False they raise UnexpectedAttribute / UnexpectedElement.

    Returns:
        The parsed Microcontroller. Nothing is returned on failure.

    Raises:
        ParseError: Any subclass, with the offending tag, attribute and line.
    """
    text = _decode_source(source)
    if not text.strip():
        raise MalformedDocument("Document is empty")

    protected = ProtectedText(text)
    root = _parse_tree(protected)
    ctx = _ParseContext(protected, preserve_unknown)

    if root.tag != ROOT_TAG:
        raise UnexpectedElement(str(root.tag), "document", ctx.line(root))

    mc = _read_microcontroller(root, ctx)
    logger.debug(
        "Parsed microcontroller '%s': %d components, %d bridge components, %d nodes, %d preserved",
        mc.name,
        len(mc.components),
        len(mc.bridge_components),
        len(mc.nodes),
        ctx.preserved,
    )
    return mc


def _decode_source(source: Union[str, bytes]) -> str:
    if isinstance(source, str):
        return source
    try:
        return source.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise EncodingError(
            f"Invalid UTF-8 byte sequence at offset {e.start}: {e.reason}",
            offset=e.start,
        ) from e


def _parse_tree(protected: ProtectedText) -> etree._Element:
    parser = etree.XMLParser(
        remove_comments=True,
        remove_pis=True,
        resolve_entities=False,
        no_network=True,
        huge_tree=True,
    )
    try:
        return etree.fromstring(protected.text.encode("utf-8"), parser)
    except etree.XMLSyntaxError as e:
        raise _classify_syntax_error(e, protected) from e


def _classify_syntax_error(error: etree.XMLSyntaxError, protected: ProtectedText) -> ParseError:
    line = protected.original_line(error.lineno) if error.lineno else None
    message = error.msg or str(error)
    if error.code in _UNTERMINATED_CODES or "Premature end" in message:
        return UnterminatedElement(message, line=line)
    if error.code in _ENCODING_CODES:
        return EncodingError(message, line=line)
    return MalformedDocument(message, line=line)


# --- Root ---

def _read_microcontroller(root: etree._Element, ctx: _ParseContext) -> Microcontroller:
    reader = _ElementReader(root, ctx)
    containers: dict[str, Extras] = {}

    fields: dict[str, Any] = {
        "name": reader.attribute("name", ValueKind.STRING, ""),
        "description": reader.attribute("description", ValueKind.STRING, ""),
        "width": reader.attribute("width", ValueKind.UINT8, required=True),
        "length": reader.attribute("length", ValueKind.UINT8, required=True),
        "id_counter": reader.attribute("id_counter", ValueKind.UINT32, 0),
        "id_counter_node": reader.attribute("id_counter_node", ValueKind.UINT32),
        "icon": [reader.attribute(f"sym{i}", ValueKind.UINT16, 0) for i in range(ICON_SIZE)],
    }

    nodes_el = reader.child("nodes", required=True)
    group_el = reader.child("group", required=True)
    extras = reader.finish()

    nodes_reader = _ElementReader(nodes_el, ctx)
    fields["nodes"] = [_read_node(n, ctx) for n in nodes_reader.children("n")]
    containers["nodes"] = nodes_reader.finish(strict_children=True)

    group = _ElementReader(group_el, ctx)
    data_el = group.child("data", required=True)
    components_el = group.child("components", required=True)
    bridge_el = group.child("components_bridge", required=True)
    groups_el = group.child("groups")
    states_el = group.child("component_states")
    bridge_states_el = group.child("component_bridge_states")
    group_states_el = group.child("group_states")
    containers["group"] = group.finish()

    data = _ElementReader(data_el, ctx)
    fields["data_type"] = data.attribute("type", ValueKind.STRING)
    for tag in ("inputs", "outputs"):
        el = data.child(tag)
        if el is not None:
            containers[f"group/data/{tag}"] = _ElementReader(el, ctx).finish()
    containers["group/data"] = data.finish()

    fields["components"], containers["group/components"] = _read_components(components_el, ctx, Component)
    fields["bridge_components"], containers["group/components_bridge"] = _read_components(
        bridge_el, ctx, BridgeComponent
    )

    for tag, el in (("groups", groups_el), ("group_states", group_states_el)):
        if el is not None:
            containers[f"group/{tag}"] = _ElementReader(el, ctx).finish()

    # States mirror the components and are rebuilt on output
    for tag, el in (("component_states", states_el), ("component_bridge_states", bridge_states_el)):
        if el is not None:
            states = _ElementReader(el, ctx)
            count = len(states.children(STATE_TAG_PATTERN))
            containers[f"group/{tag}"] = states.finish(strict_children=True)
            logger.debug("Read %d entries from <%s>", count, tag)

    return Microcontroller(extras=extras, containers=containers, **fields)


# --- IO nodes ---

def _read_node(element: etree._Element, ctx: _ParseContext) -> IONode:
    wrapper = _ElementReader(element, ctx)
    node_id = wrapper.attribute("id", ValueKind.UINT32, required=True)
    component_id = wrapper.attribute("component_id", ValueKind.UINT32, required=True)
    inner_el = wrapper.child("node", required=True)
    extras = wrapper.finish(strict_children=True)

    inner = _ElementReader(inner_el, ctx)
    label = inner.attribute("label", ValueKind.STRING, required=True)
    mode = inner.enum_attribute("mode", NodeMode, NodeMode.OUTPUT)
    signal_type = inner.enum_attribute("type", SignalType, SignalType.ON_OFF)
    description = inner.attribute("description", ValueKind.STRING, required=True)
    position_el = inner.child("position")
    position = NodePosition()
    if position_el is not None:
        pos = _ElementReader(position_el, ctx)
        position = NodePosition(
            x=pos.attribute("x", ValueKind.FLOAT, 0.0),
            z=pos.attribute("z", ValueKind.FLOAT, 0.0),
        )
        position.extras = pos.finish()

    return IONode(
        id=node_id,
        component_id=component_id,
        label=label,
        description=description,
        mode=mode,
        signal_type=signal_type,
        position=position,
        extras=extras,
        node_extras=inner.finish(),
    )


# --- Components ---

def _read_components(
    element: etree._Element,
    ctx: _ParseContext,
    cls: Type[Component],
) -> tuple[list[Component], Extras]:
    reader = _ElementReader(element, ctx)
    components = [_read_component(c, ctx, cls) for c in reader.children("c")]
    return components, reader.finish(strict_children=True)


def _read_component(element: etree._Element, ctx: _ParseContext, cls: Type[Component]) -> Component:
    wrapper = _ElementReader(element, ctx)
    type_code = wrapper.attribute("type", ValueKind.UINT8, 0)
    object_el = wrapper.child("object", required=True)
    wrapper_extras = wrapper.finish(strict_children=True)

    obj = _ElementReader(object_el, ctx)
    component_id = obj.attribute("id", ValueKind.UINT32, required=True)
    position = _read_position(obj.child("pos"), ctx)

    kind = cls.registry.get(type_code)
    if kind is None:
        if not ctx.preserve_unknown:
            raise MalformedValue(
                "c", "type", str(type_code), f"unknown {cls.registry.label} component type", wrapper.line
            )
        logger.debug("Keeping component %d of unknown type %d verbatim", component_id, type_code)
        return cls(
            type_code=type_code,
            id=component_id,
            position=position,
            extras=obj.finish(),
            wrapper_extras=wrapper_extras,
        )

    inputs = [_read_input(obj.child(port.tag), ctx) for port in kind.inputs]
    outputs = [_read_output(obj.child(port.tag), ctx) for port in kind.outputs]

    properties: dict[str, Any] = {}
    for spec in kind.attributes:
        properties[spec.name] = obj.attribute(spec.tag, spec.kind, spec.default, spec.required)
    for child_spec in kind.children:
        properties[child_spec.name] = _read_property_child(
            obj.child(child_spec.tag, child_spec.required), child_spec, ctx
        )

    return cls(
        type_code=type_code,
        id=component_id,
        position=position,
        inputs=inputs,
        outputs=outputs,
        properties=properties,
        extras=obj.finish(),
        wrapper_extras=wrapper_extras,
    )


def _read_position(element: Optional[etree._Element], ctx: _ParseContext) -> Position:
    if element is None:
        return Position()
    reader = _ElementReader(element, ctx)
    position = Position(
        x=reader.attribute("x", ValueKind.FLOAT, 0.0),
        y=reader.attribute("y", ValueKind.FLOAT, 0.0),
    )
    position.extras = reader.finish()
    return position


def _read_input(element: Optional[etree._Element], ctx: _ParseContext) -> Optional[InputSlot]:
    if element is None:
        return None
    reader = _ElementReader(element, ctx)
    slot = InputSlot(
        component_id=reader.attribute("component_id", ValueKind.UINT32),
        node_index=reader.attribute("node_index", ValueKind.UINT8, 0),
    )
    slot.extras = reader.finish()
    return slot


def _read_output(element: Optional[etree._Element], ctx: _ParseContext) -> Optional[OutputSlot]:
    if element is None:
        return None
    return OutputSlot(extras=_ElementReader(element, ctx).finish())


def _read_property_child(
    element: Optional[etree._Element],
    spec: ChildSpec,
    ctx: _ParseContext,
) -> Any:
    if element is None:
        return None
    if spec.model is DropdownList:
        return _read_dropdown(element, ctx)
    return _read_number_text(element, ctx)


def _read_number_text(element: etree._Element, ctx: _ParseContext) -> NumberText:
    reader = _ElementReader(element, ctx)
    number = NumberText(
        text=reader.attribute("text", ValueKind.STRING, required=True),
        value=reader.attribute("value", ValueKind.FLOAT, 0.0),
    )
    number.extras = reader.finish()
    return number


def _read_dropdown(element: etree._Element, ctx: _ParseContext) -> DropdownList:
    reader = _ElementReader(element, ctx)
    items = []
    for item_el in reader.children("i"):
        item = _ElementReader(item_el, ctx)
        label = item.attribute("l", ValueKind.STRING, required=True)
        value = _read_number_text(item.child("v", required=True), ctx)
        items.append(DropdownItem(label=label, value=value, extras=item.finish()))
    return DropdownList(items=items, extras=reader.finish(strict_children=True))
