"""The Microcontroller aggregate: root of a parsed or newly built circuit."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from pydantic import Field

from sw_mc.logging_config import get_logger
from sw_mc.models.elements import (
    BridgeComponent,
    Component,
    Connection,
    Endpoint,
    InputSlot,
    IONode,
)
from sw_mc.models.errors import (
    ComponentIdTooHigh,
    ConnectionError,
    DanglingEndpoint,
    DuplicateComponentId,
    DuplicateNodeId,
    InvalidSize,
    MissingBridgeComponent,
    NodeIdTooHigh,
    PortOutOfRange,
)
from sw_mc.models.types import ElementBase, Extras, NodeMode, Position, SignalType
from sw_mc.schema.components import bridge_kind_for
from sw_mc.schema.fields import ComponentKind

logger = get_logger("microcontroller")

ICON_SIZE = 16
MIN_SIZE = 1
MAX_SIZE = 6

DEFAULT_NAME = "New microcontroller"
DEFAULT_DESCRIPTION = "No description set."
DEFAULT_NODE_LABEL = "Input"
DEFAULT_NODE_DESCRIPTION = "The input signal to be processed."


class Microcontroller(ElementBase):
    """A microcontroller: metadata, IO nodes, logic and bridge components.

    Wires are stored where the game stores them, on the receiving input slot.
    ``connections`` exposes them as an ordered sequence. ``containers`` keeps
    the preserved content of the structural elements between the root and the
    components, keyed by path (``"group/data"``, ``"group/components"``...).
    """

    name: str = ""
    description: str = ""
    width: int = 2
    length: int = 2
    id_counter: int = 0
    id_counter_node: Optional[int] = None
    icon: list[int] = Field(default_factory=lambda: [0] * ICON_SIZE, description="sym0..sym15")
    data_type: Optional[str] = None
    nodes: list[IONode] = Field(default_factory=list)
    components: list[Component] = Field(default_factory=list)
    bridge_components: list[BridgeComponent] = Field(default_factory=list)
    containers: dict[str, Extras] = Field(default_factory=dict)

    # --- Construction and text I/O ---

    @classmethod
    def new(
        cls,
        name: str = DEFAULT_NAME,
        description: str = DEFAULT_DESCRIPTION,
        width: int = 2,
        length: int = 2,
    ) -> Microcontroller:
        """Create an empty microcontroller as the game does.

        Raises:
            InvalidSize: Width or length outside 1..6.
        """
        mc = cls(name=name, description=description, width=width, length=length)
        mc.validate_structure()
        return mc

    @classmethod
    def from_text(cls, text: Union[str, bytes], *, preserve_unknown: bool = True) -> Microcontroller:
        """Parse markup text. See ``sw_mc.codec.parser.parse_microcontroller``."""
        from sw_mc.codec.parser import parse_microcontroller

        return parse_microcontroller(text, preserve_unknown=preserve_unknown)

    def to_text(self) -> str:
        """Emit markup text. Raises EmitError on invalid in-memory values."""
        from sw_mc.codec.emitter import emit_microcontroller

        return emit_microcontroller(self)

    @classmethod
    def from_file(cls, path: Path, **kwargs: Any) -> Microcontroller:
        path = Path(path)
        logger.debug("Reading microcontroller from %s", path)
        return cls.from_text(path.read_bytes(), **kwargs)

    def to_file(self, path: Path) -> Path:
        """Write the emitted text as UTF-8 without newline translation."""
        path = Path(path)
        path.write_text(self.to_text(), encoding="utf-8", newline="")
        logger.debug("Wrote microcontroller '%s' to %s", self.name, path)
        return path

    # --- Components ---

    def all_components(self) -> list[Component]:
        """Logic components followed by bridge components."""
        return [*self.components, *self.bridge_components]

    def get_component(self, component_id: int) -> Optional[Component]:
        for component in self.all_components():
            if component.id == component_id:
                return component
        return None

    def add_component(
        self,
        kind: Union[str, int, ComponentKind],
        position: Optional[Position] = None,
        **properties: Any,
    ) -> Component:
        """Add a logic component with the next free id.

        Raises:
            UnknownComponentKindError: The kind is not registered.
        """
        component = Component.create(kind, self.id_counter + 1, position, **properties)
        self.id_counter += 1
        self.components.append(component)
        logger.debug("Added %s component %d", component.kind_name, component.id)
        return component

    def remove_component(self, component_id: int) -> Optional[Component]:
        """Remove a component by id. Wires pointing at it are left in place.

        The id counter steps back when the removed id was the last issued.
        """
        for container in (self.components, self.bridge_components):
            for index, component in enumerate(container):
                if component.id == component_id:
                    del container[index]
                    if self.id_counter == component_id:
                        self.id_counter -= 1
                    logger.debug("Removed component %d", component_id)
                    return component
        return None

    # --- IO nodes ---

    def get_node(self, node_id: int) -> Optional[IONode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def add_io(
        self,
        signal_type: SignalType,
        mode: NodeMode,
        label: Optional[str] = None,
        description: Optional[str] = None,
    ) -> IONode:
        """Add an IO node together with the bridge component behind it.

        Signal types without a bridge of their own (power, fluid...) are
        backed by a number bridge.
        """
        node_id = (self.id_counter_node or 0) + 1
        component_id = self.id_counter + 1
        bridge = BridgeComponent.create(bridge_kind_for(signal_type, mode == NodeMode.INPUT), component_id)
        node = IONode(
            id=node_id,
            component_id=component_id,
            label=DEFAULT_NODE_LABEL if label is None else label,
            description=DEFAULT_NODE_DESCRIPTION if description is None else description,
            mode=mode,
            signal_type=signal_type,
        )

        self.id_counter_node = node_id
        self.id_counter = component_id
        self.bridge_components.append(bridge)
        self.nodes.append(node)
        logger.debug("Added %s node %d backed by %s %d", mode.name.lower(), node_id, bridge.kind_name, component_id)
        return node

    def remove_io(self, node_id: int) -> Optional[IONode]:
        """Remove an IO node and its bridge component."""
        node = self.get_node(node_id)
        if node is None:
            return None
        self.nodes.remove(node)
        if self.id_counter_node == node_id:
            self.id_counter_node -= 1
        self.remove_component(node.component_id)
        return node

    # --- Wiring ---

    @property
    def connections(self) -> list[Connection]:
        """Every wire, in document order of the receiving component then input index."""
        wires = []
        for component in self.all_components():
            for index, slot in enumerate(component.inputs):
                if slot is not None and slot.connected:
                    wires.append(
                        Connection(
                            source=Endpoint(component_id=slot.component_id, port=slot.node_index),
                            destination=Endpoint(component_id=component.id, port=index),
                        )
                    )
        return wires

    def connect(self, source: Endpoint, destination: Endpoint) -> Connection:
        """Wire ``source`` (component output) into ``destination`` (component input).

        The source is not checked here; ``check_connections`` reports it.

        Raises:
            DanglingEndpoint: The destination component does not exist.
            PortOutOfRange: The destination has no such wired input.
        """
        component = self._input_owner(destination)
        slot = component.inputs[destination.port]
        if slot is None:
            slot = InputSlot()
            component.inputs[destination.port] = slot
        slot.component_id = source.component_id
        slot.node_index = source.port
        logger.debug("Connected %s -> %s", source, destination)
        return Connection(source=source, destination=destination)

    def disconnect(self, destination: Endpoint) -> Optional[Endpoint]:
        """Remove the wire feeding an input. Returns its former source, if any."""
        component = self._input_owner(destination)
        slot = component.inputs[destination.port]
        if slot is None or not slot.connected:
            return None
        previous = Endpoint(component_id=slot.component_id, port=slot.node_index)
        slot.component_id = None
        slot.node_index = 0
        return previous

    def _input_owner(self, destination: Endpoint) -> Component:
        component = self.get_component(destination.component_id)
        if component is None:
            raise DanglingEndpoint(
                f"No component with id {destination.component_id}",
                destination.component_id,
                destination.port,
            )
        kind = component.kind
        if (
            kind is None
            or not 0 <= destination.port < len(kind.inputs)
            or kind.inputs[destination.port].unused
        ):
            raise PortOutOfRange(
                f"Component {component.id} has no wired input {destination.port}",
                component.id,
                destination.port,
            )
        while len(component.inputs) < len(kind.inputs):
            component.inputs.append(None)
        return component

    # --- Checks ---

    def check_connections(self) -> list[ConnectionError]:
        """Report wires whose source does not exist. Never run implicitly."""
        by_id = {component.id: component for component in self.all_components()}
        problems: list[ConnectionError] = []
        for wire in self.connections:
            source = wire.source
            component = by_id.get(source.component_id)
            if component is None:
                problems.append(
                    DanglingEndpoint(
                        f"Input {wire.destination.port} of component {wire.destination.component_id} "
                        f"is wired to missing component {source.component_id}",
                        source.component_id,
                        source.port,
                    )
                )
                continue
            kind = component.kind
            if kind is not None and (
                source.port >= len(kind.outputs) or kind.outputs[source.port].unused
            ):
                problems.append(
                    PortOutOfRange(
                        f"Component {source.component_id} ({kind.name}) has no output {source.port}",
                        source.component_id,
                        source.port,
                    )
                )
        return problems

    def validate_structure(self) -> None:
        """Check the rules the game enforces on a microcontroller. Never run implicitly.

        Raises:
            InvalidSize: Width or length outside 1..6.
            DuplicateNodeId: Two IO nodes share an id.
            NodeIdTooHigh: A node id exceeds ``id_counter_node``.
            MissingBridgeComponent: A node's bridge component is absent.
            DuplicateComponentId: Two components share an id.
            ComponentIdTooHigh: A component id exceeds ``id_counter``.
        """
        if not (MIN_SIZE <= self.width <= MAX_SIZE and MIN_SIZE <= self.length <= MAX_SIZE):
            raise InvalidSize(
                f"Invalid size {self.width}x{self.length}, max is {MAX_SIZE}x{MAX_SIZE}",
                details={"width": self.width, "length": self.length},
            )

        bridge_ids = {bridge.id for bridge in self.bridge_components}
        max_node = self.id_counter_node or 0
        seen_nodes: set[int] = set()
        for node in self.nodes:
            if node.id in seen_nodes:
                raise DuplicateNodeId(f"Duplicate IO node id {node.id}", details={"id": node.id})
            seen_nodes.add(node.id)
            if node.id > max_node:
                raise NodeIdTooHigh(
                    f"Node id {node.id} is greater than id_counter_node {max_node}",
                    details={"id": node.id, "max": max_node},
                )
            if node.component_id not in bridge_ids:
                raise MissingBridgeComponent(
                    f"Node {node.id} refers to missing bridge component {node.component_id}",
                    details={"id": node.id, "component_id": node.component_id},
                )

        seen_components: set[int] = set()
        for component in self.all_components():
            if component.id in seen_components:
                raise DuplicateComponentId(
                    f"Duplicate component id {component.id}", details={"id": component.id}
                )
            seen_components.add(component.id)
            if component.id > self.id_counter:
                raise ComponentIdTooHigh(
                    f"Component id {component.id} is greater than id_counter {self.id_counter}",
                    details={"id": component.id, "max": self.id_counter},
                )
