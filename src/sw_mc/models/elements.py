"""Element models for components, IO nodes and the wires between them."""

from __future__ import annotations

from typing import Any, ClassVar, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from sw_mc.models.errors import ValidationError
from sw_mc.models.types import ElementBase, Extras, NodeMode, NodePosition, Position, SignalType
from sw_mc.schema.components import BRIDGE_KINDS, LOGIC_KINDS
from sw_mc.schema.fields import ComponentKind, KindRegistry


# --- Port slots ---

class InputSlot(ElementBase):
    """An ``<inN>`` slot. Holds the wire feeding this input, if any."""

    component_id: Optional[int] = Field(default=None, description="Source component id")
    node_index: int = Field(default=0, description="Source output index, 0-based")

    @property
    def connected(self) -> bool:
        return self.component_id is not None


class OutputSlot(ElementBase):
    """An ``<outN>`` slot. Wires are stored on the receiving input."""


# --- Components ---

class Component(ElementBase):
    """One logic element (``<c type><object id>``).

    ``inputs`` and ``outputs`` line up with the kind's port tables; ``None``
    marks a slot absent from the markup. ``properties`` holds the kind's
    settings keyed by field name. ``extras`` belongs to ``<object>``,
    ``wrapper_extras`` to the surrounding ``<c>``.
    """

    registry: ClassVar[KindRegistry] = LOGIC_KINDS

    type_code: int = 0
    id: int
    position: Position = Field(default_factory=Position)
    inputs: list[Optional[InputSlot]] = Field(default_factory=list)
    outputs: list[Optional[OutputSlot]] = Field(default_factory=list)
    properties: dict[str, Any] = Field(default_factory=dict)
    wrapper_extras: Extras = Field(default_factory=Extras)

    @property
    def kind(self) -> Optional[ComponentKind]:
        """Registered kind, or None for a type code this library does not know."""
        return self.registry.get(self.type_code)

    @property
    def kind_name(self) -> Optional[str]:
        kind = self.kind
        return kind.name if kind else None

    @classmethod
    def create(
        cls,
        kind: Union[str, int, ComponentKind],
        id: int,
        position: Optional[Position] = None,
        **properties: Any,
    ) -> Component:
        """Build a component with the game's initial settings for its kind.

        Args:
            kind: Kind name (``"and"``), type code or ComponentKind.
            id: Component id.
            position: Logic-view position, origin when omitted.
            **properties: Overrides for the kind's properties.

        Raises:
            UnknownComponentKindError: The kind is not registered.
            ValidationError: A property name is not defined for the kind.
        """
        spec = cls.registry.lookup(kind)
        values = spec.initial_properties()
        for name, value in properties.items():
            if spec.find_field(name) is None:
                raise ValidationError(
                    f"Component kind '{spec.name}' has no property '{name}'",
                    details={"kind": spec.name, "property": name},
                )
            values[name] = value

        inputs = [
            InputSlot() if spec.input_active(i, values) else None
            for i in range(len(spec.inputs))
        ]
        return cls(
            type_code=spec.code,
            id=id,
            position=position or Position(),
            inputs=inputs,
            outputs=[OutputSlot() for _ in spec.outputs],
            properties=values,
        )


class BridgeComponent(Component):
    """Logic-side half of an IO node (``components_bridge``)."""

    registry: ClassVar[KindRegistry] = BRIDGE_KINDS


# --- IO nodes ---

class IONode(ElementBase):
    """An external connector (``<n id component_id><node .../></n>``).

    ``extras`` belongs to ``<n>``, ``node_extras`` to the inner ``<node>``.
    """

    id: int
    component_id: int = Field(description="Id of the backing bridge component")
    label: str
    description: str
    mode: NodeMode = NodeMode.OUTPUT
    signal_type: SignalType = SignalType.ON_OFF
    position: NodePosition = Field(default_factory=NodePosition)
    node_extras: Extras = Field(default_factory=Extras)


# --- Wiring ---

class Endpoint(BaseModel):
    """One end of a wire: a component id and a 0-based port index."""

    model_config = ConfigDict(frozen=True)

    component_id: int
    port: int = 0


class Connection(BaseModel):
    """A wire from a source output to a destination input."""

    model_config = ConfigDict(frozen=True)

    source: Endpoint
    destination: Endpoint
