"""Declarative field tables describing each component kind's markup."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional, Union

from sw_mc.codec.primitives import ValueKind
from sw_mc.models.errors import UnknownComponentKindError
from sw_mc.models.types import DropdownList, NumberText, SignalType


@dataclass(frozen=True)
class AttributeSpec:
    """One attribute of a component's ``<object>`` element.

    A non-required attribute is omitted on output when it equals ``default``.
    For a required attribute ``default`` is only the value given to new
    components.
    """

    name: str
    tag: str
    kind: ValueKind
    default: Any = None
    required: bool = False

    def is_default(self, value: Any) -> bool:
        if self.required:
            return False
        if self.default is None or value is None:
            return value is self.default
        return value == self.default

    def initial(self) -> Any:
        return self.default


@dataclass(frozen=True)
class ChildSpec:
    """One modeled child element of a component's ``<object>`` element."""

    name: str
    tag: str
    model: type = NumberText
    required: bool = True

    def initial(self) -> Any:
        if self.model is NumberText:
            return NumberText(text="0")
        if self.model is DropdownList:
            return DropdownList()
        return None


@dataclass(frozen=True)
class PortSpec:
    name: str
    tag: str
    signal: SignalType
    # Bridge slots the game writes but never wires
    unused: bool = False


PropertyValues = dict[str, Any]
ActiveHook = Callable[[PortSpec, int, PropertyValues], bool]


def _always(port: PortSpec, index: int, properties: PropertyValues) -> bool:
    return True


@dataclass(frozen=True)
class ComponentKind:
    """Schema of one component kind.

    ``port_order`` overrides the child order of port slots for kinds the game
    writes out of sequence. ``port_active`` decides which slots exist for a
    given set of property values.
    """

    code: int
    name: str
    inputs: tuple[PortSpec, ...] = ()
    outputs: tuple[PortSpec, ...] = ()
    attributes: tuple[AttributeSpec, ...] = ()
    children: tuple[ChildSpec, ...] = ()
    port_order: Optional[tuple[str, ...]] = None
    port_active: ActiveHook = field(default=_always, compare=False)
    bridge: bool = False

    @property
    def fields(self) -> tuple[Union[AttributeSpec, ChildSpec], ...]:
        return self.attributes + self.children

    def find_field(self, name: str) -> Union[AttributeSpec, ChildSpec, None]:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None

    def initial_properties(self) -> PropertyValues:
        return {spec.name: spec.initial() for spec in self.fields}

    def input_active(self, index: int, properties: PropertyValues) -> bool:
        return self.port_active(self.inputs[index], index, properties)

    def ordered_port_tags(self) -> list[str]:
        """Port slot tags in the order the game writes them."""
        if self.port_order is not None:
            return list(self.port_order)
        return [p.tag for p in self.inputs] + [p.tag for p in self.outputs]


class KindRegistry:
    """Lookup of component kinds by numeric code or snake_case name."""

    def __init__(self, label: str, kinds: list[ComponentKind]):
        self.label = label
        self._by_code = {kind.code: kind for kind in kinds}
        self._by_name = {kind.name: kind for kind in kinds}

    def __iter__(self) -> Iterator[ComponentKind]:
        return iter(self._by_code.values())

    def __len__(self) -> int:
        return len(self._by_code)

    def __contains__(self, key: object) -> bool:
        return key in self._by_code or key in self._by_name

    def get(self, code: int) -> Optional[ComponentKind]:
        return self._by_code.get(code)

    def lookup(self, key: Union[int, str, ComponentKind]) -> ComponentKind:
        """Resolve a kind from its code, its name or the kind itself.

        Raises:
            UnknownComponentKindError: Nothing is registered under ``key``.
        """
        if isinstance(key, ComponentKind):
            return key
        kind = self._by_name.get(key) if isinstance(key, str) else self._by_code.get(key)
        if kind is None:
            raise UnknownComponentKindError(
                f"Unknown {self.label} component kind: {key!r}",
                details={"key": key},
            )
        return kind
