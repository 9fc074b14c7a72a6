"""Custom exception hierarchy for the microcontroller codec."""

from __future__ import annotations

from typing import Any, Optional


class SwMcError(Exception):
    """Base exception for all sw-mc errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


# --- Parsing ---

class ParseError(SwMcError):
    """The markup text could not be turned into a Microcontroller."""

    def __init__(
        self,
        message: str,
        tag: Optional[str] = None,
        line: Optional[int] = None,
        details: dict | None = None,
    ):
        if line is not None:
            message = f"{message} (line {line})"
        super().__init__(message, details)
        self.tag = tag
        self.line = line


class UnexpectedElement(ParseError):
    """A child element is not permitted inside its parent."""

    def __init__(self, tag: str, context: str, line: Optional[int] = None):
        super().__init__(
            f"Unexpected element <{tag}> inside <{context}>",
            tag=tag,
            line=line,
            details={"tag": tag, "context": context},
        )
        self.context = context


class UnexpectedAttribute(ParseError):
    """An attribute is not known for its element and unknown data is rejected."""

    def __init__(self, tag: str, attribute: str, line: Optional[int] = None):
        super().__init__(
            f"Unexpected attribute '{attribute}' on <{tag}>",
            tag=tag,
            line=line,
            details={"tag": tag, "attribute": attribute},
        )
        self.attribute = attribute


class MissingRequiredAttribute(ParseError):
    def __init__(self, tag: str, attribute: str, line: Optional[int] = None):
        super().__init__(
            f"<{tag}> is missing required attribute '{attribute}'",
            tag=tag,
            line=line,
            details={"tag": tag, "attribute": attribute},
        )
        self.attribute = attribute


class MissingRequiredElement(ParseError):
    def __init__(self, tag: str, child: str, line: Optional[int] = None):
        super().__init__(
            f"<{tag}> is missing required child <{child}>",
            tag=tag,
            line=line,
            details={"tag": tag, "child": child},
        )
        self.child = child


class MalformedValue(ParseError):
    """An attribute's text was rejected by the primitive codec."""

    def __init__(
        self,
        tag: str,
        attribute: str,
        text: str,
        reason: str = "",
        line: Optional[int] = None,
    ):
        message = f"Malformed value {text!r} for attribute '{attribute}' on <{tag}>"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message,
            tag=tag,
            line=line,
            details={"tag": tag, "attribute": attribute, "text": text},
        )
        self.attribute = attribute
        self.text = text


class UnterminatedElement(ParseError):
    """The document ended before an element was closed."""


class EncodingError(ParseError):
    """The input is not a valid byte sequence for its declared encoding."""

    def __init__(self, message: str, offset: Optional[int] = None, line: Optional[int] = None):
        super().__init__(message, line=line, details={"offset": offset})
        self.offset = offset


class MalformedDocument(ParseError):
    """The input is not well-formed markup."""


# --- Primitive values ---

class DecodeError(SwMcError):
    """A scalar's textual form could not be decoded."""


class InvalidNumericLiteral(DecodeError):
    pass


class InvalidBooleanLiteral(DecodeError):
    pass


class ValueOutOfRange(DecodeError):
    pass


class EncodeError(SwMcError):
    """A typed value has no textual form in the schema."""


# --- Emitting ---

class EmitError(SwMcError):
    """The in-memory model could not be written out."""


class InvalidInMemoryValue(EmitError):
    """A field was set to a value outside its declared constraints."""

    def __init__(self, path: str, value: Any, reason: str):
        super().__init__(
            f"Invalid value {value!r} at {path}: {reason}",
            details={"path": path, "value": value, "reason": reason},
        )
        self.path = path
        self.value = value
        self.reason = reason


# --- Structure ---

class ValidationError(SwMcError):
    """The microcontroller violates a structural rule of the game."""


class InvalidSize(ValidationError):
    pass


class DuplicateComponentId(ValidationError):
    pass


class DuplicateNodeId(ValidationError):
    pass


class ComponentIdTooHigh(ValidationError):
    pass


class NodeIdTooHigh(ValidationError):
    pass


class MissingBridgeComponent(ValidationError):
    """An IO node points at a bridge component that does not exist."""


class UnknownComponentKindError(SwMcError):
    """No component kind is registered under the given name or code."""


# --- Wiring ---

class ConnectionError(SwMcError):
    """A wire references something that does not exist."""

    def __init__(self, message: str, component_id: int, port: int, details: dict | None = None):
        super().__init__(message, details or {"component_id": component_id, "port": port})
        self.component_id = component_id
        self.port = port


class DanglingEndpoint(ConnectionError):
    """A wire's source component id is not present in the microcontroller."""


class PortOutOfRange(ConnectionError):
    """A wire addresses a port index the component kind does not have."""


# --- Filesystem ---

class NotFoundError(SwMcError):
    pass


class MicrocontrollerFolderNotFoundError(NotFoundError):
    """The game's microcontroller folder could not be located."""
