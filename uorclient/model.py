"""Core types describing the nodes, edges and attributes of a data set."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, Optional, Protocol, runtime_checkable


class Kind(Enum):
    """The kind of value an attribute holds."""

    INVALID = 0
    NULL = 1
    BOOL = 2
    INT = 3
    FLOAT = 4
    STRING = 5

    def __str__(self) -> str:
        return _KIND_NAMES[self]


_KIND_NAMES = {
    Kind.INVALID: "INVALID",
    Kind.NULL: "null",
    Kind.BOOL: "bool",
    Kind.FLOAT: "float",
    Kind.INT: "int",
    Kind.STRING: "string",
}


def _kind_of(value: Any) -> Kind:
    if value is None:
        return Kind.NULL
    # bool must be checked before int, since bool is a subclass of int.
    if isinstance(value, bool):
        return Kind.BOOL
    if isinstance(value, int):
        return Kind.INT
    if isinstance(value, float):
        return Kind.FLOAT
    if isinstance(value, str):
        return Kind.STRING
    return Kind.INVALID


def _encode_string(value: str) -> str:
    encoded = json.dumps(value, ensure_ascii=False)
    return (
        encoded.replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )


def _encode_value(value: Any) -> str:
    kind = _kind_of(value)
    if kind is Kind.NULL:
        return "null"
    if kind is Kind.BOOL:
        return "true" if value else "false"
    if kind is Kind.INT:
        return str(value)
    if kind is Kind.FLOAT:
        if not math.isfinite(value):
            raise ValueError(f"unsupported float value: {value!r}")
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    if kind is Kind.STRING:
        return _encode_string(value)
    raise ValueError(f"unsupported value type {type(value).__name__}")


@dataclass(frozen=True)
class Attribute:
    """A typed key/value pair describing a node."""

    key: str
    value: Any = None

    def __post_init__(self) -> None:
        if not isinstance(self.key, str):
            raise TypeError("attribute key must be a string")
        if _kind_of(self.value) is Kind.INVALID:
            raise ValueError(
                f"attribute {self.key!r}: unsupported value type {type(self.value).__name__}"
            )

    @classmethod
    def reflect(cls, key: str, value: Any) -> "Attribute":
        """Build an attribute from a decoded JSON value, checking its type."""
        return cls(key, value)

    def kind(self) -> Kind:
        """Return the kind of the held value."""
        return _kind_of(self.value)

    def is_null(self) -> bool:
        return self.kind() is Kind.NULL

    def _expect(self, kind: Kind) -> Any:
        actual = self.kind()
        if actual is not kind:
            raise TypeError(f"attribute {self.key!r} is of kind {actual}, not {kind}")
        return self.value

    def as_bool(self) -> bool:
        return self._expect(Kind.BOOL)

    def as_int(self) -> int:
        return self._expect(Kind.INT)

    def as_float(self) -> float:
        return self._expect(Kind.FLOAT)

    def as_string(self) -> str:
        return self._expect(Kind.STRING)


class AttributeSet:
    """A set of attributes indexed by key."""

    def __init__(self, attributes: Iterable[Attribute] = ()) -> None:
        self._attributes: dict[str, Attribute] = {}
        for attribute in attributes:
            self.add(attribute)

    def add(self, attribute: Attribute) -> None:
        """Add an attribute, replacing any attribute with the same key."""
        self._attributes[attribute.key] = attribute

    def exists(self, attribute: Attribute) -> bool:
        """Return whether an attribute with the same key, kind and value is present."""
        stored = self._attributes.get(attribute.key)
        if stored is None or stored.kind() is not attribute.kind():
            return False
        return stored.value == attribute.value

    def find(self, key: str) -> Optional[Attribute]:
        """Return the attribute stored under ``key``, if any."""
        return self._attributes.get(key)

    def as_json(self) -> str:
        """Return a compact JSON object with keys in sorted order."""
        members = (
            f"{_encode_string(key)}:{_encode_value(self._attributes[key].value)}"
            for key in sorted(self._attributes)
        )
        return "{" + ",".join(members) + "}"

    def list(self) -> dict[str, Attribute]:
        """Return a copy of the key to attribute mapping."""
        return dict(self._attributes)

    def __len__(self) -> int:
        return len(self._attributes)

    def __iter__(self) -> Iterator[Attribute]:
        return iter(list(self._attributes.values()))

    def __contains__(self, key: object) -> bool:
        return key in self._attributes

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AttributeSet):
            return NotImplemented
        return self._attributes == other._attributes

    def __repr__(self) -> str:
        return f"AttributeSet({list(self._attributes.values())!r})"


@runtime_checkable
class Node(Protocol):
    """A read-only node in a data set graph."""

    @property
    def id(self) -> str: ...

    @property
    def address(self) -> str: ...

    @property
    def attributes(self) -> Optional[AttributeSet]: ...


@runtime_checkable
class Edge(Protocol):
    """A directed relationship between two nodes."""

    @property
    def from_node(self) -> Node: ...

    @property
    def to_node(self) -> Node: ...


@runtime_checkable
class Matcher(Protocol):
    """Filters nodes by some criteria."""

    def matches(self, node: Node) -> bool: ...


class NotStoredError(LookupError):
    """A reference has no descriptor in the content store."""

    def __init__(self, reference: str) -> None:
        self.reference = reference
        super().__init__(f"descriptor for reference {reference} is not stored")