"""Decoded typedstream data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, List, Optional, Union


class PrimitiveKind(Enum):
    SIGNED = "signed"
    UNSIGNED = "unsigned"
    FLOAT = "float"
    STRING = "string"
    BYTES = "bytes"
    CLASS = "class"
    NIL = "nil"


@dataclass(frozen=True)
class ClassDescriptor:
    """Archived class name and version."""
    name: str
    version: int = 0


@dataclass(frozen=True)
class Primitive:
    """A single decoded leaf value."""
    kind: PrimitiveKind
    value: Any = None

    @property
    def is_integer(self) -> bool:
        return self.kind in (PrimitiveKind.SIGNED, PrimitiveKind.UNSIGNED)

    @property
    def is_number(self) -> bool:
        return self.is_integer or self.kind == PrimitiveKind.FLOAT

    def to_json(self):
        if self.kind == PrimitiveKind.BYTES:
            return {self.kind.value: self.value.hex()}
        if self.kind == PrimitiveKind.CLASS:
            return {self.kind.value: {"name": self.value.name, "version": self.value.version}}
        return {self.kind.value: self.value}


@dataclass
class ValueRun:
    """Primitives decoded together under one type encoding."""
    values: List[Primitive] = field(default_factory=list)

    def integers(self) -> List[int]:
        return [v.value for v in self.values if v.is_integer]

    @property
    def is_integer_record(self) -> bool:
        return bool(self.values) and all(v.is_integer for v in self.values)

    def to_json(self) -> dict:
        return {"values": [v.to_json() for v in self.values]}


@dataclass(eq=False)
class ArchivedObject:
    """
    An archived instance.

    classes is ordered oldest ancestor first, so the concrete class is last.
    fields holds the ValueRuns and nested objects read from the object's
    body, in wire order. A back-referenced object is shared, not copied.
    """
    classes: List[ClassDescriptor] = field(default_factory=list)
    fields: List["DecodedNode"] = field(default_factory=list)

    @property
    def class_name(self) -> str:
        return self.classes[-1].name if self.classes else ""

    @property
    def class_names(self) -> List[str]:
        return [c.name for c in self.classes]

    def is_kind_of(self, *names: str) -> bool:
        return any(c.name in names for c in self.classes)

    def children(self) -> List["ArchivedObject"]:
        return [f for f in self.fields if isinstance(f, ArchivedObject)]

    def primitives(self) -> Iterator[Primitive]:
        for node in self.fields:
            if isinstance(node, ValueRun):
                yield from node.values

    def string_value(self) -> Optional[str]:
        for value in self.primitives():
            if value.kind == PrimitiveKind.STRING:
                return value.value
        return None

    def number_value(self) -> Optional[Union[int, float]]:
        """Last numeric primitive in the body (NSNumber stores its type code first)."""
        found = None
        for value in self.primitives():
            if value.is_number:
                found = value.value
        return found

    def bytes_value(self) -> Optional[bytes]:
        for value in self.primitives():
            if value.kind == PrimitiveKind.BYTES:
                return value.value
        return None

    def same_shape(self, other: "ArchivedObject", _seen=None) -> bool:
        """Structural equality, safe against shared and cyclic references."""
        if not isinstance(other, ArchivedObject):
            return False
        seen = _seen if _seen is not None else set()
        key = (id(self), id(other))
        if key in seen:
            return True
        seen.add(key)
        if self.classes != other.classes or len(self.fields) != len(other.fields):
            return False
        for mine, theirs in zip(self.fields, other.fields):
            if isinstance(mine, ArchivedObject):
                if not mine.same_shape(theirs, seen):
                    return False
            elif mine != theirs:
                return False
        return True

    def to_json(self) -> dict:
        return {
            "classes": [{"name": c.name, "version": c.version} for c in self.classes],
            "values": [v.to_json() for v in self.primitives()],
        }

    def __repr__(self):
        return f"ArchivedObject({self.class_name}, {len(self.fields)} fields)"


DecodedNode = Union[ArchivedObject, ValueRun]


def nodes_equal(left: List[DecodedNode], right: List[DecodedNode]) -> bool:
    """Compare two decoded node sequences structurally."""
    if len(left) != len(right):
        return False
    for a, b in zip(left, right):
        if isinstance(a, ArchivedObject):
            if not a.same_shape(b):
                return False
        elif a != b:
            return False
    return True
