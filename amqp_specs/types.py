"""Primitive AMQP wire types and their wire tags.

The tag table follows what RabbitMQ puts on the wire rather than the formal
0.9.1 specification:

- 's' means ShortInt (like 'U') instead of ShortString
- 'l' and 'L' both mean LongLongInt, LongLongUInt is never distinguished
- ShortString has no tag at all
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class AMQPType(StrEnum):
    """Enumeration of all the available AMQP types."""

    Boolean = "Boolean"
    ShortShortInt = "ShortShortInt"
    ShortShortUInt = "ShortShortUInt"
    ShortInt = "ShortInt"
    ShortUInt = "ShortUInt"
    LongInt = "LongInt"
    LongUInt = "LongUInt"
    LongLongInt = "LongLongInt"
    LongLongUInt = "LongLongUInt"
    Float = "Float"
    Double = "Double"
    DecimalValue = "DecimalValue"
    ShortString = "ShortString"
    LongString = "LongString"
    FieldArray = "FieldArray"
    Timestamp = "Timestamp"
    FieldTable = "FieldTable"
    ByteArray = "ByteArray"
    Void = "Void"

    @classmethod
    def from_id(cls, tag: str) -> "AMQPType | None":
        """Get the type matching a wire tag, or None for unknown tags."""
        return _FROM_TAG.get(tag)

    def get_id(self) -> str:
        """Get the wire tag of this type.

        LongLongUInt shares 'l' with LongLongInt, and ShortString returns
        SHORT_STRING_SENTINEL, which must never be written to the wire.
        """
        return _TO_TAG[self]

    @classmethod
    def from_spec_name(cls, name: str) -> "AMQPType":
        """Get the type named by the formal specification (e.g. 'octet')."""
        return _SPEC_NAMES[name]

    def bounds(self) -> tuple[int, int] | None:
        """Return the (min, max) range of integral types, None otherwise."""
        return _BOUNDS.get(self)


SHORT_STRING_SENTINEL = "_"

_FROM_TAG: dict[str, AMQPType] = {
    "t": AMQPType.Boolean,
    "b": AMQPType.ShortShortInt,
    "B": AMQPType.ShortShortUInt,
    # Specs says 'U', RabbitMQ says 's' (which means ShortString in specs)
    "s": AMQPType.ShortInt,
    "U": AMQPType.ShortInt,
    "u": AMQPType.ShortUInt,
    "I": AMQPType.LongInt,
    "i": AMQPType.LongUInt,
    # RabbitMQ treats both 'l' and 'L' as LongLongInt
    "L": AMQPType.LongLongInt,
    "l": AMQPType.LongLongInt,
    "f": AMQPType.Float,
    "d": AMQPType.Double,
    "D": AMQPType.DecimalValue,
    "S": AMQPType.LongString,
    "A": AMQPType.FieldArray,
    "T": AMQPType.Timestamp,
    "F": AMQPType.FieldTable,
    "x": AMQPType.ByteArray,
    "V": AMQPType.Void,
}

_TO_TAG: dict[AMQPType, str] = {
    AMQPType.Boolean: "t",
    AMQPType.ShortShortInt: "b",
    AMQPType.ShortShortUInt: "B",
    AMQPType.ShortInt: "s",
    AMQPType.ShortUInt: "u",
    AMQPType.LongInt: "I",
    AMQPType.LongUInt: "i",
    AMQPType.LongLongInt: "l",
    AMQPType.LongLongUInt: "l",
    AMQPType.Float: "f",
    AMQPType.Double: "d",
    AMQPType.DecimalValue: "D",
    # ShortString only exists for method arguments and properties
    AMQPType.ShortString: SHORT_STRING_SENTINEL,
    AMQPType.LongString: "S",
    AMQPType.FieldArray: "A",
    AMQPType.Timestamp: "T",
    AMQPType.FieldTable: "F",
    AMQPType.ByteArray: "x",
    AMQPType.Void: "V",
}

_SPEC_NAMES: dict[str, AMQPType] = {
    "bit": AMQPType.Boolean,
    "octet": AMQPType.ShortShortUInt,
    "short": AMQPType.ShortUInt,
    "long": AMQPType.LongUInt,
    "longlong": AMQPType.LongLongUInt,
    "shortstr": AMQPType.ShortString,
    "longstr": AMQPType.LongString,
    "table": AMQPType.FieldTable,
    "timestamp": AMQPType.Timestamp,
}


def _signed(bits: int) -> tuple[int, int]:
    return (-(1 << (bits - 1)), (1 << (bits - 1)) - 1)


def _unsigned(bits: int) -> tuple[int, int]:
    return (0, (1 << bits) - 1)


_BOUNDS: dict[AMQPType, tuple[int, int]] = {
    AMQPType.ShortShortInt: _signed(8),
    AMQPType.ShortShortUInt: _unsigned(8),
    AMQPType.ShortInt: _signed(16),
    AMQPType.ShortUInt: _unsigned(16),
    AMQPType.LongInt: _signed(32),
    AMQPType.LongUInt: _unsigned(32),
    AMQPType.LongLongInt: _signed(64),
    AMQPType.LongLongUInt: _unsigned(64),
    AMQPType.Timestamp: _unsigned(64),
}


# Python representation of each primitive type
Boolean = bool
ShortShortInt = int
ShortShortUInt = int
ShortInt = int
ShortUInt = int
LongInt = int
LongUInt = int
LongLongInt = int
LongLongUInt = int
Float = float
Double = float
ShortString = str
LongString = str
Timestamp = LongLongUInt
ByteArray = bytes
Void = None

AMQPValue = Any
FieldArray = list[AMQPValue]
FieldTable = dict[ShortString, AMQPValue]


@dataclass(frozen=True, slots=True)
class DecimalValue:
    """A decimal value represented by a scale and a value."""

    scale: ShortShortUInt
    value: LongUInt

    def __post_init__(self) -> None:
        for name, amqp_type in (("scale", AMQPType.ShortShortUInt), ("value", AMQPType.LongUInt)):
            low, high = _BOUNDS[amqp_type]
            if not low <= getattr(self, name) <= high:
                raise ValueError(f"DecimalValue {name} out of range for {amqp_type}: {getattr(self, name)}")


PRIMITIVE_TYPES = frozenset(AMQPType)


def is_integral(t: AMQPType) -> bool:
    """Check if a type is encoded as an integer."""
    return t in _BOUNDS


__all__ = [
    "AMQPType",
    "AMQPValue",
    "DecimalValue",
    "PRIMITIVE_TYPES",
    "SHORT_STRING_SENTINEL",
    "is_integral",
]

