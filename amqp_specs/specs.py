"""Records describing the AMQP protocol definition."""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from dataclasses_json import DataClassJsonMixin, config

from .types import AMQPType, AMQPValue


@dataclass(frozen=True)
class AMQPConstant(DataClassJsonMixin):
    """A constant as defined in the AMQP specification."""

    name: str
    value: int
    amqp_type: AMQPType = field(metadata=config(field_name="type"))


@dataclass(frozen=True)
class AMQPValueArgument(DataClassJsonMixin):
    """An argument holding a value.

    When force_default is set, default_value always replaces whatever the
    caller supplied (deprecated fields the broker expects to be empty).
    """

    amqp_type: AMQPType = field(metadata=config(field_name="type"))
    name: str
    default_value: AMQPValue | None = None
    domain: str | None = None
    force_default: bool = False


@dataclass(frozen=True)
class AMQPFlagArgument(DataClassJsonMixin):
    """A single boolean flag packed into a flags argument."""

    name: str
    default_value: bool = False


@dataclass(frozen=True)
class AMQPFlagsArgument(DataClassJsonMixin):
    """Consecutive boolean arguments, packed together as a bitmask on the wire."""

    flags: tuple[AMQPFlagArgument, ...]


AMQPArgument = AMQPValueArgument | AMQPFlagsArgument


@dataclass(frozen=True)
class AMQPProperty(DataClassJsonMixin):
    """A content property as defined in the AMQP specification."""

    amqp_type: AMQPType = field(metadata=config(field_name="type"))
    name: str


@dataclass(frozen=True)
class AMQPMethod(DataClassJsonMixin):
    """A method as defined in the AMQP specification.

    metadata carries free-form code generation hints and never affects the
    protocol fields.
    """

    id: int
    arguments: tuple[AMQPArgument, ...]
    name: str
    synchronous: bool
    metadata: Any
    is_reply: bool

    def value_arguments(self) -> Iterator[AMQPValueArgument]:
        """Iterate over the value arguments, in order."""
        return (arg for arg in self.arguments if isinstance(arg, AMQPValueArgument))

    def flag_arguments(self) -> Iterator[AMQPFlagArgument]:
        """Iterate over every flag of every flags argument, in order."""
        for arg in self.arguments:
            if isinstance(arg, AMQPFlagsArgument):
                yield from arg.flags

    def argument_names(self) -> list[str]:
        """Names of all value arguments and flags, in wire order."""
        names = []
        for arg in self.arguments:
            match arg:
                case AMQPValueArgument(name=name):
                    names.append(name)
                case AMQPFlagsArgument(flags=flags):
                    names.extend(flag.name for flag in flags)
        return names


@dataclass(frozen=True)
class AMQPClass(DataClassJsonMixin):
    """A class as defined in the AMQP specification."""

    id: int
    methods: tuple[AMQPMethod, ...]
    name: str
    properties: tuple[AMQPProperty, ...]
    metadata: Any

    def get_method(self, name: str) -> AMQPMethod | None:
        """Find a method by name."""
        return next((m for m in self.methods if m.name == name), None)

    def method_by_id(self, method_id: int) -> AMQPMethod | None:
        """Find a method by id."""
        return next((m for m in self.methods if m.id == method_id), None)


@dataclass(frozen=True)
class AMQProtocolDefinition(DataClassJsonMixin):
    """The complete AMQP protocol definition.

    Built by load() from the bundled RabbitMQ flavoured 0.9.1 specification
    and never modified afterwards: collections are tuples and mappings are
    read-only proxies, so a single instance can be shared freely.
    """

    name: str
    major_version: int
    minor_version: int
    revision: int
    port: int
    copyright: str
    domains: Mapping[str, AMQPType]
    constants: tuple[AMQPConstant, ...]
    soft_errors: tuple[AMQPConstant, ...]
    hard_errors: tuple[AMQPConstant, ...]
    classes: tuple[AMQPClass, ...]

    @classmethod
    def load(cls, metadata: Mapping[str, Any] | str | None = None) -> "AMQProtocolDefinition":
        """Load the protocol definition from the bundled specification.

        Args:
            metadata: Code generation hints keyed by class name, then by
                method name (or "metadata" for the class itself). Either a
                mapping or JSON text.

        Returns:
            The protocol definition with metadata merged into its classes
            and methods.
        """
        from .parser import load

        return load(metadata)

    def get_class(self, name: str) -> AMQPClass | None:
        """Find a class by name."""
        return next((c for c in self.classes if c.name == name), None)

    def class_by_id(self, class_id: int) -> AMQPClass | None:
        """Find a class by id."""
        return next((c for c in self.classes if c.id == class_id), None)


__all__ = [
    "AMQPArgument",
    "AMQPClass",
    "AMQPConstant",
    "AMQPFlagArgument",
    "AMQPFlagsArgument",
    "AMQPMethod",
    "AMQPProperty",
    "AMQProtocolDefinition",
    "AMQPValueArgument",
]
