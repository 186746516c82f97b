"""Loader for the bundled AMQP specification document."""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from importlib import resources
from types import MappingProxyType
from typing import Any

from dataclasses_json import DataClassJsonMixin, config

from .specs import (
    AMQPArgument,
    AMQPClass,
    AMQPConstant,
    AMQPFlagArgument,
    AMQPFlagsArgument,
    AMQPMethod,
    AMQPProperty,
    AMQProtocolDefinition,
    AMQPValueArgument,
)
from .types import AMQPType

logger = logging.getLogger(__name__)

SPECS_PACKAGE = "amqp_specs"
SPECS_FILE = "amqp-rabbitmq-0.9.1.json"

# Key holding class level hints in the metadata document
CLASS_METADATA_KEY = "metadata"

_g_specs: str | None = None


class SpecsError(RuntimeError):
    """Raised when the bundled specification document is malformed."""


@dataclass
class _Argument(DataClassJsonMixin):
    name: str
    type: str | None = None
    domain: str | None = None
    default_value: Any = field(default=None, metadata=config(field_name="default-value"))
    force_default: bool = field(default=False, metadata=config(field_name="force-default"))


@dataclass
class _Property(DataClassJsonMixin):
    name: str
    type: str | None = None
    domain: str | None = None


@dataclass
class _Method(DataClassJsonMixin):
    id: int
    name: str
    arguments: list[_Argument] = field(default_factory=list)
    synchronous: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class _Class(DataClassJsonMixin):
    id: int
    name: str
    methods: list[_Method] = field(default_factory=list)
    properties: list[_Property] = field(default_factory=list)


@dataclass
class _Constant(DataClassJsonMixin):
    name: str
    value: int
    klass: str | None = field(default=None, metadata=config(field_name="class"))


@dataclass
class _Document(DataClassJsonMixin):
    name: str
    major_version: int
    minor_version: int
    revision: int
    port: int
    copyright: str
    domains: dict[str, str]
    constants: list[_Constant]
    classes: list[_Class]


_REQUIRED_KEYS = (
    "name",
    "major_version",
    "minor_version",
    "revision",
    "port",
    "copyright",
    "domains",
    "constants",
    "classes",
)


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, list | tuple):
        return tuple(_freeze(v) for v in value)
    return value


def merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge override into a copy of base.

    Nested mappings are merged key by key, anything else in override replaces
    the value from base. Neither input is modified.
    """
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _spec_type(name: str, where: str) -> AMQPType:
    try:
        return AMQPType.from_spec_name(name)
    except KeyError as exc:
        raise SpecsError(f"{where}: unknown type {name!r}") from exc


class _Resolver:
    """Resolve argument and property types through the domains table."""

    def __init__(self, domains: Mapping[str, AMQPType]):
        self.domains = domains

    def resolve(self, type_name: str | None, domain: str | None, where: str) -> AMQPType:
        if domain is not None:
            if domain not in self.domains:
                raise SpecsError(f"{where}: unknown domain {domain!r}")
            return self.domains[domain]
        if type_name is None:
            raise SpecsError(f"{where}: neither type nor domain given")
        return _spec_type(type_name, where)

    def arguments(self, raw: list[_Argument], where: str) -> tuple[AMQPArgument, ...]:
        """Build the arguments of a method, grouping consecutive bits into flags."""
        arguments: list[AMQPArgument] = []
        flags: list[AMQPFlagArgument] = []

        for arg in raw:
            amqp_type = self.resolve(arg.type, arg.domain, f"{where}.{arg.name}")
            if amqp_type == AMQPType.Boolean:
                flags.append(AMQPFlagArgument(name=arg.name, default_value=bool(arg.default_value)))
                continue
            if flags:
                arguments.append(AMQPFlagsArgument(flags=tuple(flags)))
                flags = []
            arguments.append(
                AMQPValueArgument(
                    amqp_type=amqp_type,
                    name=arg.name,
                    default_value=_freeze(arg.default_value),
                    domain=arg.domain,
                    force_default=arg.force_default,
                )
            )

        if flags:
            arguments.append(AMQPFlagsArgument(flags=tuple(flags)))
        return tuple(arguments)

    def properties(self, raw: list[_Property], where: str) -> tuple[AMQPProperty, ...]:
        return tuple(
            AMQPProperty(amqp_type=self.resolve(p.type, p.domain, f"{where}.{p.name}"), name=p.name)
            for p in raw
        )


def _constant(raw: _Constant) -> AMQPConstant:
    amqp_type = AMQPType.ShortShortUInt if raw.value <= 0xFF else AMQPType.ShortUInt
    return AMQPConstant(name=raw.name, value=raw.value, amqp_type=amqp_type)


def _decode(text: str) -> _Document:
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise SpecsError(f"Failed to parse AMQP specs file: {exc}") from exc

    if not isinstance(data, dict):
        raise SpecsError("Failed to parse AMQP specs file: expected an object")
    missing = [key for key in _REQUIRED_KEYS if data.get(key) is None]
    if missing:
        raise SpecsError(f"Failed to parse AMQP specs file: missing or null {', '.join(missing)}")

    try:
        return _Document.from_dict(data)
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise SpecsError(f"Failed to parse AMQP specs file: {exc}") from exc


def _read_metadata(metadata: Mapping[str, Any] | str | None) -> Mapping[str, Any]:
    if metadata is None:
        return {}
    if isinstance(metadata, str):
        try:
            metadata = json.loads(metadata)
        except ValueError as exc:
            raise TypeError(f"metadata is not a JSON document: {exc}") from exc
    if not isinstance(metadata, Mapping):
        raise TypeError(f"metadata must be a mapping, not {type(metadata).__name__}")
    return metadata


def _class_hints(metadata: Mapping[str, Any], klass: _Class) -> Mapping[str, Any]:
    hints = metadata.get(klass.name, {})
    if not isinstance(hints, Mapping):
        raise TypeError(f"metadata for class {klass.name} must be a mapping")

    known = {m.name for m in klass.methods} | {CLASS_METADATA_KEY}
    for key in hints:
        if key not in known:
            logger.debug("Ignoring metadata for unknown method %s.%s", klass.name, key)
    return hints


def _hint(hints: Mapping[str, Any], key: str, where: str) -> Mapping[str, Any]:
    value = hints.get(key, {})
    if not isinstance(value, Mapping):
        raise TypeError(f"metadata for {where} must be a mapping")
    return value


def validate(definition: AMQProtocolDefinition) -> None:
    """Validate the uniqueness invariants of a protocol definition."""

    def check_unique(values: list[Any], what: str) -> None:
        seen = set()
        for value in values:
            if value in seen:
                raise SpecsError(f"Duplicate {what}: {value}")
            seen.add(value)

    check_unique([c.id for c in definition.classes], "class id")
    check_unique([c.name for c in definition.classes], "class name")
    for klass in definition.classes:
        check_unique([m.id for m in klass.methods], f"method id in {klass.name}")
        check_unique([m.name for m in klass.methods], f"method name in {klass.name}")
        for method in klass.methods:
            check_unique(method.argument_names(), f"argument name in {klass.name}.{method.name}")


def parse(text: str, metadata: Mapping[str, Any] | str | None = None) -> AMQProtocolDefinition:
    """Parse a specification document and merge metadata into it."""
    document = _decode(text)
    metadata = _read_metadata(metadata)

    for class_name in metadata:
        if not any(c.name == class_name for c in document.classes):
            logger.debug("Ignoring metadata for unknown class %s", class_name)

    domains = {}
    for name, type_name in document.domains.items():
        domains[name] = _spec_type(type_name, f"domain {name}")
    resolver = _Resolver(domains)

    classes = []
    for klass in document.classes:
        hints = _class_hints(metadata, klass)
        methods = tuple(
            AMQPMethod(
                id=method.id,
                arguments=resolver.arguments(method.arguments, f"{klass.name}.{method.name}"),
                name=method.name,
                synchronous=method.synchronous,
                metadata=_freeze(
                    merge(method.metadata, _hint(hints, method.name, f"{klass.name}.{method.name}"))
                ),
                is_reply=bool(method.metadata.get("is_reply", False)),
            )
            for method in klass.methods
        )
        classes.append(
            AMQPClass(
                id=klass.id,
                methods=methods,
                name=klass.name,
                properties=resolver.properties(klass.properties, klass.name),
                metadata=_freeze(dict(_hint(hints, CLASS_METADATA_KEY, klass.name))),
            )
        )

    constants, soft_errors, hard_errors = [], [], []
    for constant in document.constants:
        if constant.klass == "soft-error":
            soft_errors.append(_constant(constant))
        elif constant.klass == "hard-error":
            hard_errors.append(_constant(constant))
        elif constant.klass is None:
            constants.append(_constant(constant))
        else:
            raise SpecsError(f"Constant {constant.name} has unknown class {constant.klass!r}")

    definition = AMQProtocolDefinition(
        name=document.name,
        major_version=document.major_version,
        minor_version=document.minor_version,
        revision=document.revision,
        port=document.port,
        copyright=document.copyright,
        domains=MappingProxyType(domains),
        constants=tuple(constants),
        soft_errors=tuple(soft_errors),
        hard_errors=tuple(hard_errors),
        classes=tuple(classes),
    )
    validate(definition)
    return definition


def read_specs() -> str:
    """Read the bundled specification document."""
    global _g_specs

    if _g_specs is None:
        resource = resources.files(SPECS_PACKAGE).joinpath("data").joinpath(SPECS_FILE)
        _g_specs = resource.read_text(encoding="utf-8")
    return _g_specs


def load(metadata: Mapping[str, Any] | str | None = None) -> AMQProtocolDefinition:
    """Load the protocol definition from the bundled specification."""
    definition = parse(read_specs(), metadata)
    logger.debug(
        "Loaded %s %d.%d.%d: %d domains, %d classes, %d constants",
        definition.name,
        definition.major_version,
        definition.minor_version,
        definition.revision,
        len(definition.domains),
        len(definition.classes),
        len(definition.constants),
    )
    return definition
