"""Tests for the specification document parser."""

import json

import pytest

from amqp_specs.parser import SpecsError, merge, parse, read_specs
from amqp_specs.types import AMQPType


def make_document(**overrides):
    document = {
        "name": "AMQP",
        "major_version": 0,
        "minor_version": 9,
        "revision": 1,
        "port": 5672,
        "copyright": "nobody",
        "domains": {"bit": "bit", "queue-name": "shortstr"},
        "constants": [
            {"name": "FRAME-END", "value": 206},
            {"name": "NOT-FOUND", "value": 404, "class": "soft-error"},
        ],
        "classes": [
            {
                "id": 50,
                "name": "queue",
                "properties": [{"name": "headers", "type": "table"}],
                "methods": [
                    {
                        "id": 10,
                        "name": "declare",
                        "synchronous": True,
                        "arguments": [
                            {"name": "queue", "domain": "queue-name"},
                            {"name": "passive", "domain": "bit"},
                            {"name": "durable", "type": "bit", "default-value": True},
                        ],
                    },
                    {"id": 11, "name": "declare-ok", "metadata": {"is_reply": True}, "arguments": []},
                ],
            }
        ],
    }
    document.update(overrides)
    return json.dumps(document)


def describe_parse():
    def parses_minimal_document(expect):
        definition = parse(make_document())
        expect(definition.name) == "AMQP"
        expect(definition.domains) == {"bit": AMQPType.Boolean, "queue-name": AMQPType.ShortString}
        expect([c.name for c in definition.constants]) == ["FRAME-END"]
        expect([c.name for c in definition.soft_errors]) == ["NOT-FOUND"]
        expect(definition.hard_errors) == ()

    def groups_trailing_flags(expect):
        declare = parse(make_document()).classes[0].methods[0]
        expect(len(declare.arguments)) == 2
        expect([(f.name, f.default_value) for f in declare.arguments[1].flags]) == [
            ("passive", False),
            ("durable", True),
        ]

    def defaults_optional_method_fields(expect):
        declare_ok = parse(make_document()).classes[0].methods[1]
        expect(declare_ok.synchronous) == False
        expect(declare_ok.is_reply) == True
        expect(declare_ok.arguments) == ()

    def parses_bundled_document(expect):
        definition = parse(read_specs())
        expect(len(definition.classes)) == 8

    def caches_bundled_document(expect):
        expect(read_specs() is read_specs()) == True


def describe_malformed_documents():
    def rejects_invalid_json(expect):
        with pytest.raises(SpecsError) as exc:
            parse("{not json")
        expect("Failed to parse" in str(exc.value)) == True

    def rejects_non_object(expect):
        with pytest.raises(SpecsError):
            parse("[]")

    def rejects_missing_fields(expect):
        document = json.loads(make_document())
        del document["port"]
        with pytest.raises(SpecsError) as exc:
            parse(json.dumps(document))
        expect("port" in str(exc.value)) == True

    def rejects_null_fields(expect):
        with pytest.raises(SpecsError) as exc:
            parse(make_document(port=None))
        expect("port" in str(exc.value)) == True

    def rejects_missing_nested_fields():
        with pytest.raises(SpecsError):
            parse(make_document(classes=[{"name": "queue"}]))

    def rejects_unknown_domain_types(expect):
        with pytest.raises(SpecsError) as exc:
            parse(make_document(domains={"uuid": "uuid"}))
        expect("uuid" in str(exc.value)) == True

    def rejects_unknown_domains(expect):
        arguments = [{"name": "a", "domain": "nope"}]
        classes = [{"id": 1, "name": "c", "methods": [{"id": 1, "name": "m", "arguments": arguments}]}]
        with pytest.raises(SpecsError) as exc:
            parse(make_document(classes=classes))
        expect("c.m.a" in str(exc.value)) == True

    def rejects_untyped_arguments():
        arguments = [{"name": "a"}]
        classes = [{"id": 1, "name": "c", "methods": [{"id": 1, "name": "m", "arguments": arguments}]}]
        with pytest.raises(SpecsError):
            parse(make_document(classes=classes))

    def rejects_unknown_constant_classes():
        with pytest.raises(SpecsError):
            parse(make_document(constants=[{"name": "X", "value": 1, "class": "warning"}]))


def describe_validation():
    def rejects_duplicate_class_ids(expect):
        classes = [{"id": 1, "name": "a"}, {"id": 1, "name": "b"}]
        with pytest.raises(SpecsError) as exc:
            parse(make_document(classes=classes))
        expect("class id" in str(exc.value)) == True

    def rejects_duplicate_method_ids(expect):
        methods = [{"id": 1, "name": "a"}, {"id": 1, "name": "b"}]
        with pytest.raises(SpecsError) as exc:
            parse(make_document(classes=[{"id": 1, "name": "c", "methods": methods}]))
        expect("method id" in str(exc.value)) == True

    def rejects_duplicate_argument_names(expect):
        arguments = [
            {"name": "flag", "type": "bit"},
            {"name": "value", "type": "long"},
            {"name": "flag", "type": "bit"},
        ]
        classes = [{"id": 1, "name": "c", "methods": [{"id": 1, "name": "m", "arguments": arguments}]}]
        with pytest.raises(SpecsError) as exc:
            parse(make_document(classes=classes))
        expect("argument name" in str(exc.value)) == True


def describe_merge():
    def merges_nested_mappings(expect):
        base = {"a": 1, "nested": {"x": 1, "y": 2}}
        override = {"b": 2, "nested": {"y": 3}}
        expect(merge(base, override)) == {"a": 1, "b": 2, "nested": {"x": 1, "y": 3}}

    def replaces_non_mapping_values(expect):
        expect(merge({"a": {"x": 1}}, {"a": [1]})) == {"a": [1]}
        expect(merge({"a": [1]}, {"a": {"x": 1}})) == {"a": {"x": 1}}

    def leaves_inputs_untouched(expect):
        base = {"nested": {"x": 1}}
        override = {"nested": {"y": 2}}
        merge(base, override)
        expect(base) == {"nested": {"x": 1}}
        expect(override) == {"nested": {"y": 2}}
