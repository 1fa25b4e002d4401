"""Tests for the schema root and end-to-end inference."""

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from docschema.__version__ import __version__
from docschema.schema import Schema, SchemaState
from docschema.schema.classifier import MAX_NESTING_DEPTH
from docschema.utils.exceptions import (
    InvalidInputError,
    SchemaClassificationError,
    SchemaStateError,
)
from docschema.utils.helpers import dumps_schema


def _parse_all(docs, ns="test.docs"):
    schema = Schema(ns=ns)
    for doc in docs:
        schema.parse(doc)
    return schema


def _walk_fields(fields):
    """Yield every field of a collection, descending into documents and arrays."""
    for field in fields:
        yield field
        for schema_type in field.types:
            yield from _walk_type(schema_type)


def _walk_type(schema_type):
    if schema_type.name == "Document":
        yield from _walk_fields(schema_type.fields)
    elif schema_type.name == "Array":
        for element_type in schema_type.types:
            yield from _walk_type(element_type)


MIXED_DOCS = [
    {"x": [1, 2, 3]},
    {"x": "foo"},
    {"x": {"b": 1}},
    {"x": ["bar", None, False]},
    {"x": [{"c": 1, "d": 1}, {"c": 2}]},
    {"e": 1},
]


class TestSchemaParse:
    """Basic parsing."""

    @pytest.fixture
    def schema(self):
        return Schema()

    def test_constructable(self, schema):
        assert schema.count == 0
        assert schema.state is SchemaState.EMPTY

    def test_simple_document(self, schema):
        schema.parse({"foo": 1})
        assert schema.fields.get("foo")
        assert schema.count == 1
        assert schema.state is SchemaState.READY

    def test_nested_document(self, schema):
        schema.parse({"foo": {"bar": 1}})
        foo = schema.fields.get("foo")
        assert foo.types.get("Document").fields.get("bar")
        assert foo.types.get("Document").count == 1

    def test_parent_tree(self, schema):
        schema.parse({"foo": {"bar": [1, 2, 3]}})
        foo = schema.fields.get("foo")
        assert foo.parent is schema
        subdoc = foo.types.get("Document")
        assert subdoc.parent is foo
        bar = subdoc.fields.get("bar")
        assert bar.parent is subdoc
        arr = bar.types.get("Array")
        assert arr.parent is bar
        assert arr.types.get("Number").parent is arr

    def test_done_callback(self, schema):
        calls = []
        schema.parse({"a": 1}, done=lambda: calls.append(schema.count))
        assert calls == [1]

    def test_non_mapping_rejected(self, schema):
        with pytest.raises(InvalidInputError):
            schema.parse(["not", "a", "document"])
        assert schema.count == 0

    def test_unclassifiable_document_leaves_schema_untouched(self, schema):
        schema.parse({"a": 1})
        with pytest.raises(SchemaClassificationError):
            schema.parse({"a": 2, "b": {"c": object()}})
        assert schema.count == 1
        assert schema.fields.names == ["a"]
        assert schema.fields.get("a").count == 1
        assert schema.fields.get("a").values == [1]

    def test_commit_during_ingestion_fails(self, schema):
        schema.parse({"a": 1})
        schema.state = SchemaState.INGESTING
        with pytest.raises(SchemaStateError):
            schema.commit()

    def test_parse_during_cycle_fails(self, schema):
        schema.state = SchemaState.FINALIZING
        with pytest.raises(SchemaStateError):
            schema.parse({"a": 1})

    def test_commit_on_empty_schema(self, schema):
        schema.commit()
        assert schema.serialize()["fields"] == []

    def test_stream_yields_after_commit(self, schema):
        docs = [{"foo": 1}, {"bar": 1, "foo": 2}]
        seen = []
        for doc in schema.stream(docs):
            seen.append(doc)
            assert schema.fields.get("foo")
            if len(seen) == 1:
                assert schema.fields.get("bar") is None
            else:
                assert schema.fields.get("bar")
        assert seen == docs
        assert schema.count == 2


class TestScenarios:
    """End-to-end inference scenarios."""

    def test_mixed_types_with_missing_field(self):
        schema = _parse_all([{"x": 1}, {"x": "a"}, {}])
        x = schema.fields.get("x")
        assert x.count == 2
        for name in ("Number", "String", "Undefined"):
            assert x.types.get(name).count == 1
            assert x.types.get(name).probability == pytest.approx(1 / 3)
        assert x.types.names[-1] == "Undefined"

    def test_embedded_document(self):
        schema = _parse_all([{"a": {"b": 1}}])
        a = schema.fields.get("a")
        assert a.types.get("Document").fields.get("b").count == 1
        assert a.probability == 1

    def test_arrays_pool_element_types(self):
        schema = _parse_all([{"arr": [1, 2, 3]}, {"arr": ["x", "y"]}])
        arr = schema.fields.get("arr").types.get("Array")
        assert arr.lengths == [3, 2]
        assert arr.total_elements == 5
        assert arr.types.get("Number").count == 3
        assert arr.types.get("String").count == 2
        assert arr.types.get("Number").probability == pytest.approx(3 / 5)

    def test_null_with_missing(self):
        schema = _parse_all([{"code": None}, {"code": None}, {"other": 1}])
        code = schema.fields.get("code")
        assert code.types.get("Null").count == 2
        assert code.unique == 1
        assert code.has_duplicates is True


class TestMixedStructures:
    """Arrays and documents as types of the same field."""

    @pytest.fixture
    def schema(self):
        return _parse_all(MIXED_DOCS, ns="mixed.mess")

    def test_type_distribution(self, schema):
        x = schema.fields.get("x")
        dist = {t.name: t.probability for t in x.types}
        assert dist == pytest.approx({
            "Array": 3 / 6,
            "String": 1 / 6,
            "Document": 1 / 6,
            "Undefined": 1 / 6,
        })
        assert x.types.names[0] == "Array"
        assert x.types.names[-1] == "Undefined"

    def test_basic_values_at_field_level(self, schema):
        assert schema.fields.get("x").values == ["foo"]

    def test_fields_alias(self, schema):
        x = schema.fields.get("x")
        assert x.fields is x.types.get("Document").fields

    def test_array_lengths(self, schema):
        arr = schema.fields.get("x").types.get("Array")
        assert arr.lengths == [3, 3, 2]
        assert arr.count == 3
        assert arr.total_elements == 8

    def test_array_element_distribution(self, schema):
        arr = schema.fields.get("x").types.get("Array")
        dist = {t.name: t.probability for t in arr.types}
        assert dist == pytest.approx({
            "Number": 3 / 8,
            "String": 1 / 8,
            "Null": 1 / 8,
            "Boolean": 1 / 8,
            "Document": 2 / 8,
        })
        assert arr.types.names[:2] == ["Number", "Document"]

    def test_array_values(self, schema):
        arr = schema.fields.get("x").types.get("Array")
        assert arr.values == [1, 2, 3, "bar", False]

    def test_array_fields_alias(self, schema):
        arr = schema.fields.get("x").types.get("Array")
        assert arr.fields is arr.types.get("Document").fields

    def test_documents_inside_arrays(self, schema):
        arr = schema.fields.get("x").types.get("Array")
        c = arr.fields.get("c")
        d = arr.fields.get("d")
        assert c.probability == 1
        assert d.probability == pytest.approx(0.5)
        assert d.types.get("Undefined").count == 1


class TestUnique:
    """Uniqueness accounting."""

    @pytest.fixture
    def schema(self):
        return _parse_all([
            {"_id": 1, "registered": True, "b": False},
            {"_id": 2, "registered": True, "code": None, "b": "false"},
            {"_id": 3, "code": None},
        ], ns="unique")

    def test_id_is_unique(self, schema):
        _id = schema.fields.get("_id")
        assert _id.count == 3
        assert _id.unique == 3
        assert _id.types.get("Number").unique == 3
        assert _id.has_duplicates is False

    def test_registered(self, schema):
        registered = schema.fields.get("registered")
        assert registered.count == 2
        assert registered.types.get("Boolean").unique == 1
        assert registered.unique == 1
        assert registered.types.get("Undefined").unique == 0
        assert registered.has_duplicates is True

    def test_code(self, schema):
        assert schema.fields.get("code").types.get("Null").unique == 1

    def test_b_has_no_duplicates(self, schema):
        assert schema.fields.get("b").has_duplicates is False


class TestProperties:
    """Invariants that hold for every field of a schema."""

    DOCS = MIXED_DOCS + [
        {"x": "foo", "y": {"z": [1, 1, {"w": None}]}},
        {"y": {"z": "s"}, "e": 2},
        {"e": 2.5, "y": None},
    ]

    @pytest.fixture
    def schema(self):
        return _parse_all(self.DOCS)

    def test_unique_never_exceeds_count(self, schema):
        for field in _walk_fields(schema.fields):
            assert field.unique <= field.count

    def test_probabilities_sum_to_one(self, schema):
        for field in _walk_fields(schema.fields):
            if field.count > 0:
                total = sum(t.probability for t in field.types)
                assert total == pytest.approx(1.0)

    def test_undefined_iff_missing(self, schema):
        for field in _walk_fields(schema.fields):
            has_undefined = "Undefined" in field.types
            assert has_undefined == (field.total > field.count)
            if has_undefined:
                assert field.types.get("Undefined").count == field.total - field.count

    def test_types_sorted(self, schema):
        for field in _walk_fields(schema.fields):
            names = field.types.names
            if "Undefined" in names:
                assert names[-1] == "Undefined"
            probabilities = [t.probability for t in field.types if t.name != "Undefined"]
            assert probabilities == sorted(probabilities, reverse=True)

    def test_commit_is_idempotent(self, schema):
        before = schema.serialize()
        schema.commit()
        schema.commit()
        assert schema.serialize() == before


class TestSerialize:
    """Top-level projection."""

    def test_top_level_keys(self):
        schema = _parse_all([{"a": 1}, {"a": 2, "b": {"c": "x"}}], ns="db.coll")
        result = schema.serialize()
        assert result["format"] == "docschema"
        assert result["version"] == __version__
        assert result["ns"] == "db.coll"
        assert result["count"] == 2
        assert [f["name"] for f in result["fields"]] == ["a", "b"]

    def test_max_values_caps_samples(self):
        schema = Schema(max_values=2)
        for i in range(5):
            schema.parse({"n": i})
        field = schema.serialize()["fields"][0]
        assert field["values"] == [0, 1]
        assert field["types"][0]["values"] == [0, 1]
        assert field["types"][0]["max"] == 4

    def test_integer_beyond_float_range(self):
        schema = _parse_all([{"n": 10 ** 400}, {"n": 1}])
        number = schema.serialize()["fields"][0]["types"][0]
        assert number["name"] == "Number"
        assert number["max"] == 10 ** 400
        assert number["mean"] is None
        assert json.loads(dumps_schema(schema.serialize()))["count"] == 2


def _nested(depth):
    """Build a document whose innermost scalar sits ``depth`` levels down."""
    doc = {"a": 1}
    for _ in range(depth - 1):
        doc = {"a": doc}
    return doc


class TestNestingDepth:
    """Documents nesting past the depth limit are rejected before ingestion."""

    def test_limit_is_accepted(self):
        schema = _parse_all([_nested(MAX_NESTING_DEPTH)])
        assert schema.count == 1
        assert schema.serialize()["fields"][0]["name"] == "a"

    def test_deep_document_leaves_empty_schema_untouched(self):
        schema = Schema()
        with pytest.raises(InvalidInputError, match="nests deeper"):
            schema.parse(_nested(2000))
        assert schema.count == 0
        assert schema.state is SchemaState.EMPTY
        assert schema.fields.names == []

    def test_deep_document_leaves_ready_schema_usable(self):
        schema = _parse_all([{"a": 1}])
        with pytest.raises(InvalidInputError):
            schema.parse({"a": 2, "b": _nested(MAX_NESTING_DEPTH + 1)})
        assert schema.count == 1
        assert schema.state is SchemaState.READY
        assert schema.fields.names == ["a"]
        schema.parse({"a": 3})
        assert schema.count == 2
        assert schema.fields.get("a").values == [1, 3]

    def test_deep_array(self):
        value = [1]
        for _ in range(2000):
            value = [value]
        schema = Schema()
        with pytest.raises(InvalidInputError):
            schema.parse({"a": value})
        assert schema.count == 0
