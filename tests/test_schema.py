import pytest

from uorclient.model import Attribute, AttributeSet, Kind
from uorclient.schema import (
    Schema,
    SchemaError,
    SchemaType,
    from_bytes,
    from_types,
    validate_types,
)


def test_from_types_valid_configuration():
    schema = from_types({"test": SchemaType.STRING, "size": SchemaType.NUMBER})
    assert schema.export() == (
        b'{"type":"object","properties":'
        b'{"size":{"type":"number"},"test":{"type":"string"}},"required":["size","test"]}'
    )


@pytest.mark.parametrize(
    "types, message",
    [
        ({"test": SchemaType.STRING, "size": SchemaType.INVALID}, "must set schema type"),
        ({"test": SchemaType.STRING, "size": 20}, "unknown schema type"),
    ],
)
def test_from_types_failures(types, message):
    with pytest.raises(SchemaError) as info:
        from_types(types)
    assert str(info.value) == message


def test_validate_types_rejects_unknown():
    with pytest.raises(SchemaError, match="unknown schema type"):
        validate_types({"a": 99})


def test_from_bytes_valid():
    schema = from_bytes(b'{"size":{"type":"number"}}')
    assert schema.export() == b'{"size":{"type":"number"}}'


def test_from_bytes_invalid_json():
    with pytest.raises(SchemaError) as info:
        from_bytes(b'"size"": "type"": number')
    assert str(info.value) == "error creating JSON schema: schema is invalid"


def test_export():
    schema = from_bytes('{"type":"string"}')
    assert schema.export() == b'{"type":"string"}'
    assert isinstance(schema, Schema)


def test_validate_valid_attributes():
    schema = from_types({"size": SchemaType.NUMBER})
    doc = AttributeSet([Attribute("size", 1.0)])
    assert schema.validate(doc) is True


@pytest.mark.parametrize(
    "types, doc, message",
    [
        (
            {"size": SchemaType.BOOL},
            AttributeSet([Attribute("size", 1.0)]),
            "size: invalid type. expected: boolean, given: integer",
        ),
        (
            {"size": SchemaType.STRING},
            AttributeSet([Attribute("name", "test")]),
            "(root): size is required",
        ),
    ],
)
def test_validate_failures(types, doc, message):
    schema = from_types(types)
    with pytest.raises(SchemaError) as info:
        schema.validate(doc)
    assert str(info.value) == message


@pytest.mark.parametrize(
    "schema_type, kind",
    [
        (SchemaType.NUMBER, Kind.FLOAT),
        (SchemaType.INTEGER, Kind.INT),
        (SchemaType.BOOL, Kind.BOOL),
        (SchemaType.STRING, Kind.STRING),
        (SchemaType.NULL, Kind.NULL),
    ],
)
def test_is_like(schema_type, kind):
    assert schema_type.is_like() is kind


def test_is_like_invalid():
    with pytest.raises(SchemaError, match="must set schema type"):
        SchemaType.INVALID.is_like()


@pytest.mark.parametrize("schema_type", [t for t in SchemaType if t is not SchemaType.INVALID])
def test_json_round_trip(schema_type):
    assert SchemaType.from_json(schema_type.to_json()) is schema_type


def test_to_json_values():
    assert SchemaType.NUMBER.to_json() == '"number"'
    assert str(SchemaType.BOOL) == "boolean"


def test_from_json_unknown_name():
    with pytest.raises(SchemaError, match="must set schema type"):
        SchemaType.from_json(b'"bogus"')


def test_to_json_invalid():
    with pytest.raises(SchemaError, match="must set schema type"):
        SchemaType.INVALID.to_json()