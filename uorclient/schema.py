"""JSON schemas describing the attributes expected on a collection."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Iterable, Mapping, Union

from jsonschema.exceptions import SchemaError as _InvalidSchema
from jsonschema.validators import Draft7Validator, validator_for

from uorclient.model import AttributeSet, Kind


class SchemaError(ValueError):
    """A schema or schema type is invalid, or a document fails validation."""


class SchemaType(Enum):
    """The JSON value types an attribute schema can declare."""

    INVALID = 0
    NULL = 1
    BOOL = 2
    NUMBER = 3
    INTEGER = 4
    STRING = 5

    def __str__(self) -> str:
        return _NAME_BY_TYPE.get(self, "")

    def is_like(self) -> Kind:
        """Return the attribute kind that corresponds to this schema type."""
        return _KIND_BY_TYPE[_check_type(self)]

    def to_json(self) -> str:
        """Serialize the type as a JSON string."""
        return json.dumps(str(_check_type(self)))

    @classmethod
    def from_json(cls, data: Union[str, bytes]) -> "SchemaType":
        """Parse a JSON string such as ``"number"`` into a schema type."""
        if isinstance(data, (bytes, bytearray)):
            data = data.decode("utf-8")
        try:
            value = json.loads(data)
        except json.JSONDecodeError as err:
            raise SchemaError(str(err)) from err
        if not isinstance(value, str):
            raise SchemaError(f"cannot decode schema type from {data!r}")
        return _check_type(_TYPE_BY_NAME.get(value, cls.INVALID))


_NAME_BY_TYPE = {
    SchemaType.NUMBER: "number",
    SchemaType.INTEGER: "integer",
    SchemaType.BOOL: "boolean",
    SchemaType.STRING: "string",
    SchemaType.NULL: "null",
}

_TYPE_BY_NAME = {name: schema_type for schema_type, name in _NAME_BY_TYPE.items()}

_KIND_BY_TYPE = {
    SchemaType.NUMBER: Kind.FLOAT,
    SchemaType.INTEGER: Kind.INT,
    SchemaType.BOOL: Kind.BOOL,
    SchemaType.STRING: Kind.STRING,
    SchemaType.NULL: Kind.NULL,
    SchemaType.INVALID: Kind.INVALID,
}


def _check_type(value: Any) -> SchemaType:
    try:
        schema_type = SchemaType(value)
    except ValueError:
        raise SchemaError("unknown schema type") from None
    if schema_type is SchemaType.INVALID:
        raise SchemaError("must set schema type")
    return schema_type


def validate_types(types: Mapping[str, Any]) -> None:
    """Raise SchemaError if any of the mapped types is unset or unknown."""
    for value in types.values():
        _check_type(value)


class Schema:
    """A JSON schema used to validate attribute sets."""

    def __init__(self, data: Union[bytes, str]) -> None:
        raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        try:
            document, _ = json.JSONDecoder().raw_decode(raw.decode("utf-8").lstrip())
        except (UnicodeDecodeError, json.JSONDecodeError) as err:
            raise SchemaError(f"error creating JSON schema: {err}") from err
        if not isinstance(document, (dict, bool)):
            raise SchemaError("error creating JSON schema: schema is invalid")
        validator_class = validator_for(document, default=Draft7Validator)
        try:
            validator_class.check_schema(document)
        except _InvalidSchema as err:
            raise SchemaError(f"error creating JSON schema: {err.message}") from err
        self._raw = raw
        self._validator = validator_class(document)

    def export(self) -> bytes:
        """Return the schema exactly as it was loaded."""
        return self._raw

    def validate(self, attribute_set: AttributeSet) -> bool:
        """Return True if the set satisfies the schema; raise SchemaError otherwise."""
        instance = json.loads(attribute_set.as_json())
        messages = _describe_errors(self._validator.iter_errors(instance))
        if messages:
            raise SchemaError(":".join(message.lower() for message in messages))
        return True


def _field(path: Iterable[Any]) -> str:
    return ".".join(str(part) for part in path) or "(root)"


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "integer" if value.is_integer() else "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def _describe_errors(errors: Iterable[Any]) -> list[str]:
    messages: list[str] = []
    reported_required: set[tuple] = set()
    for error in errors:
        field = _field(error.absolute_path)
        if error.validator == "required":
            key = (tuple(error.absolute_path), tuple(error.absolute_schema_path))
            if key in reported_required:
                continue
            reported_required.add(key)
            present = error.instance if isinstance(error.instance, dict) else {}
            messages.extend(
                f"{field}: {name} is required"
                for name in error.validator_value
                if name not in present
            )
        elif error.validator == "type":
            expected = error.validator_value
            if isinstance(expected, list):
                expected = ", ".join(expected)
            messages.append(
                f"{field}: invalid type. expected: {expected}, "
                f"given: {_json_type(error.instance)}"
            )
        else:
            messages.append(f"{field}: {error.message}")
    return messages


def from_types(types: Mapping[str, Any]) -> Schema:
    """Build an object schema in which every key is required with its given type."""
    validate_types(types)
    keys = sorted(types)
    document = {
        "type": "object",
        "properties": {key: {"type": str(_check_type(types[key]))} for key in keys},
        "required": keys or None,
    }
    raw = json.dumps(document, separators=(",", ":"), ensure_ascii=False)
    return from_bytes(raw.encode("utf-8"))


def from_bytes(data: Union[bytes, str]) -> Schema:
    """Load a JSON schema usable for attribute validation."""
    return Schema(data)