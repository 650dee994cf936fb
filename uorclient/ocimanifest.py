"""Descriptors, annotations and manifest inspection for OCI artifacts."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, replace
from typing import Any, Callable, Iterable, Mapping, Optional, Protocol, Union

from uorclient.model import Attribute, AttributeSet

ANNOTATION_SCHEMA = "uor.schema"
ANNOTATION_SCHEMA_LINKS = "uor.schema.linked"
ANNOTATION_COLLECTION_LINKS = "uor.collections.linked"
ANNOTATION_UOR_ATTRIBUTES = "uor.attributes"
SEPARATOR = ","
UOR_CONFIG_MEDIA_TYPE = "application/vnd.uor.config.v1+json"
UOR_SCHEMA_MEDIA_TYPE = "application/vnd.uor.schema.v1+json"

ANNOTATION_TITLE = "org.opencontainers.image.title"
ANNOTATION_REF_NAME = "org.opencontainers.image.ref.name"
MEDIA_TYPE_IMAGE_MANIFEST = "application/vnd.oci.image.manifest.v1+json"
MEDIA_TYPE_IMAGE_INDEX = "application/vnd.oci.image.index.v1+json"
MEDIA_TYPE_IMAGE_LAYER_GZIP = "application/vnd.oci.image.layer.v1.tar+gzip"


class NoKnownSchemaError(LookupError):
    """The manifest carries no schema annotation."""

    def __init__(self) -> None:
        super().__init__("no schema")


class NoCollectionLinksError(LookupError):
    """The manifest carries no collection link annotation."""

    def __init__(self) -> None:
        super().__init__("no collection links")


@dataclass
class Descriptor:
    """An OCI content descriptor."""

    media_type: str = ""
    digest: str = ""
    size: int = 0
    urls: Optional[list[str]] = None
    annotations: Optional[dict[str, str]] = None
    platform: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        """Return the descriptor in its JSON form."""
        data: dict[str, Any] = {}
        if self.media_type:
            data["mediaType"] = self.media_type
        data["digest"] = self.digest
        data["size"] = self.size
        if self.urls:
            data["urls"] = list(self.urls)
        if self.annotations:
            data["annotations"] = dict(self.annotations)
        if self.platform:
            data["platform"] = dict(self.platform)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Descriptor":
        """Build a descriptor from its JSON form."""
        urls = data.get("urls")
        annotations = data.get("annotations")
        platform = data.get("platform")
        return cls(
            media_type=data.get("mediaType", "") or "",
            digest=data.get("digest", "") or "",
            size=int(data.get("size", 0) or 0),
            urls=list(urls) if urls is not None else None,
            annotations=dict(annotations) if annotations is not None else None,
            platform=dict(platform) if platform is not None else None,
        )


class _ManifestSource(Protocol):
    def get_manifest(self, reference: str) -> tuple[Descriptor, Any]: ...


def annotations_to_attribute_set(
    annotations: Optional[Mapping[str, str]],
    skip: Optional[Callable[[str], bool]] = None,
) -> AttributeSet:
    """Convert descriptor annotations to an attribute set.

    Plain annotations become string attributes; the UOR attributes annotation
    is decoded as JSON and each of its members becomes a typed attribute.
    """
    attribute_set = AttributeSet()
    for key, value in (annotations or {}).items():
        if skip is not None and skip(key):
            continue
        if key in attribute_set:
            continue
        if key != ANNOTATION_UOR_ATTRIBUTES:
            attribute_set.add(Attribute(key, value))
            continue

        # Numbers decode as floats, as the annotation carries no integer typing.
        data = json.loads(value, parse_int=float)
        if data is None:
            continue
        if not isinstance(data, dict):
            raise ValueError(f"annotation {json.dumps(key)}: value is not a JSON object")
        for member_key, member_value in data.items():
            try:
                attribute = Attribute.reflect(member_key, member_value)
            except (TypeError, ValueError) as err:
                raise ValueError(
                    f"annotation {json.dumps(key)}: error creating attribute: {err}"
                ) from err
            attribute_set.add(attribute)
    return attribute_set


def annotations_from_attribute_set(attribute_set: AttributeSet) -> dict[str, str]:
    """Store an attribute set as a single JSON-valued annotation."""
    return {ANNOTATION_UOR_ATTRIBUTES: attribute_set.as_json()}


def _file_pattern(file: str) -> "re.Pattern[str]":
    if "*" in file and ".*" not in file:
        expression = file.replace("*", ".*")
    else:
        expression = f"^{file}$"
    try:
        return re.compile(expression)
    except re.error as err:
        raise ValueError(f"invalid file pattern {file!r}: {err}") from err


def _merge(sets: list[AttributeSet]) -> AttributeSet:
    if len(sets) == 1:
        return sets[0]
    return AttributeSet(attribute for attribute_set in sets for attribute in attribute_set)


def update_layer_descriptors(
    descriptors: Iterable[Descriptor],
    file_attributes: Optional[Mapping[str, AttributeSet]],
) -> list[Descriptor]:
    """Attach attributes to layer descriptors whose title matches a file pattern.

    Keys of ``file_attributes`` are file names or globs using ``*``. Descriptors
    without a title are dropped; new descriptors are returned.
    """
    if not file_attributes:
        return list(descriptors)

    patterns = {file: _file_pattern(file) for file in file_attributes}

    updated: list[Descriptor] = []
    for descriptor in descriptors:
        annotations = dict(descriptor.annotations or {})
        filename = annotations.get(ANNOTATION_TITLE)
        if filename is None:
            continue
        sets = [
            attribute_set
            for file, attribute_set in file_attributes.items()
            if patterns[file].search(filename)
        ]
        if sets:
            annotations[ANNOTATION_UOR_ATTRIBUTES] = _merge(sets).as_json()
        updated.append(replace(descriptor, annotations=annotations))
    return updated


def _read(data: Union[bytes, str, Any]) -> Union[bytes, str]:
    if hasattr(data, "read"):
        try:
            return data.read()
        finally:
            close = getattr(data, "close", None)
            if close is not None:
                close()
    return data


def _manifest_annotations(data: Union[bytes, str, Any]) -> dict[str, str]:
    manifest = json.loads(_read(data))
    if not isinstance(manifest, dict):
        raise ValueError("manifest is not a JSON object")
    annotations = manifest.get("annotations") or {}
    if not isinstance(annotations, dict):
        raise ValueError("manifest annotations are not a JSON object")
    return annotations


def fetch_schema_links(reference: str, client: _ManifestSource) -> tuple[str, list[str]]:
    """Return the schema reference of a manifest and its linked schemas."""
    _, content = client.get_manifest(reference)
    annotations = _manifest_annotations(content)
    schema = annotations.get(ANNOTATION_SCHEMA)
    if schema is None:
        raise NoKnownSchemaError()
    links = annotations.get(ANNOTATION_SCHEMA_LINKS)
    if links is None:
        return schema, []
    return schema, [links]


def resolve_collection_links(data: Union[bytes, str, Any]) -> list[str]:
    """Return the collection references linked from a manifest."""
    links = _manifest_annotations(data).get(ANNOTATION_COLLECTION_LINKS)
    if not links:
        raise NoCollectionLinksError()
    return links.split(SEPARATOR)