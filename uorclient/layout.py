"""A content store kept on disk in the OCI image layout format."""

from __future__ import annotations

import hashlib
import json
import os
import re
import tempfile
import threading
from dataclasses import replace
from typing import Any, Optional, Union

from uorclient.collection import Collection, add_manifest, load_from_manifest
from uorclient.descriptor import DescriptorNode
from uorclient.model import Matcher, Node, NotStoredError
from uorclient.ocimanifest import (
    ANNOTATION_REF_NAME,
    UOR_SCHEMA_MEDIA_TYPE,
    Descriptor,
    resolve_collection_links,
)
from uorclient.traversal import Tracker

INDEX_FILE = "index.json"
LAYOUT_FILE = "oci-layout"
LAYOUT_VERSION = "1.0.0"

_DIGEST = re.compile(r"^(sha256|sha384|sha512):([a-f0-9]+)$")
_HEX_LENGTH = {"sha256": 64, "sha384": 96, "sha512": 128}


class UnsupportedVersionError(ValueError):
    """The oci-layout file declares a version this store cannot read."""

    def __init__(self) -> None:
        super().__init__("unsupported version")


class InvalidReferenceError(ValueError):
    """A reference is not usable as a tag."""


class _StopWalk(Exception):
    """Ends a traversal once the wanted node is found."""


def _split_digest(digest: str) -> tuple[str, str]:
    match = _DIGEST.match(digest)
    if match is None or len(match.group(2)) != _HEX_LENGTH[match.group(1)]:
        raise ValueError(f"{digest}: invalid digest")
    return match.group(1), match.group(2)


def _verify(descriptor: Descriptor, content: bytes) -> None:
    if len(content) != descriptor.size:
        raise ValueError(f"{descriptor.digest}: mismatched size")
    algorithm, expected = _split_digest(descriptor.digest)
    if hashlib.new(algorithm, content).hexdigest() != expected:
        raise ValueError(f"{descriptor.digest}: mismatched digest")


def _validate_reference(name: str) -> None:
    parts = name.split("/", 1)
    if len(parts) == 1:
        raise ValueError(f"reference {json.dumps(name)}: missing repository")
    path = parts[1]
    if "@" in path:
        raise InvalidReferenceError(f"{json.dumps(name)}: invalid reference")
    if ":" not in path:
        raise ValueError(f"reference {json.dumps(name)}: missing tag component")


class Layout:
    """Stores blobs, tags and the content graph of an OCI layout directory."""

    def __init__(self, root_path: Union[str, os.PathLike]) -> None:
        self.root_path = os.path.normpath(os.fspath(root_path))
        self._graph = Collection(os.fspath(root_path))
        self._resolver: dict[str, Descriptor] = {}
        self._index: dict[str, Any] = {"schemaVersion": 2}
        self._manifests: list[Descriptor] = []
        self._lock = threading.Lock()
        self._validate_layout_file()
        self._load_index()

    def _blob_path(self, descriptor: Descriptor) -> str:
        algorithm, encoded = _split_digest(descriptor.digest)
        return os.path.join(self.root_path, "blobs", algorithm, encoded)

    def fetch(self, descriptor: Descriptor) -> bytes:
        """Return the content stored for a descriptor."""
        try:
            with open(self._blob_path(descriptor), "rb") as blob:
                return blob.read()
        except FileNotFoundError:
            raise FileNotFoundError(
                f"{descriptor.digest}: {descriptor.media_type}: not found"
            ) from None

    def _fetch_all(self, descriptor: Descriptor) -> bytes:
        content = self.fetch(descriptor)
        _verify(descriptor, content)
        return content

    def push(self, descriptor: Descriptor, data: Union[bytes, Any]) -> None:
        """Store content that must match the descriptor, then index it in the graph."""
        content = data.read() if hasattr(data, "read") else bytes(data)
        _verify(descriptor, content)
        path = self._blob_path(descriptor)
        if os.path.exists(path):
            raise FileExistsError(
                f"{descriptor.digest}: {descriptor.media_type}: already exists"
            )
        os.makedirs(os.path.dirname(path), exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=os.path.dirname(path))
        try:
            with os.fdopen(fd, "wb") as out:
                out.write(content)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

        with self._lock:
            add_manifest(self._graph, self._fetch_all, descriptor)

    def exists(self, descriptor: Descriptor) -> bool:
        """Return whether the descriptor's blob is stored."""
        return os.path.isfile(self._blob_path(descriptor))

    def resolve(self, reference: str) -> Descriptor:
        """Return the descriptor tagged with ``reference``."""
        try:
            return self._resolver[reference]
        except KeyError:
            raise NotStoredError(reference) from None

    def predecessors(self, descriptor: Descriptor) -> list[Descriptor]:
        """Return the descriptors of nodes pointing directly at ``descriptor``."""
        return [
            node.descriptor
            for node in self._graph.to_node(descriptor.digest)
            if isinstance(node, DescriptorNode)
        ]

    def _root(self, reference: str) -> Node:
        descriptor = self.resolve(reference)
        root = self._graph.node_by_id(descriptor.digest)
        if root is None:
            raise LookupError(f"node {json.dumps(reference)} does not exist in graph")
        return root

    def resolve_by_attribute(
        self, reference: str, matcher: Optional[Matcher]
    ) -> list[Descriptor]:
        """Return stored descriptors under ``reference`` whose node the matcher accepts."""
        if matcher is None:
            return []
        root = self._root(reference)
        results: list[Descriptor] = []

        def handler(tracker: Tracker, node: Node) -> list[Node]:
            if matcher.matches(node) and isinstance(node, DescriptorNode):
                # Sparse manifests may reference blobs that are not stored.
                if self.exists(node.descriptor):
                    results.append(node.descriptor)
            return self._graph.from_node(node.id)

        Tracker(root).walk(handler, root)
        return results

    def attribute_schema(self, reference: str) -> Descriptor:
        """Return the attribute schema descriptor reachable from ``reference``."""
        root = self._root(reference)
        found: list[Descriptor] = []

        def handler(tracker: Tracker, node: Node) -> list[Node]:
            if (
                isinstance(node, DescriptorNode)
                and node.descriptor.media_type == UOR_SCHEMA_MEDIA_TYPE
            ):
                found.append(node.descriptor)
                raise _StopWalk()
            return self._graph.from_node(node.id)

        try:
            Tracker(root).walk(handler, root)
        except _StopWalk:
            return found[0]
        raise LookupError(f"reference {reference} is not a schema address")

    def resolve_links(self, reference: str) -> list[str]:
        """Return the collection references linked from the manifest at ``reference``."""
        return resolve_collection_links(self.fetch(self.resolve(reference)))

    def tag(self, descriptor: Descriptor, reference: str) -> None:
        """Tag a stored descriptor with ``reference`` and save the index."""
        _validate_reference(reference)
        if not self.exists(descriptor):
            raise FileNotFoundError(
                f"{descriptor.digest}: {descriptor.media_type}: not found"
            )
        annotations = dict(descriptor.annotations or {})
        annotations[ANNOTATION_REF_NAME] = reference
        self._resolver[reference] = replace(descriptor, annotations=annotations)
        self.save_index()

    def index(self) -> dict[str, Any]:
        """Return the index, with ``manifests`` as a list of descriptors."""
        return {**self._index, "manifests": list(self._manifests)}

    def save_index(self) -> None:
        """Write index.json from the tagged descriptors."""
        manifests = []
        for reference, descriptor in self._resolver.items():
            annotations = dict(descriptor.annotations or {})
            annotations[ANNOTATION_REF_NAME] = reference
            manifests.append(replace(descriptor, annotations=annotations))
        self._manifests = manifests
        document = {**self._index, "manifests": [d.to_dict() for d in manifests]}
        path = os.path.join(self.root_path, INDEX_FILE)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o640)
        with os.fdopen(fd, "w", encoding="utf-8") as out:
            json.dump(document, out, separators=(",", ":"))

    def _load_index(self) -> None:
        path = os.path.join(self.root_path, INDEX_FILE)
        try:
            with open(path, encoding="utf-8") as index_file:
                document = json.load(index_file)
        except FileNotFoundError:
            self._index = {"schemaVersion": 2}
            self._manifests = []
            return
        if not isinstance(document, dict):
            raise ValueError("index is not a JSON object")

        self._manifests = [Descriptor.from_dict(m) for m in document.pop("manifests", None) or ()]
        self._index = document
        for descriptor in self._manifests:
            reference = (descriptor.annotations or {}).get(ANNOTATION_REF_NAME)
            if reference is not None:
                self._resolver[reference] = descriptor
            with self._lock:
                load_from_manifest(self._graph, self._fetch_all, descriptor)

    def _validate_layout_file(self) -> None:
        path = os.path.join(self.root_path, LAYOUT_FILE)
        try:
            with open(path, encoding="utf-8") as layout_file:
                raw = layout_file.read()
        except FileNotFoundError:
            with open(path, "w", encoding="utf-8") as layout_file:
                json.dump({"imageLayoutVersion": LAYOUT_VERSION}, layout_file, separators=(",", ":"))
            return
        except OSError as err:
            raise OSError(f"failed to open OCI layout file: {err}") from err
        try:
            layout = json.loads(raw)
        except json.JSONDecodeError as err:
            raise ValueError(f"failed to decode OCI layout file: {err}") from err
        version = layout.get("imageLayoutVersion") if isinstance(layout, dict) else None
        if version != LAYOUT_VERSION:
            raise UnsupportedVersionError()