"""An in-memory graph of nodes that itself behaves as a node."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, Optional

from uorclient.descriptor import DescriptorNode
from uorclient.model import AttributeSet, Edge, Matcher, Node
from uorclient.ocimanifest import (
    MEDIA_TYPE_IMAGE_INDEX,
    MEDIA_TYPE_IMAGE_MANIFEST,
    Descriptor,
)
from uorclient.traversal import SkipNode, Tracker

MEDIA_TYPE_DOCKER_MANIFEST = "application/vnd.docker.distribution.manifest.v2+json"
MEDIA_TYPE_DOCKER_MANIFEST_LIST = "application/vnd.docker.distribution.manifest.list.v2+json"
MEDIA_TYPE_ARTIFACT_MANIFEST = "application/vnd.cncf.oras.artifact.manifest.v1+json"

Fetcher = Callable[[Descriptor], bytes]


class NodesNotExistError(LookupError):
    """An edge was added while one of its nodes is missing from the graph."""

    def __init__(self) -> None:
        super().__init__("not all nodes exist")


@dataclass(frozen=True)
class CollectionEdge:
    """A directed relationship between two nodes."""

    from_node: Node
    to_node: Node


class InOrderIterator:
    """Iterates nodes in the order given; ``len`` is the number still to come."""

    def __init__(self, nodes: Optional[Iterable[Node]] = None) -> None:
        self._nodes: list[Node] = list(nodes or ())
        self._index = -1

    def __iter__(self) -> Iterator[Node]:
        return self

    def __next__(self) -> Node:
        if self._index + 1 < len(self._nodes):
            self._index += 1
            return self._nodes[self._index]
        self._index = len(self._nodes)
        raise StopIteration

    def __len__(self) -> int:
        if self._index >= len(self._nodes):
            return 0
        return len(self._nodes) - self._index - 1

    @property
    def node(self) -> Optional[Node]:
        """The node at the current position, if any."""
        if 0 <= self._index < len(self._nodes):
            return self._nodes[self._index]
        return None

    def reset(self) -> None:
        """Start again from the beginning."""
        self._index = -1


def _attribute_count(node: Node) -> int:
    attributes = node.attributes
    return len(attributes) if attributes is not None else 0


class ByAttributesIterator:
    """Iterates nodes from the smallest to the largest attribute set."""

    def __init__(self, nodes: Optional[Iterable[Node]] = None) -> None:
        self._pending: list[Node] = list(nodes or ())
        self._iter: Optional[InOrderIterator] = None

    def _fill(self) -> InOrderIterator:
        if self._iter is None:
            self._iter = InOrderIterator(sorted(self._pending, key=_attribute_count))
            self._pending = []
        return self._iter

    def __iter__(self) -> Iterator[Node]:
        return self

    def __next__(self) -> Node:
        return next(self._fill())

    def __len__(self) -> int:
        if self._iter is None:
            return len(self._pending)
        return len(self._iter)

    @property
    def node(self) -> Optional[Node]:
        """The node at the current position, if any."""
        return self._iter.node if self._iter is not None else None

    def reset(self) -> None:
        """Start again from the beginning."""
        if self._iter is not None:
            self._iter.reset()


class Collection:
    """A directed graph of nodes that is itself a node. Not thread-safe."""

    def __init__(self, collection_id: str, location: str = "") -> None:
        self._id = collection_id
        self.location = location
        self._nodes: dict[str, Node] = {}
        self._from: dict[str, dict[str, Edge]] = {}
        self._to: dict[str, dict[str, Edge]] = {}

    @property
    def id(self) -> str:
        return self._id

    @property
    def address(self) -> str:
        return self.location

    @property
    def attributes(self) -> Optional[AttributeSet]:
        """Attributes of the root node, or None when there is no single root."""
        try:
            return self.root().attributes
        except ValueError:
            return None

    def add_node(self, node: Node) -> None:
        """Add a node; its ID must not already be present."""
        if node.id in self._nodes:
            raise ValueError("node ID collision")
        self._nodes[node.id] = node

    def add_edge(self, edge: Edge) -> None:
        """Add an edge between two nodes already in the graph."""
        from_id = edge.from_node.id
        to_id = edge.to_node.id
        if from_id == to_id:
            raise ValueError("adding self edge")
        if from_id not in self._nodes or to_id not in self._nodes:
            raise NodesNotExistError()
        if self.has_edge_from_to(from_id, to_id):
            return
        self._from.setdefault(from_id, {})[to_id] = edge
        self._to.setdefault(to_id, {})[from_id] = edge

    def sub_collection(self, matcher: Optional[Matcher]) -> "Collection":
        """Return a collection holding only the nodes the matcher accepts."""
        if matcher is None:
            return self
        out = Collection(self.id, self.address)
        for node in self.nodes():
            if matcher.matches(node):
                out.add_node(node)
        for edge in self.edges():
            try:
                out.add_edge(edge)
            except NodesNotExistError:
                continue
        return out

    def node_by_id(self, node_id: str) -> Optional[Node]:
        return self._nodes.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def nodes(self) -> list[Node]:
        return list(self._nodes.values())

    def edges(self) -> list[Edge]:
        return [edge for targets in self._from.values() for edge in targets.values()]

    def edge(self, from_id: str, to_id: str) -> Optional[Edge]:
        """Return the edge from ``from_id`` to ``to_id``, if stored."""
        return self._from.get(from_id, {}).get(to_id)

    def has_edge_from_to(self, from_id: str, to_id: str) -> bool:
        """Return whether an edge leading from ``to_id`` to ``from_id`` is stored."""
        return from_id in self._from.get(to_id, {})

    def from_node(self, node_id: str) -> list[Node]:
        """Return the children of a node."""
        return [self._nodes[child] for child in self._from.get(node_id, {})]

    def to_node(self, node_id: str) -> list[Node]:
        """Return the parents of a node."""
        return [self._nodes[parent] for parent in self._to.get(node_id, {})]

    def root(self) -> Node:
        """Return the single node that has no parent."""
        children = {child.id for node_id in self._nodes for child in self.from_node(node_id)}
        roots = [node for node_id, node in self._nodes.items() if node_id not in children]
        if not roots:
            raise ValueError("no root found in graph")
        if len(roots) > 1:
            names = ", ".join(sorted(node.address for node in roots))
            raise ValueError(f"multiple roots found in graph: {names}")
        return roots[0]

    def __repr__(self) -> str:
        return f"Collection(id={self._id!r}, nodes={len(self._nodes)})"


def _parse(content: bytes) -> dict[str, Any]:
    data = json.loads(content)
    if not isinstance(data, dict):
        raise ValueError("manifest content is not a JSON object")
    return data


def _successors(fetcher: Fetcher, descriptor: Descriptor) -> list[Descriptor]:
    media_type = descriptor.media_type
    if media_type in (MEDIA_TYPE_DOCKER_MANIFEST, MEDIA_TYPE_IMAGE_MANIFEST):
        manifest = _parse(fetcher(descriptor))
        config = Descriptor.from_dict(manifest.get("config") or {})
        layers = [Descriptor.from_dict(layer) for layer in manifest.get("layers") or ()]
        return [config, *layers]
    if media_type in (MEDIA_TYPE_DOCKER_MANIFEST_LIST, MEDIA_TYPE_IMAGE_INDEX):
        index = _parse(fetcher(descriptor))
        return [Descriptor.from_dict(item) for item in index.get("manifests") or ()]
    if media_type == MEDIA_TYPE_ARTIFACT_MANIFEST:
        manifest = _parse(fetcher(descriptor))
        result: list[Descriptor] = []
        subject = manifest.get("subject")
        if subject is not None:
            result.append(Descriptor.from_dict(subject))
        result.extend(Descriptor.from_dict(blob) for blob in manifest.get("blobs") or ())
        return result
    return []


def _add_or_get(graph: Collection, descriptor: Descriptor) -> Node:
    node = graph.node_by_id(descriptor.digest)
    if node is not None:
        return node
    node = DescriptorNode(descriptor.digest, descriptor)
    graph.add_node(node)
    return node


def _index_node(
    graph: Collection, descriptor: Descriptor, successors: list[Descriptor]
) -> list[Node]:
    parent = _add_or_get(graph, descriptor)
    children: list[Node] = []
    for successor in successors:
        child = _add_or_get(graph, successor)
        children.append(child)
        graph.add_edge(CollectionEdge(parent, child))
    return children


def load_from_manifest(graph: Collection, fetcher: Fetcher, manifest: Descriptor) -> None:
    """Load the content graph rooted at ``manifest`` into ``graph``."""
    root = DescriptorNode(manifest.digest, manifest)

    def handler(tracker: Tracker, node: Node) -> list[Node]:
        if graph.has_node(node.id) or not isinstance(node, DescriptorNode):
            raise SkipNode()
        return _index_node(graph, node.descriptor, _successors(fetcher, node.descriptor))

    Tracker(root).walk(handler, root)


def add_manifest(graph: Collection, fetcher: Fetcher, descriptor: Descriptor) -> None:
    """Add a single manifest and its direct successors to ``graph``."""
    _index_node(graph, descriptor, _successors(fetcher, descriptor))