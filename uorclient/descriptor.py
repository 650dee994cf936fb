"""A node backed by an OCI content descriptor."""

from __future__ import annotations

from uorclient.model import AttributeSet
from uorclient.ocimanifest import Descriptor, annotations_to_attribute_set


class DescriptorNode:
    """A node whose attributes come from its descriptor's annotations."""

    def __init__(self, node_id: str, descriptor: Descriptor, location: str = "") -> None:
        self._id = node_id
        self._descriptor = descriptor
        self._attributes = annotations_to_attribute_set(descriptor.annotations)
        self.location = location

    @property
    def id(self) -> str:
        return self._id

    @property
    def address(self) -> str:
        """The location where the node data is stored."""
        return self.location

    @property
    def attributes(self) -> AttributeSet:
        return self._attributes

    @property
    def descriptor(self) -> Descriptor:
        """The underlying descriptor."""
        return self._descriptor

    def __repr__(self) -> str:
        return f"DescriptorNode(id={self._id!r}, descriptor={self._descriptor!r})"