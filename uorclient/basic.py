"""A plain node holding an identifier, attributes and a location."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from uorclient.model import AttributeSet


@dataclass
class BasicNode:
    """A single unit of information about a data set node."""

    id: str
    attributes: Optional[AttributeSet] = None
    location: str = ""

    @property
    def address(self) -> str:
        """The location where the node data is stored."""
        return self.location