"""Depth-first traversal over graphs of nodes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from uorclient.model import Node

Handler = Callable[["Tracker", Node], Optional[Iterable[Node]]]


@dataclass
class Budget:
    """Limits applied to a traversal."""

    node_budget: int


class BudgetExceededError(Exception):
    """The maximum number of nodes was visited."""

    def __init__(self, node: Node) -> None:
        self.node = node
        super().__init__(
            "traversal budget exceeded: node budget for reached zero "
            f"while on node {node.address}"
        )


class SkipNode(Exception):
    """Raised by a handler to skip the children of a node."""


class StopHandler(Exception):
    """Raised by a handler to stop the rest of a handler chain."""


class Path:
    """The series of steps taken across a graph of nodes."""

    def __init__(self, root: Node) -> None:
        self._prev: dict[str, Optional[str]] = {root.id: None}
        self._index: dict[str, Node] = {root.id: root}

    def add(self, prev: Node, curr: Node) -> "Path":
        """Record that ``curr`` was reached from ``prev``."""
        self._prev[curr.id] = prev.id
        self._index.setdefault(curr.id, curr)
        self._index.setdefault(prev.id, prev)
        return self

    def __len__(self) -> int:
        return len(self._index)

    def prev(self, node: Node) -> Optional[Node]:
        """Return the node from which ``node`` was reached, if any."""
        parent = self._prev.get(node.id)
        if parent is None:
            return None
        return self._index.get(parent)

    def list(self, end: Node) -> list[Node]:
        """Return the path from the initial node to ``end``."""
        path = [end]
        seen = {end.id}
        step = self._prev.get(end.id)
        while step is not None and step not in seen:
            seen.add(step)
            path.append(self._index[step])
            step = self._prev.get(step)
        path.reverse()
        return path


class Tracker:
    """Path and budget information kept during a traversal."""

    def __init__(self, root: Node, budget: Optional[Budget] = None) -> None:
        self.path = Path(root)
        self.budget = budget

    def walk(self, handler: Handler, *nodes: Node) -> None:
        """Visit ``nodes`` depth first, descending into the children the handler returns."""
        stack = [iter(nodes)]
        while stack:
            node = next(stack[-1], None)
            if node is None:
                stack.pop()
                continue

            if self.budget is not None:
                if self.budget.node_budget <= 0:
                    raise BudgetExceededError(node)
                self.budget.node_budget -= 1

            try:
                children = list(handler(self, node) or ())
            except SkipNode:
                continue

            for child in children:
                self.path.add(node, child)
            if children:
                stack.append(iter(children))


def handlers(*chain: Handler) -> Handler:
    """Return a handler running ``chain`` in sequence and joining their successors."""

    def run(tracker: Tracker, node: Node) -> list[Node]:
        successors: list[Node] = []
        for handler in chain:
            try:
                nodes = handler(tracker, node)
            except StopHandler:
                break
            successors.extend(nodes or ())
        return successors

    return run


def walk(handler: Handler, node: Node) -> None:
    """Walk the graph reachable from ``node`` with no budget."""
    Tracker(node).walk(handler, node)