from dataclasses import dataclass
from typing import Optional

import pytest

from uorclient.model import AttributeSet
from uorclient.traversal import (
    Budget,
    BudgetExceededError,
    Path,
    SkipNode,
    StopHandler,
    Tracker,
    handlers,
    walk,
)


@dataclass(frozen=True)
class MockNode:
    id: str
    attributes: Optional[AttributeSet] = None

    @property
    def address(self):
        return "address"


def _path_nodes():
    root = MockNode("root")
    prev = MockNode("node1")
    curr = MockNode("node2")
    curr_new = MockNode("node3")
    path = Path(root)
    path.add(root, prev)
    path.add(prev, curr)
    return path, root, prev, curr, curr_new


def test_add():
    path, root, prev, curr, curr_new = _path_nodes()
    assert path.prev(prev) == root
    assert path.prev(curr) == prev
    assert path.prev(curr_new) is None


def test_prev():
    path, root, prev, curr, curr_new = _path_nodes()
    assert path.prev(prev) is root
    assert path.prev(curr) is prev
    assert path.prev(curr_new) is None
    assert path.prev(root) is None


def test_len():
    path, root, prev, curr, curr_new = _path_nodes()
    assert len(path) == 3
    path.add(curr, curr_new)
    assert len(path) == 4


def test_list():
    path, root, prev, curr, curr_new = _path_nodes()
    path.add(curr, curr_new)
    assert path.list(curr_new) == [root, prev, curr, curr_new]


def test_add_returns_path():
    root = MockNode("root")
    path = Path(root)
    assert path.add(root, MockNode("child")) is path


def _counting_handler(graph, visited):
    def handler(tracker, node):
        visited.append(node.id)
        return graph.get(node.id, [])

    return handler


def test_walk_visit_root_node():
    root = MockNode("node1")
    graph = {"node1": [MockNode("node2")]}
    visited = []
    tracker = Tracker(root, Budget(node_budget=3))
    tracker.walk(_counting_handler(graph, visited), root)
    assert len(visited) == 2
    assert tracker.budget.node_budget == 1
    assert tracker.path.prev(MockNode("node2")) == root


def test_walk_duplicate_node_id():
    root = MockNode("node1")
    graph = {"node1": [MockNode("node2")]}
    visited = []
    tracker = Tracker(root, Budget(node_budget=8))
    tracker.walk(_counting_handler(graph, visited), root)
    assert visited == ["node1", "node2"]


def test_walk_exceeded_budget():
    root = MockNode("node1")
    graph = {"node1": [MockNode("node2")]}
    visited = []
    tracker = Tracker(root, Budget(node_budget=0))
    with pytest.raises(BudgetExceededError) as info:
        tracker.walk(_counting_handler(graph, visited), root)
    assert visited == []
    assert info.value.node == root
    assert str(info.value) == (
        "traversal budget exceeded: node budget for reached zero while on node address"
    )


def test_walk_depth_first_order():
    root = MockNode("a")
    graph = {
        "a": [MockNode("b"), MockNode("c")],
        "b": [MockNode("d")],
    }
    visited = []
    walk(_counting_handler(graph, visited), root)
    assert visited == ["a", "b", "d", "c"]


def test_walk_skip_node():
    root = MockNode("a")
    graph = {"a": [MockNode("b"), MockNode("c")], "b": [MockNode("d")]}
    visited = []

    def handler(tracker, node):
        visited.append(node.id)
        if node.id == "b":
            raise SkipNode()
        return graph.get(node.id, [])

    tracker = Tracker(root, Budget(node_budget=10))
    tracker.walk(handler, root)
    assert visited == ["a", "b", "c"]
    assert tracker.budget.node_budget == 7
    assert tracker.path.prev(MockNode("c")) == root
    assert tracker.path.prev(MockNode("d")) is None
    assert len(tracker.path) == 3


def test_walk_propagates_errors():
    def handler(tracker, node):
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        walk(handler, MockNode("a"))


def test_handlers_chain_and_stop():
    calls = []

    def first(tracker, node):
        calls.append("first")
        return [MockNode("x")]

    def stopper(tracker, node):
        calls.append("stop")
        raise StopHandler()

    def never(tracker, node):
        calls.append("never")
        return [MockNode("y")]

    combined = handlers(first, stopper, never)
    result = combined(Tracker(MockNode("r")), MockNode("r"))
    assert result == [MockNode("x")]
    assert calls == ["first", "stop"]


def test_handlers_join_successors():
    combined = handlers(
        lambda tracker, node: [MockNode("a")],
        lambda tracker, node: None,
        lambda tracker, node: [MockNode("b")],
    )
    assert combined(Tracker(MockNode("r")), MockNode("r")) == [MockNode("a"), MockNode("b")]