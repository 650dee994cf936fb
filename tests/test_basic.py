from uorclient.basic import BasicNode
from uorclient.model import Attribute, AttributeSet, Node


def test_basic_node_fields():
    attrs = AttributeSet([Attribute("name", "test")])
    node = BasicNode("node1", attrs)
    assert node.id == "node1"
    assert node.attributes is attrs
    assert node.address == ""


def test_basic_node_address_follows_location():
    node = BasicNode("node1", AttributeSet())
    node.location = "localhost:5001/test:latest"
    assert node.address == "localhost:5001/test:latest"


def test_basic_node_satisfies_node_protocol():
    node = BasicNode("node1", AttributeSet([Attribute("size", 2)]), location="here")
    assert isinstance(node, Node)
    assert node.attributes.as_json() == '{"size":2}'
    assert node.address == node.location