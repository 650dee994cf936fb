# uorclient

A library for working with UOR collections stored as OCI content: typed
attributes, node graphs, JSON schemas for attributes, manifest annotations
and a local OCI image layout store.

## Modules

- `uorclient.model`: `Kind`, `Attribute` (with `reflect`, `kind`,
  `is_null`, `as_bool`, `as_int`, `as_float`, `as_string`) and
  `AttributeSet` (`add`, `exists`, `find`, `as_json`, `list`). `as_json`
  produces a compact JSON object with keys in sorted order. Also the
  `Node`, `Edge` and `Matcher` protocols and `NotStoredError`.
- `uorclient.traversal`: depth-first walking of node graphs. A handler is
  called as `handler(tracker, node)` and returns the node's children.
  `Tracker(root, budget)` records the `Path` taken and enforces an optional
  `Budget` (raising `BudgetExceededError`); `walk(handler, node)` walks with
  no budget. A handler raises `SkipNode` to leave a node's children
  unvisited. `handlers(*chain)` runs several handlers in sequence and
  stops the chain when one raises `StopHandler`.
- `uorclient.basic`: `BasicNode`, a plain node with an id, attributes and a
  location.
- `uorclient.schema`: `SchemaType`, `from_types` (every key is required),
  `from_bytes`, `validate_types` and `Schema` with `export` and `validate`.
  `validate` returns `True` or raises `SchemaError` with the failures
  joined by `:`.
- `uorclient.ocimanifest`: `Descriptor` (`to_dict`, `from_dict`),
  `annotations_to_attribute_set`, `annotations_from_attribute_set`,
  `update_layer_descriptors` (file names or `*` globs mapped to attribute
  sets), `fetch_schema_links`, `resolve_collection_links`, and the
  `NoKnownSchemaError` and `NoCollectionLinksError` exceptions.
- `uorclient.descriptor`: `DescriptorNode`, a node whose attributes come
  from its descriptor's annotations.
- `uorclient.collection`: `Collection`, an in-memory directed graph that is
  itself a node, with `add_node`, `add_edge`, `sub_collection`, `root`,
  `from_node`, `to_node` and more; `CollectionEdge`; the `InOrderIterator`
  and `ByAttributesIterator` iterators; and `load_from_manifest` and
  `add_manifest`, which index OCI manifests, indexes and artifact manifests
  into a collection using a fetcher function `fetcher(descriptor) -> bytes`.
- `uorclient.layout`: `Layout`, a content store in an existing directory
  in the OCI image layout format. It writes `oci-layout` if missing, loads
  `index.json`, and offers `fetch`, `push`, `exists`, `resolve`, `tag`,
  `index`, `save_index`, `predecessors`, `resolve_by_attribute`,
  `attribute_schema` and `resolve_links`.
- `uorclient.workspace`: `LocalWorkspace`, for reading and writing JSON,
  text and bytes by path relative to a directory, with nested workspaces.
- `uorclient.examples`: `Example` and `format_examples` for rendering
  command usage examples.

## Installation

```
pip install uorclient
```

## Example

```python
from uorclient.model import Attribute, AttributeSet
from uorclient.schema import SchemaType, from_types

schema = from_types({"size": SchemaType.NUMBER})

attrs = AttributeSet()
attrs.add(Attribute.reflect("size", 1.0))

print(schema.validate(attrs))  # True
```

Opening an OCI layout and looking up a tag:

```python
from uorclient.layout import Layout

store = Layout("path/to/layout")
descriptor = store.resolve("localhost:5001/test:latest")
print(descriptor.digest)
```

## What this package does not do

There is no registry client: nothing here pushes to or pulls from a remote
registry, and no registry credentials are read. `fetch_schema_links` takes
any object with a `get_manifest(reference)` method that you provide. There
is also no command-line program; the package is a library only.

## Running the tests

```
pip install -e ".[test]"
pytest
```