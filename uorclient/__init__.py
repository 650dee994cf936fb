"""Attributes, node graphs, schemas, manifest annotations and OCI layout storage for UOR collections."""

__version__ = "0.1.0"