[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "uorclient"
version = "0.1.0"
description = "Attribute-aware graph model, OCI layout storage and JSON schema tooling for UOR collections"
requires-python = ">=3.10"
keywords = ["oci", "uor", "collection", "graph", "json-schema", "attributes"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "jsonschema",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["uorclient"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
