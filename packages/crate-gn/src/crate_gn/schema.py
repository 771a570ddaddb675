# SPDX-License-Identifier: MIT
"""JSON Schema definitions for the resolved dependency document.

The document is written by the resolver, manifest reader and build script
runner. These schemas only check its shape; version strings, epochs and
platform constraints are parsed by the decoder.
"""

from __future__ import annotations

# Dependency kind names, including Cargo's "dev" spelling
DEPENDENCY_KIND_NAMES = ["normal", "build", "development", "dev"]

# A crate reference: name plus either a full version or an epoch
CRATE_REF_PROPERTIES: dict = {
    "name": {"type": "string", "minLength": 1},
    "version": {"type": "string"},
    "epoch": {"type": ["string", "integer"]},
}

CRATE_REF_REQUIRED: dict = {
    "required": ["name"],
    "anyOf": [{"required": ["version"]}, {"required": ["epoch"]}],
}

DEPENDENCY_EDGE_SCHEMA: dict = {
    "type": "object",
    **CRATE_REF_REQUIRED,
    "properties": {
        **CRATE_REF_PROPERTIES,
        "platform": {
            "type": ["string", "null"],
            "description": "Target triple or cfg() expression the edge is limited to",
        },
    },
}

PACKAGE_SCHEMA: dict = {
    "type": "object",
    **CRATE_REF_REQUIRED,
    "properties": {
        **CRATE_REF_PROPERTIES,
        "lib": {
            "type": "object",
            "required": ["root"],
            "properties": {
                "type": {"type": "string", "minLength": 1},
                "root": {"type": "string", "minLength": 1},
            },
        },
        "bins": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "root"],
                "properties": {
                    "name": {"type": "string", "minLength": 1},
                    "root": {"type": "string", "minLength": 1},
                },
            },
        },
        "dependency_kinds": {
            "type": "object",
            "propertyNames": {"enum": DEPENDENCY_KIND_NAMES},
            "additionalProperties": {
                "type": "object",
                "properties": {
                    "features": {"type": "array", "items": {"type": "string"}},
                },
            },
        },
        "dependencies": {"type": "array", "items": DEPENDENCY_EDGE_SCHEMA},
        "build_dependencies": {"type": "array", "items": DEPENDENCY_EDGE_SCHEMA},
        "dev_dependencies": {"type": "array", "items": DEPENDENCY_EDGE_SCHEMA},
        "build_script": {"type": ["string", "null"]},
    },
}

METADATA_SCHEMA: dict = {
    "type": "object",
    "required": ["name", "version"],
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "version": {"type": "string", "minLength": 1},
        "edition": {"type": ["string", "integer"]},
        "authors": {"type": "array", "items": {"type": "string"}},
        "description": {"type": ["string", "null"]},
    },
}

RESOLVED_SCHEMA: dict = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Resolved dependency document",
    "description": "Resolved third-party packages and their Cargo metadata",
    "type": "object",
    "properties": {
        "packages": {"type": "array", "items": PACKAGE_SCHEMA},
        "metadata": {"type": "array", "items": METADATA_SCHEMA},
    },
}
