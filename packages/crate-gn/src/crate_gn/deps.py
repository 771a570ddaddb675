# SPDX-License-Identifier: MIT
"""Resolved dependency records consumed by build file generation.

Dependency resolution, manifest reading and build script discovery happen
elsewhere. Their results arrive as a JSON document which this module checks
against the schemas in :mod:`crate_gn.schema` and decodes into plain
dataclasses:

    {
      "packages": [{"name": "foo", "version": "2.0.1", "lib": {...}, ...}],
      "metadata": [{"name": "foo", "version": "2.0.1", "edition": "2021", ...}]
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from jsonschema import Draft202012Validator, ValidationError

from .crates import DependencyKind, Epoch, VendoredCrate
from .platforms import Platform, PlatformParseError, parse_platform
from .schema import METADATA_SCHEMA, PACKAGE_SCHEMA, RESOLVED_SCHEMA


class InputError(Exception):
    """Raised when the resolved dependency document is invalid."""

    pass


@dataclass(frozen=True)
class LibTarget:
    """The library target of a package.

    Attributes:
        lib_type: Crate type of the library ("rlib", "proc-macro", ...)
        root: Path of the library's crate root source file
    """

    lib_type: str
    root: Path


@dataclass(frozen=True)
class BinTarget:
    name: str
    root: Path


@dataclass
class PerKindInfo:
    """Information about a package's use as one kind of dependency."""

    features: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DepOfDep:
    """An edge from a package to one of its own dependencies.

    Attributes:
        crate: Identity of the dependency
        platform: Platform the edge is restricted to, or None for all
    """

    crate: VendoredCrate
    platform: Optional[Platform] = None


@dataclass
class Package:
    """A resolved third-party package.

    Attributes:
        crate: Identity of the package
        lib_target: The library target, if the package has one
        bin_targets: Executables built from the package
        dependency_kinds: Features requested for each kind of use of this package
        dependencies: Normal dependencies
        build_dependencies: Dependencies of the build script
        dev_dependencies: Dependencies of tests, benches and examples
        build_script: Path of the build script root, if any
    """

    crate: VendoredCrate
    lib_target: Optional[LibTarget] = None
    bin_targets: list[BinTarget] = field(default_factory=list)
    dependency_kinds: dict[DependencyKind, PerKindInfo] = field(default_factory=dict)
    dependencies: list[DepOfDep] = field(default_factory=list)
    build_dependencies: list[DepOfDep] = field(default_factory=list)
    dev_dependencies: list[DepOfDep] = field(default_factory=list)
    build_script: Optional[Path] = None

    def third_party_crate_id(self) -> VendoredCrate:
        return self.crate

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Package":
        """Decode one entry of the "packages" list.

        Raises:
            InputError: If required fields are missing or malformed
        """
        validate_document(data, PACKAGE_SCHEMA, "package entry")
        crate = _crate_from_dict(data, "package")

        lib_target: Optional[LibTarget] = None
        lib = data.get("lib")
        if lib is not None:
            lib_target = LibTarget(lib_type=lib.get("type", "rlib"), root=Path(lib["root"]))

        bin_targets = [
            BinTarget(name=entry["name"], root=Path(entry["root"]))
            for entry in data.get("bins", [])
        ]

        dependency_kinds: dict[DependencyKind, PerKindInfo] = {}
        for kind_name, info in data.get("dependency_kinds", {}).items():
            # Sorted and de-duplicated
            features = sorted(set(info.get("features", [])))
            dependency_kinds[DependencyKind.from_string(kind_name)] = PerKindInfo(features=features)

        build_script = data.get("build_script")

        return cls(
            crate=crate,
            lib_target=lib_target,
            bin_targets=bin_targets,
            dependency_kinds=dependency_kinds,
            dependencies=_edges_from_list(data.get("dependencies", []), crate),
            build_dependencies=_edges_from_list(data.get("build_dependencies", []), crate),
            dev_dependencies=_edges_from_list(data.get("dev_dependencies", []), crate),
            build_script=Path(build_script) if build_script else None,
        )


@dataclass
class CrateMetadata:
    """Package metadata read from a crate's Cargo.toml.

    Attributes:
        name: Package name
        version: Full package version
        edition: Rust language edition
        authors: Package authors, possibly empty
        description: Package description, if any
    """

    name: str
    version: str
    edition: str = "2015"
    authors: list[str] = field(default_factory=list)
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CrateMetadata":
        validate_document(data, METADATA_SCHEMA, "metadata entry")
        return cls(
            name=data["name"],
            version=data["version"],
            edition=str(data.get("edition", "2015")),
            authors=list(data.get("authors", [])),
            description=data.get("description"),
        )


@dataclass
class ResolvedGraph:
    """The decoded input document."""

    packages: list[Package] = field(default_factory=list)
    metadata: dict[VendoredCrate, CrateMetadata] = field(default_factory=dict)

    @classmethod
    def from_json(cls, path: str | Path) -> "ResolvedGraph":
        """Load a resolved dependency document from a JSON file.

        Raises:
            InputError: If the document is invalid
            FileNotFoundError: If the file doesn't exist
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Resolved dependency file not found: {path}")

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except UnicodeDecodeError as e:
            raise InputError(f"{path} is not valid UTF-8: {e}") from e
        except json.JSONDecodeError as e:
            raise InputError(f"Invalid JSON syntax: {e}") from e

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ResolvedGraph":
        """Decode a whole resolved dependency document.

        Raises:
            InputError: If the document does not match the schema or holds
                an invalid version, epoch or platform
        """
        if not isinstance(data, dict):
            raise InputError(
                f"Resolved dependency document must be a JSON object, got {type(data).__name__}"
            )
        validate_document(data, RESOLVED_SCHEMA, "resolved dependency document")

        packages = [Package.from_dict(p) for p in data.get("packages", [])]

        metadata: dict[VendoredCrate, CrateMetadata] = {}
        for entry in data.get("metadata", []):
            crate_metadata = CrateMetadata.from_dict(entry)
            metadata[_crate_from_dict(entry, "metadata")] = crate_metadata

        return cls(packages=packages, metadata=metadata)


def validate_document(data: Any, schema: dict, what: str) -> None:
    """Check ``data`` against a JSON schema.

    Raises:
        InputError: Naming the first invalid field, e.g.
            "Invalid package entry: bins[0]: Missing required field: root"
    """
    validator = Draft202012Validator(schema)
    errors = list(validator.iter_errors(data))
    if not errors:
        return

    error = errors[0]
    message = f"Invalid {what}: {_json_path_from_error(error)}: {_format_error_message(error)}"
    if len(errors) > 1:
        message += f" (and {len(errors) - 1} more error(s))"
    raise InputError(message)


def _json_path_from_error(error: ValidationError) -> str:
    """Convert a jsonschema error path to a readable field path."""
    if not error.absolute_path:
        return "<root>"
    parts = []
    for part in error.absolute_path:
        if isinstance(part, int):
            parts.append(f"[{part}]")
        elif parts:
            parts.append(f".{part}")
        else:
            parts.append(str(part))
    return "".join(parts)


def _format_error_message(error: ValidationError) -> str:
    """Format a jsonschema error into a human-readable message."""
    if error.validator == "required":
        missing = [name for name in error.validator_value if name not in error.instance]
        return f"Missing required field: {', '.join(missing)}"

    if error.validator == "anyOf" and all(
        list(option) == ["required"] for option in error.validator_value
    ):
        alternatives = [name for option in error.validator_value for name in option["required"]]
        return f"Missing required field: {' or '.join(alternatives)}"

    if error.validator == "type":
        expected = error.validator_value
        if isinstance(expected, list):
            expected = " or ".join(expected)
        return f"Expected {expected}, got {type(error.instance).__name__}"

    if error.validator == "enum":
        allowed = ", ".join(repr(v) for v in error.validator_value)
        return f"{error.instance!r} must be one of: {allowed}"

    if error.validator == "minLength":
        return f"String must be at least {error.validator_value} character(s)"

    return error.message


def _crate_from_dict(data: dict[str, Any], what: str) -> VendoredCrate:
    """Read a crate identity from "name" plus "epoch" or "version".

    ``data`` has already been checked against the schema.
    """
    name = data["name"]
    try:
        if "epoch" in data:
            epoch = Epoch.parse(str(data["epoch"]))
        else:
            epoch = Epoch.from_version(data["version"])
    except ValueError as e:
        raise InputError(f"Invalid {what} entry for {name}: {e}") from e

    return VendoredCrate(name=name, epoch=epoch)


def _edges_from_list(entries: list[dict[str, Any]], owner: VendoredCrate) -> list[DepOfDep]:
    edges: list[DepOfDep] = []
    for entry in entries:
        crate = _crate_from_dict(entry, f"dependency of {owner}")
        platform: Optional[Platform] = None
        if entry.get("platform"):
            try:
                platform = parse_platform(entry["platform"])
            except PlatformParseError as e:
                raise InputError(f"Invalid platform for {owner} -> {crate.name}: {e}") from e
        edges.append(DepOfDep(crate=crate, platform=platform))
    return edges
