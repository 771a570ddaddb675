# SPDX-License-Identifier: MIT
"""Crate identity types for vendored third-party crates.

A vendored crate is identified by its name plus its semver epoch: the part of
the version that Cargo treats as breaking. Two versions of a crate with the
same epoch share one vendored directory and one BUILD.gn file.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional


# Version prefix: major.minor, rest ignored (patch, pre-release, build metadata)
VERSION_PATTERN = re.compile(r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)(?:\.\S*)?$")

# Epoch directory form: v1, v0_2
EPOCH_DIR_PATTERN = re.compile(r"^v(?:(?P<major>[1-9]\d*)|0_(?P<minor>0|[1-9]\d*))$")

# Epoch version-string form: 1, 0.2
EPOCH_VERSION_PATTERN = re.compile(r"^(?:(?P<major>[1-9]\d*)|0\.(?P<minor>0|[1-9]\d*))$")


def normalize_crate_name(name: str) -> str:
    """Normalize a crate name for use in paths and GN target names.

    Cargo treats hyphens and underscores in crate names as equivalent when
    compiling; on disk and in GN we always use underscores.
    """
    return name.replace("-", "_")


@dataclass(frozen=True)
class Epoch:
    """A crate version epoch.

    Exactly one of ``major`` or ``minor`` is set: versions ``n.x.y`` with
    ``n > 0`` have epoch ``Major(n)``, versions ``0.m.y`` have ``Minor(m)``.

    Attributes:
        major: Major version, for 1.0 and later releases
        minor: Minor version, for pre-1.0 releases
    """

    major: Optional[int] = None
    minor: Optional[int] = None

    def __post_init__(self) -> None:
        if (self.major is None) == (self.minor is None):
            raise ValueError("Epoch requires exactly one of major or minor")
        if self.major is not None and self.major < 1:
            raise ValueError(f"Major epoch must be positive: {self.major}")
        if self.minor is not None and self.minor < 0:
            raise ValueError(f"Minor epoch must not be negative: {self.minor}")

    @classmethod
    def from_version(cls, version: str) -> "Epoch":
        """Compute the epoch of a full version string like "1.2.3"."""
        match = VERSION_PATTERN.match(version.strip())
        if not match:
            raise ValueError(f"Invalid crate version: {version!r}")
        major = int(match.group("major"))
        if major > 0:
            return cls(major=major)
        return cls(minor=int(match.group("minor")))

    @classmethod
    def parse(cls, text: str) -> "Epoch":
        """Parse an epoch in directory form ("v1", "v0_2") or version form ("1", "0.2")."""
        text = text.strip()
        match = EPOCH_DIR_PATTERN.match(text) or EPOCH_VERSION_PATTERN.match(text)
        if not match:
            raise ValueError(f"Invalid epoch: {text!r}")
        if match.group("major") is not None:
            return cls(major=int(match.group("major")))
        return cls(minor=int(match.group("minor")))

    def to_version_string(self) -> str:
        """Return the epoch as a version prefix: "1" or "0.2"."""
        if self.major is not None:
            return str(self.major)
        return f"0.{self.minor}"

    def __str__(self) -> str:
        """Return the directory form of the epoch: "v1" or "v0_2"."""
        if self.major is not None:
            return f"v{self.major}"
        return f"v0_{self.minor}"


@dataclass(frozen=True)
class VendoredCrate:
    """Identity of one vendored crate epoch.

    Attributes:
        name: Crate name as published (may contain hyphens)
        epoch: Version epoch of the vendored copy
    """

    name: str
    epoch: Epoch

    @classmethod
    def from_version(cls, name: str, version: str) -> "VendoredCrate":
        return cls(name=name, epoch=Epoch.from_version(version))

    @property
    def normalized_name(self) -> str:
        return normalize_crate_name(self.name)

    @property
    def build_path(self) -> str:
        """Path of the crate's BUILD.gn directory, relative to the third-party root."""
        return f"{self.normalized_name}/{self.epoch}"

    def __str__(self) -> str:
        return f"{self.name} {self.epoch}"


class Visibility(Enum):
    """Who may depend on a vendored crate's library target."""

    # Usable from anywhere, including first-party code
    PUBLIC = "public"
    # Usable only from other third-party crates
    THIRD_PARTY = "third_party"
    # Third-party crates, plus first-party tests through :test_support
    TEST_ONLY_AND_THIRD_PARTY = "test_only_and_third_party"


class DependencyKind(Enum):
    """Cargo dependency kinds, each of which gets its own library rule."""

    NORMAL = "normal"
    BUILD = "build"
    DEVELOPMENT = "development"

    @property
    def rule_name(self) -> str:
        """The fixed GN target name for the crate's library built for this kind."""
        return DEPENDENCY_KIND_RULE_NAMES[self]

    @classmethod
    def from_string(cls, value: str) -> "DependencyKind":
        """Parse a kind name, accepting Cargo's "dev" spelling."""
        if value == "dev":
            return cls.DEVELOPMENT
        return cls(value)


DEPENDENCY_KIND_RULE_NAMES: dict[DependencyKind, str] = {
    DependencyKind.NORMAL: "lib",
    DependencyKind.BUILD: "buildrs_support",
    DependencyKind.DEVELOPMENT: "cargo_tests_support",
}
