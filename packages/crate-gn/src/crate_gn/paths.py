# SPDX-License-Identifier: MIT
"""Path layout of the vendored third-party crate tree."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from .crates import VendoredCrate


DEFAULT_THIRD_PARTY_PATH = "third_party/rust"


@dataclass(frozen=True)
class ThirdPartyPaths:
    """Locations of vendored crates.

    Attributes:
        root: Source checkout root (GN's "//")
        third_party: Third-party crate directory, relative to ``root``
    """

    root: Path
    third_party: str = DEFAULT_THIRD_PARTY_PATH

    @property
    def third_party_dir(self) -> Path:
        return self.root / self.third_party

    @property
    def visibility_pattern(self) -> str:
        """GN label pattern matching every vendored crate target."""
        return f"//{self.third_party}/*"

    def crate_dir(self, crate: VendoredCrate) -> Path:
        """Directory holding the crate epoch's BUILD.gn."""
        return self.third_party_dir / crate.build_path

    def to_gn_path(self, crate: VendoredCrate, path: Path) -> str:
        """Convert a source path to a path relative to the crate's BUILD.gn.

        Relative paths are taken to be relative to the crate directory already.

        Raises:
            ValueError: If an absolute path lies outside the crate directory
        """
        if not path.is_absolute():
            return PurePosixPath(*path.parts).as_posix()

        crate_dir = self.crate_dir(crate)
        try:
            relative = path.relative_to(crate_dir)
        except ValueError as e:
            raise ValueError(f"{path} is not inside {crate_dir}") from e
        return relative.as_posix()

    def dep_label(self, crate: VendoredCrate, rule_name: str) -> str:
        """Fully qualified GN label of one of a crate's rules."""
        return f"//{self.third_party}/{crate.build_path}:{rule_name}"
