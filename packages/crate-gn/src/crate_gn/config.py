# SPDX-License-Identifier: MIT
"""Generator configuration loaded from third_party.toml.

The configuration decides which vendored crates first-party code may use and
carries the per-crate settings that can't be derived from Cargo metadata.

Example:
    [gn]
    third_party = "third_party/rust"

    [dependencies]
    serde = "1"

    [testonly-dependencies]
    rstest = "0.17"

    [crate.libc]
    build-script-outputs = ["generated.rs"]
    gn-variables-lib = '''
    rustflags = [ "--cfg", "libc_union" ]
    '''
"""

from __future__ import annotations

import sys
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from .crates import VendoredCrate, Visibility, normalize_crate_name
from .paths import DEFAULT_THIRD_PARTY_PATH


class ConfigError(Exception):
    """Raised when configuration loading fails."""

    pass


@dataclass
class CrateConfig:
    """Settings for one crate name, applied to every epoch of it.

    Attributes:
        build_script_outputs: Files the build script generates, relative to its output dir
        gn_variables_lib: GN text appended to the crate's :lib target
    """

    build_script_outputs: list[str] = field(default_factory=list)
    gn_variables_lib: str = ""


@dataclass
class GenConfig:
    """Configuration for build file generation.

    Attributes:
        third_party: Third-party crate directory, relative to the checkout root
        public_crates: Crates usable from first-party code
        testonly_crates: Crates usable from first-party tests only
        crates: Per-crate settings, keyed by normalized crate name
    """

    third_party: str = DEFAULT_THIRD_PARTY_PATH
    public_crates: set[str] = field(default_factory=set)
    testonly_crates: set[str] = field(default_factory=set)
    crates: dict[str, CrateConfig] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.third_party = self.third_party.strip("/")
        if not self.third_party:
            raise ConfigError("[gn].third_party must not be empty")

        both = self.public_crates & self.testonly_crates
        if both:
            names = ", ".join(sorted(both))
            raise ConfigError(
                f"Crates listed in both [dependencies] and [testonly-dependencies]: {names}"
            )

    @classmethod
    def from_toml(cls, config_path: str | Path) -> "GenConfig":
        """Load configuration from a third_party.toml file.

        Raises:
            ConfigError: If the file is invalid
            FileNotFoundError: If the file doesn't exist
        """
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML syntax: {e}") from e

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GenConfig":
        """Create a GenConfig from a parsed TOML dictionary."""
        gn = data.get("gn", {})
        third_party = gn.get("third_party", DEFAULT_THIRD_PARTY_PATH)
        if not isinstance(third_party, str):
            raise ConfigError("[gn].third_party must be a string")

        public_crates = _crate_names(data.get("dependencies", {}), "dependencies")
        testonly_crates = _crate_names(
            data.get("testonly-dependencies", {}), "testonly-dependencies"
        )

        crates: dict[str, CrateConfig] = {}
        for name, settings in data.get("crate", {}).items():
            if not isinstance(settings, dict):
                raise ConfigError(f"[crate.{name}] must be a table")

            outputs = settings.get("build-script-outputs", [])
            if not isinstance(outputs, list) or not all(isinstance(o, str) for o in outputs):
                raise ConfigError(f"[crate.{name}].build-script-outputs must be a list of strings")

            gn_variables_lib = settings.get("gn-variables-lib", "")
            if not isinstance(gn_variables_lib, str):
                raise ConfigError(f"[crate.{name}].gn-variables-lib must be a string")

            crates[normalize_crate_name(name)] = CrateConfig(
                build_script_outputs=outputs,
                gn_variables_lib=gn_variables_lib.strip("\n"),
            )

        return cls(
            third_party=third_party,
            public_crates=public_crates,
            testonly_crates=testonly_crates,
            crates=crates,
        )

    def visibility(self, crate: VendoredCrate) -> Visibility:
        """Decide who may depend on ``crate``."""
        name = crate.normalized_name
        if name in self.public_crates:
            return Visibility.PUBLIC
        if name in self.testonly_crates:
            return Visibility.TEST_ONLY_AND_THIRD_PARTY
        return Visibility.THIRD_PARTY

    def visibility_map(self, crates: Iterable[VendoredCrate]) -> dict[VendoredCrate, Visibility]:
        return {crate: self.visibility(crate) for crate in crates}

    def build_script_outputs_map(
        self, crates: Iterable[VendoredCrate]
    ) -> dict[VendoredCrate, list[str]]:
        result: dict[VendoredCrate, list[str]] = {}
        for crate in crates:
            crate_config = self.crates.get(crate.normalized_name)
            if crate_config and crate_config.build_script_outputs:
                result[crate] = list(crate_config.build_script_outputs)
        return result

    def gn_variables_lib_map(self, crates: Iterable[VendoredCrate]) -> dict[VendoredCrate, str]:
        result: dict[VendoredCrate, str] = {}
        for crate in crates:
            crate_config = self.crates.get(crate.normalized_name)
            if crate_config and crate_config.gn_variables_lib:
                result[crate] = crate_config.gn_variables_lib
        return result


def _crate_names(table: Any, section: str) -> set[str]:
    if not isinstance(table, dict):
        raise ConfigError(f"[{section}] must be a table")
    return {normalize_crate_name(name) for name in table}
