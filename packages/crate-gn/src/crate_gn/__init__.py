# SPDX-License-Identifier: MIT
"""GN build file generation for vendored third-party Rust crates.

This package turns a resolved Cargo dependency graph into one BUILD.gn file
per vendored crate epoch.

Example:
    >>> from pathlib import Path
    >>> from crate_gn import GenConfig, ResolvedGraph, ThirdPartyPaths, build_files_from_deps
    >>>
    >>> config = GenConfig.from_toml("third_party.toml")
    >>> graph = ResolvedGraph.from_json("resolved.json")
    >>> crates = [p.crate for p in graph.packages]
    >>>
    >>> build_files = build_files_from_deps(
    ...     graph.packages,
    ...     ThirdPartyPaths(root=Path("."), third_party=config.third_party),
    ...     graph.metadata,
    ...     config.build_script_outputs_map(crates),
    ...     config.visibility_map(crates),
    ...     config.gn_variables_lib_map(crates),
    ... )
    >>> for crate, build_file in build_files.items():
    ...     print(build_file.display())
"""

__version__ = "0.1.0"

from .config import ConfigError, CrateConfig, GenConfig
from .crates import (
    DependencyKind,
    Epoch,
    VendoredCrate,
    Visibility,
    normalize_crate_name,
)
from .deps import (
    BinTarget,
    CrateMetadata,
    DepOfDep,
    InputError,
    LibTarget,
    Package,
    PerKindInfo,
    ResolvedGraph,
)
from .paths import ThirdPartyPaths
from .platforms import (
    CfgAll,
    CfgAny,
    CfgKeyPair,
    CfgName,
    CfgNot,
    Platform,
    PlatformParseError,
    PlatformSet,
    UnknownPlatformError,
    cfg_expr_to_condition,
    parse_platform,
    platform_to_condition,
)
from .rules import (
    BuildFile,
    ConcreteRule,
    Condition,
    GroupRule,
    RuleCommon,
    RuleConcrete,
    RuleDep,
)
from .synthesis import (
    BuildFileError,
    MissingMetadataError,
    UnsupportedPlatformError,
    build_files_from_deps,
    make_build_file_for_dep,
)
from .writer import escape_str, format_build_file, write_deps

__all__ = [
    # Config
    "GenConfig",
    "CrateConfig",
    "ConfigError",
    # Crates
    "DependencyKind",
    "Epoch",
    "VendoredCrate",
    "Visibility",
    "normalize_crate_name",
    # Resolved input
    "BinTarget",
    "CrateMetadata",
    "DepOfDep",
    "InputError",
    "LibTarget",
    "Package",
    "PerKindInfo",
    "ResolvedGraph",
    "ThirdPartyPaths",
    # Platforms
    "CfgAll",
    "CfgAny",
    "CfgKeyPair",
    "CfgName",
    "CfgNot",
    "Platform",
    "PlatformParseError",
    "PlatformSet",
    "UnknownPlatformError",
    "cfg_expr_to_condition",
    "parse_platform",
    "platform_to_condition",
    # Rules
    "BuildFile",
    "ConcreteRule",
    "Condition",
    "GroupRule",
    "RuleCommon",
    "RuleConcrete",
    "RuleDep",
    # Synthesis
    "BuildFileError",
    "MissingMetadataError",
    "UnsupportedPlatformError",
    "build_files_from_deps",
    "make_build_file_for_dep",
    # Writer
    "escape_str",
    "format_build_file",
    "write_deps",
]
