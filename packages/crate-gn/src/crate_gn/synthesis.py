# SPDX-License-Identifier: MIT
"""Build rule synthesis for resolved third-party crates.

Turns each resolved package into the BuildFile describing its GN targets:
one target per binary, one library target per dependency kind the package is
used as, and a ``:test_support`` alias where first-party tests need one.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Optional

from .crates import DependencyKind, VendoredCrate, Visibility, normalize_crate_name
from .deps import CrateMetadata, DepOfDep, Package
from .paths import ThirdPartyPaths
from .platforms import UnknownPlatformError, platform_to_condition
from .rules import (
    BuildFile,
    Condition,
    ConcreteRule,
    GroupRule,
    Rule,
    RuleCommon,
    RuleConcrete,
    RuleDep,
)


class BuildFileError(Exception):
    """Raised when build files cannot be generated for the dependency graph."""

    pass


class MissingMetadataError(BuildFileError):
    """Raised when a resolved crate has no package metadata."""

    pass


class UnsupportedPlatformError(BuildFileError, UnknownPlatformError):
    """Raised when a dependency edge has a platform outside the lowering tables."""

    pass


# Library rules are generated in this order, regardless of input order
LIB_RULE_KINDS = (DependencyKind.NORMAL, DependencyKind.BUILD, DependencyKind.DEVELOPMENT)

LIB_RULE_NAME = DependencyKind.NORMAL.rule_name
TEST_SUPPORT_RULE_NAME = "test_support"


def build_files_from_deps(
    deps: Iterable[Package],
    paths: ThirdPartyPaths,
    metadata: Mapping[VendoredCrate, CrateMetadata],
    build_script_outputs: Mapping[VendoredCrate, list[str]],
    deps_visibility: Mapping[VendoredCrate, Visibility],
    gn_variables_libs: Mapping[VendoredCrate, str],
) -> dict[VendoredCrate, BuildFile]:
    """Generate a BuildFile for each third-party crate in the dependency graph.

    Each crate is handled independently of the others, so callers are free to
    split the package list and combine the results.

    Args:
        deps: Resolved packages
        paths: Vendored tree layout
        metadata: Package metadata for each crate
        build_script_outputs: Files generated by each crate's build script
        deps_visibility: Who may depend on each crate
        gn_variables_libs: Extra GN text for each crate's library target

    Returns:
        Mapping of crate to BuildFile. Crates without any target are omitted.

    Raises:
        MissingMetadataError: If a package has no metadata entry
        BuildFileError: If two packages share a crate name and epoch
        UnsupportedPlatformError: If a dependency's platform can't be lowered
    """
    build_files: dict[VendoredCrate, BuildFile] = {}
    seen: set[VendoredCrate] = set()
    for dep in deps:
        crate_id = dep.third_party_crate_id()
        if crate_id in seen:
            raise BuildFileError(f"Duplicate package {crate_id}")
        seen.add(crate_id)

        result = make_build_file_for_dep(
            dep,
            paths,
            metadata,
            build_script_outputs,
            deps_visibility,
            gn_variables_libs,
        )
        if result is not None:
            crate_id, build_file = result
            build_files[crate_id] = build_file
    return build_files


def make_build_file_for_dep(
    dep: Package,
    paths: ThirdPartyPaths,
    metadata: Mapping[VendoredCrate, CrateMetadata],
    build_script_outputs: Mapping[VendoredCrate, list[str]],
    deps_visibility: Mapping[VendoredCrate, Visibility],
    gn_variables_libs: Mapping[VendoredCrate, str],
) -> Optional[tuple[VendoredCrate, BuildFile]]:
    """Generate the BuildFile for ``dep``, or None if it has no rules."""
    crate_id = dep.third_party_crate_id()

    package_metadata = metadata.get(crate_id)
    if package_metadata is None:
        raise MissingMetadataError(f"No package metadata for {crate_id}")

    def to_gn_path(path: Path) -> str:
        try:
            return paths.to_gn_path(crate_id, path)
        except ValueError as e:
            raise BuildFileError(f"Bad source path for {crate_id}: {e}") from e

    # Fields shared by all of the package's rules
    rule_template = RuleConcrete(
        edition=package_metadata.edition,
        cargo_pkg_version=package_metadata.version,
        cargo_pkg_authors=", ".join(package_metadata.authors) or None,
        cargo_pkg_name=package_metadata.name,
        cargo_pkg_description=package_metadata.description,
        build_root=to_gn_path(dep.build_script) if dep.build_script is not None else None,
        build_script_outputs=list(build_script_outputs.get(crate_id, [])),
    )

    rule_template.deps = _rule_deps(paths, crate_id, dep.dependencies, DependencyKind.NORMAL)
    rule_template.dev_deps = _rule_deps(
        paths, crate_id, dep.dev_dependencies, DependencyKind.DEVELOPMENT
    )
    rule_template.build_deps = _rule_deps(
        paths, crate_id, dep.build_dependencies, DependencyKind.BUILD
    )

    rules: list[tuple[str, Rule]] = []

    for bin_target in dep.bin_targets:
        # Binary-only packages are not the target of any dependency edge, so
        # they may have no requested features at all.
        normal_info = dep.dependency_kinds.get(DependencyKind.NORMAL)
        bin_rule = rule_template.copy(
            crate_type="bin",
            crate_root=to_gn_path(bin_target.root),
            features=list(normal_info.features) if normal_info is not None else [],
        )

        if dep.lib_target is not None:
            bin_rule.deps.append(RuleDep(cond=Condition.always(), rule=":lib"))

        rules.append(
            (
                normalize_crate_name(bin_target.name),
                ConcreteRule(
                    common=RuleCommon(testonly=False, public_visibility=True),
                    details=bin_rule,
                ),
            )
        )

    lib_target = dep.lib_target
    if lib_target is not None:
        visibility = deps_visibility.get(crate_id, Visibility.THIRD_PARTY)

        for dep_kind in LIB_RULE_KINDS:
            per_kind_info = dep.dependency_kinds.get(dep_kind)
            if per_kind_info is None:
                continue

            lib_rule_name = dep_kind.rule_name
            lib_details = rule_template.copy(
                crate_name=crate_id.normalized_name,
                epoch=crate_id.epoch,
                crate_type=lib_target.lib_type,
                crate_root=to_gn_path(lib_target.root),
                features=list(per_kind_info.features),
            )
            # Extra GN text goes on :lib only
            if lib_rule_name == LIB_RULE_NAME:
                lib_details.gn_variables_lib = gn_variables_libs.get(crate_id, "")

            rules.append(
                (
                    lib_rule_name,
                    ConcreteRule(
                        common=RuleCommon(
                            testonly=dep_kind == DependencyKind.DEVELOPMENT,
                            public_visibility=visibility == Visibility.PUBLIC,
                        ),
                        details=lib_details,
                    ),
                )
            )

            # First-party tests may use the crate even though it is otherwise
            # restricted to third-party code.
            if (
                dep_kind == DependencyKind.NORMAL
                and visibility == Visibility.TEST_ONLY_AND_THIRD_PARTY
            ):
                rules.append(
                    (
                        TEST_SUPPORT_RULE_NAME,
                        GroupRule(
                            common=RuleCommon(testonly=True, public_visibility=True),
                            concrete_target=lib_rule_name,
                        ),
                    )
                )

    if not rules:
        return None
    return crate_id, BuildFile(rules=rules)


def _rule_deps(
    paths: ThirdPartyPaths,
    owner: VendoredCrate,
    edges: list[DepOfDep],
    kind: DependencyKind,
) -> list[RuleDep]:
    """Convert one kind's dependency edges to RuleDeps on that kind's rule."""
    rule_deps: list[RuleDep] = []
    for edge in edges:
        if edge.platform is None:
            cond = Condition.always()
        else:
            try:
                cond = Condition.when(platform_to_condition(edge.platform))
            except UnknownPlatformError as e:
                raise UnsupportedPlatformError(
                    f"{owner} -> {edge.crate}: {e}"
                ) from e
        rule_deps.append(RuleDep(cond=cond, rule=paths.dep_label(edge.crate, kind.rule_name)))
    return rule_deps
