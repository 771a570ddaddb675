# SPDX-License-Identifier: MIT
"""Tests for build rule synthesis."""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import crate, dep_of

from crate_gn.crates import DependencyKind, Visibility
from crate_gn.platforms import CfgName, Platform, UnknownPlatformError
from crate_gn.rules import ConcreteRule, Condition, GroupRule, RuleDep
from crate_gn.synthesis import (
    BuildFileError,
    MissingMetadataError,
    UnsupportedPlatformError,
    build_files_from_deps,
    make_build_file_for_dep,
)


ALL_KINDS = {
    DependencyKind.NORMAL: ["std"],
    DependencyKind.BUILD: ["alloc"],
    DependencyKind.DEVELOPMENT: ["std", "test-util"],
}


def synthesize(package, paths, metadata, visibility=None, outputs=None, gn_vars=None):
    result = make_build_file_for_dep(
        package,
        paths,
        metadata,
        outputs or {},
        {package.crate: visibility} if visibility is not None else {},
        gn_vars or {},
    )
    assert result is not None
    crate_id, build_file = result
    assert crate_id == package.crate
    return build_file


class TestLibraryRules:
    """Tests for per-kind library rules."""

    def test_all_three_kinds(self, make_package, metadata_for, paths):
        package = make_package(kinds=ALL_KINDS)
        build_file = synthesize(package, paths, metadata_for(package))

        assert build_file.rule_names() == ["lib", "buildrs_support", "cargo_tests_support"]
        for name, rule in build_file.rules:
            assert isinstance(rule, ConcreteRule)
            assert rule.common.testonly == (name == "cargo_tests_support")

    def test_kind_features(self, make_package, metadata_for, paths):
        package = make_package(kinds=ALL_KINDS)
        build_file = synthesize(package, paths, metadata_for(package))

        assert build_file.get_rule("lib").details.features == ["std"]
        assert build_file.get_rule("buildrs_support").details.features == ["alloc"]
        assert build_file.get_rule("cargo_tests_support").details.features == ["std", "test-util"]

    def test_only_recorded_kinds(self, make_package, metadata_for, paths):
        package = make_package(kinds={DependencyKind.BUILD: []})
        build_file = synthesize(package, paths, metadata_for(package))
        assert build_file.rule_names() == ["buildrs_support"]

    def test_library_identity(self, make_package, metadata_for, paths):
        package = make_package(name="foo-bar", epoch="v0_3", lib_type="proc-macro")
        build_file = synthesize(package, paths, metadata_for(package))

        details = build_file.get_rule("lib").details
        assert details.crate_name == "foo_bar"
        assert details.epoch.to_version_string() == "0.3"
        assert details.crate_type == "proc-macro"
        assert details.crate_root == "crate/src/lib.rs"

    def test_shared_metadata_fields(self, make_package, metadata_for, paths):
        package = make_package()
        metadata = metadata_for(
            package, authors=["A <a@example.com>", "B"], description="Does things"
        )
        details = synthesize(package, paths, metadata).get_rule("lib").details

        assert details.edition == "2021"
        assert details.cargo_pkg_version == "2.0.1"
        assert details.cargo_pkg_name == "foo"
        assert details.cargo_pkg_authors == "A <a@example.com>, B"
        assert details.cargo_pkg_description == "Does things"

    def test_no_authors(self, make_package, metadata_for, paths):
        package = make_package()
        details = synthesize(package, paths, metadata_for(package)).get_rule("lib").details
        assert details.cargo_pkg_authors is None
        assert details.cargo_pkg_description is None


class TestVisibility:
    """Tests for visibility decisions."""

    def test_public(self, make_package, metadata_for, paths):
        package = make_package()
        build_file = synthesize(package, paths, metadata_for(package), Visibility.PUBLIC)
        assert build_file.get_rule("lib").common.public_visibility is True

    def test_default_is_third_party(self, make_package, metadata_for, paths):
        package = make_package()
        build_file = synthesize(package, paths, metadata_for(package))
        assert build_file.get_rule("lib").common.public_visibility is False
        assert build_file.get_rule("test_support") is None

    def test_test_support_alias(self, make_package, metadata_for, paths):
        package = make_package(kinds=ALL_KINDS)
        build_file = synthesize(
            package, paths, metadata_for(package), Visibility.TEST_ONLY_AND_THIRD_PARTY
        )

        assert build_file.rule_names() == [
            "lib",
            "test_support",
            "buildrs_support",
            "cargo_tests_support",
        ]
        assert build_file.get_rule("lib").common.public_visibility is False

        group = build_file.get_rule("test_support")
        assert isinstance(group, GroupRule)
        assert group.concrete_target == "lib"
        assert group.common.testonly is True
        assert group.common.public_visibility is True

    def test_no_alias_without_normal_kind(self, make_package, metadata_for, paths):
        package = make_package(kinds={DependencyKind.DEVELOPMENT: []})
        build_file = synthesize(
            package, paths, metadata_for(package), Visibility.TEST_ONLY_AND_THIRD_PARTY
        )
        assert build_file.rule_names() == ["cargo_tests_support"]


class TestBinaryRules:
    """Tests for binary targets."""

    def test_binary_depends_on_lib(self, make_package, metadata_for, paths):
        package = make_package(bins=("foo-tool",))
        build_file = synthesize(package, paths, metadata_for(package))

        assert build_file.rule_names() == ["foo_tool", "lib"]
        bin_rule = build_file.get_rule("foo_tool")
        assert bin_rule.details.crate_type == "bin"
        assert bin_rule.details.crate_name is None
        assert bin_rule.details.epoch is None
        assert bin_rule.details.crate_root == "crate/src/bin/foo-tool.rs"
        assert bin_rule.details.deps == [RuleDep(Condition.always(), ":lib")]
        assert bin_rule.common.testonly is False
        assert bin_rule.common.public_visibility is True

    def test_binary_uses_normal_features(self, make_package, metadata_for, paths):
        package = make_package(bins=("tool",), kinds=ALL_KINDS)
        build_file = synthesize(package, paths, metadata_for(package))
        assert build_file.get_rule("tool").details.features == ["std"]

    def test_binary_only_package(self, make_package, metadata_for, paths):
        package = make_package(lib_type=None, bins=("tool",), kinds={})
        build_file = synthesize(package, paths, metadata_for(package))

        assert build_file.rule_names() == ["tool"]
        details = build_file.get_rule("tool").details
        assert details.features == []
        assert details.deps == []

    def test_lib_rule_does_not_see_binary_lib_edge(self, make_package, metadata_for, paths):
        package = make_package(bins=("tool",))
        build_file = synthesize(package, paths, metadata_for(package))
        assert build_file.get_rule("lib").details.deps == []


class TestDependencyEdges:
    """Tests for RuleDep generation from dependency edges."""

    def test_kind_specific_targets(self, make_package, metadata_for, paths):
        package = make_package(
            kinds=ALL_KINDS,
            dependencies=[dep_of("bar", "1")],
            build_dependencies=[dep_of("cc", "1")],
            dev_dependencies=[dep_of("rstest", "0.17")],
        )
        details = synthesize(package, paths, metadata_for(package)).get_rule("lib").details

        assert details.deps == [RuleDep(Condition.always(), "//third_party/rust/bar/v1:lib")]
        assert details.build_deps == [
            RuleDep(Condition.always(), "//third_party/rust/cc/v1:buildrs_support")
        ]
        assert details.dev_deps == [
            RuleDep(Condition.always(), "//third_party/rust/rstest/v0_17:cargo_tests_support")
        ]

    def test_platform_condition(self, make_package, metadata_for, paths):
        package = make_package(
            dependencies=[dep_of("winapi", "0.3", Platform.cfg(CfgName("windows")))]
        )
        details = synthesize(package, paths, metadata_for(package)).get_rule("lib").details
        assert details.deps == [
            RuleDep(Condition.when("is_win"), "//third_party/rust/winapi/v0_3:lib")
        ]

    def test_normalized_dep_name(self, make_package, metadata_for, paths):
        package = make_package(dependencies=[dep_of("unicode-ident", "1")])
        details = synthesize(package, paths, metadata_for(package)).get_rule("lib").details
        assert details.deps[0].rule == "//third_party/rust/unicode_ident/v1:lib"

    def test_unknown_platform_is_fatal(self, make_package, metadata_for, paths):
        package = make_package(
            dependencies=[dep_of("x", "1", Platform.name("wasm32-unknown-unknown"))]
        )
        with pytest.raises(UnsupportedPlatformError) as excinfo:
            synthesize(package, paths, metadata_for(package))
        assert isinstance(excinfo.value, UnknownPlatformError)
        assert isinstance(excinfo.value, BuildFileError)


class TestBuildScript:
    """Tests for build script fields."""

    def test_build_root_and_outputs(self, make_package, metadata_for, paths):
        package = make_package(build_script=True)
        details = synthesize(
            package,
            paths,
            metadata_for(package),
            outputs={package.crate: ["out.rs"]},
        ).get_rule("lib").details

        assert details.build_root == "crate/build.rs"
        assert details.build_script_outputs == ["out.rs"]

    def test_source_outside_crate_dir(self, make_package, metadata_for, paths):
        package = make_package(build_script=True)
        package.build_script = Path("/elsewhere/build.rs")
        with pytest.raises(BuildFileError, match="Bad source path"):
            synthesize(package, paths, metadata_for(package))


class TestGnVariablesLib:
    """Tests for the trailing GN fragment."""

    def test_only_on_lib_rule(self, make_package, metadata_for, paths):
        package = make_package(kinds=ALL_KINDS, bins=("tool",))
        build_file = synthesize(
            package,
            paths,
            metadata_for(package),
            gn_vars={package.crate: 'rustflags = [ "--cfg", "x" ]'},
        )

        assert build_file.get_rule("lib").details.gn_variables_lib == 'rustflags = [ "--cfg", "x" ]'
        assert build_file.get_rule("buildrs_support").details.gn_variables_lib == ""
        assert build_file.get_rule("cargo_tests_support").details.gn_variables_lib == ""
        assert build_file.get_rule("tool").details.gn_variables_lib == ""


class TestBuildFilesFromDeps:
    """Tests for whole-graph synthesis."""

    def test_skips_packages_without_rules(self, make_package, metadata_for, paths):
        foo = make_package()
        empty = make_package(name="headers", lib_type=None, kinds={})
        build_files = build_files_from_deps(
            [foo, empty], paths, metadata_for(foo, empty), {}, {}, {}
        )
        assert list(build_files) == [foo.crate]

    def test_lib_without_recorded_kinds_has_no_rules(self, make_package, metadata_for, paths):
        package = make_package(kinds={})
        assert make_build_file_for_dep(package, paths, metadata_for(package), {}, {}, {}) is None

    def test_missing_metadata(self, make_package, paths):
        package = make_package()
        with pytest.raises(MissingMetadataError, match="foo"):
            build_files_from_deps([package], paths, {}, {}, {}, {})

    def test_missing_metadata_even_without_rules(self, make_package, paths):
        package = make_package(lib_type=None, kinds={})
        with pytest.raises(MissingMetadataError):
            build_files_from_deps([package], paths, {}, {}, {}, {})

    def test_duplicate_package(self, make_package, metadata_for, paths):
        first = make_package(name="foo", epoch="1")
        second = make_package(name="foo", epoch="1", kinds={DependencyKind.BUILD: []})
        with pytest.raises(BuildFileError, match="Duplicate package foo v1"):
            build_files_from_deps([first, second], paths, metadata_for(first), {}, {}, {})

    def test_same_name_different_epochs(self, make_package, metadata_for, paths):
        v1 = make_package(name="foo", epoch="1")
        v2 = make_package(name="foo", epoch="2")
        build_files = build_files_from_deps([v1, v2], paths, metadata_for(v1, v2), {}, {}, {})
        assert set(build_files) == {crate("foo", "1"), crate("foo", "2")}

    def test_independent_per_crate(self, make_package, metadata_for, paths):
        foo = make_package(name="foo", epoch="1")
        bar = make_package(name="bar", epoch="1")
        metadata = metadata_for(foo, bar)

        together = build_files_from_deps([foo, bar], paths, metadata, {}, {}, {})
        alone = build_files_from_deps([bar], paths, metadata, {}, {}, {})

        assert together[crate("bar", "1")].display() == alone[crate("bar", "1")].display()
