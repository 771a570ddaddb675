# SPDX-License-Identifier: MIT
"""GN text output for BuildFile descriptions.

The output is consumed by existing build tooling and compared against
previously generated files, so the exact text layout matters: one item per
line in lists, no indentation, conditional deps grouped into one
``if (...) { ... }`` block per distinct condition.
"""

from __future__ import annotations

from collections.abc import Iterable
from itertools import groupby

from .rules import BuildFile, ConcreteRule, GroupRule, Rule, RuleCommon, RuleConcrete, RuleDep


COPYRIGHT_HEADER = """\
# Copyright 2022 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file."""

IMPORT_STATEMENT = 'import("//build/rust/cargo_crate.gni")'

DEFAULT_VISIBILITY_PATTERN = "//third_party/rust/*"

VISIBILITY_CONSTRAINT = """\
# Only for usage from third-party crates. Add the crate to
# third_party.toml to use it from first-party code.
visibility = [ "{pattern}" ]"""

# Third-party code is never built with first-party warning levels
CONFIG_OVERRIDES = (
    'library_configs -= [ "//build/config/compiler:chromium_code" ]',
    'library_configs += [ "//build/config/compiler:no_chromium_code" ]',
    'executable_configs -= [ "//build/config/compiler:chromium_code" ]',
    'executable_configs += [ "//build/config/compiler:no_chromium_code" ]',
)

UNIT_TESTS_COMMENT = "# Unit tests skipped. Generate with --with-tests to include them."


def format_build_file(
    build_file: BuildFile,
    visibility_pattern: str = DEFAULT_VISIBILITY_PATTERN,
) -> str:
    """Render a BuildFile as the full text of a BUILD.gn file.

    Args:
        build_file: Rules to render
        visibility_pattern: Label pattern for restricted targets' visibility

    Returns:
        The BUILD.gn text, ending in a newline
    """
    lines = [COPYRIGHT_HEADER, "", IMPORT_STATEMENT, ""]
    for name, rule in build_file.rules:
        lines.extend(format_rule(name, rule, visibility_pattern))
    return "\n".join(lines) + "\n"


def format_rule(name: str, rule: Rule, visibility_pattern: str) -> list[str]:
    """Render one rule as a list of lines."""
    if isinstance(rule, ConcreteRule):
        return write_concrete(name, rule.common, rule.details, visibility_pattern)
    if isinstance(rule, GroupRule):
        return write_group(name, rule.common, rule.concrete_target, visibility_pattern)
    raise TypeError(f"Unknown rule type for {name}: {type(rule).__name__}")


def write_concrete(
    name: str,
    common: RuleCommon,
    details: RuleConcrete,
    visibility_pattern: str,
) -> list[str]:
    lines = [f'cargo_crate("{name}") {{']
    if details.crate_name is not None:
        lines.append(f'crate_name = "{details.crate_name}"')
    if details.epoch is not None:
        lines.append(f'epoch = "{details.epoch.to_version_string()}"')
    lines.append(f'crate_type = "{details.crate_type}"')
    if common.testonly:
        lines.append("testonly = true")

    if not common.public_visibility:
        lines.append("")
        lines.append(VISIBILITY_CONSTRAINT.format(pattern=visibility_pattern))

    lines.append(f'crate_root = "{details.crate_root}"')
    # TODO: generate native unit test targets once --with-tests is supported
    lines.append("")
    lines.append(UNIT_TESTS_COMMENT)
    lines.append("build_native_rust_unit_tests = false")
    lines.append(f'sources = [ "{details.crate_root}" ]')
    lines.append(f'edition = "{details.edition}"')
    lines.append(f'cargo_pkg_version = "{details.cargo_pkg_version}"')
    if details.cargo_pkg_authors is not None:
        lines.append(f'cargo_pkg_authors = "{details.cargo_pkg_authors}"')
    lines.append(f'cargo_pkg_name = "{details.cargo_pkg_name}"')
    if details.cargo_pkg_description is not None:
        lines.append(f'cargo_pkg_description = "{escape_str(details.cargo_pkg_description)}"')
    lines.extend(CONFIG_OVERRIDES)

    if details.deps:
        lines.extend(write_deps("deps", details.deps))
    if details.build_deps:
        lines.extend(write_deps("build_deps", details.build_deps))
    if details.dev_deps:
        lines.extend(write_deps("dev_deps", details.dev_deps))

    if details.features:
        lines.append("features = [")
        lines.extend(write_list(details.features))

    if details.build_root is not None:
        lines.append(f'build_root = "{details.build_root}"')
        lines.append(f'build_sources = [ "{details.build_root}" ]')
        if details.build_script_outputs:
            lines.append("build_script_outputs = [")
            lines.extend(write_list(details.build_script_outputs))

    if details.gn_variables_lib:
        lines.append(details.gn_variables_lib)

    lines.append("}")
    return lines


def write_group(
    name: str,
    common: RuleCommon,
    concrete_target: str,
    visibility_pattern: str,
) -> list[str]:
    lines = [f'group("{name}") {{', f'public_deps = [ ":{concrete_target}" ]']
    if common.testonly:
        lines.append("testonly = true")

    if not common.public_visibility:
        lines.append("")
        lines.append(VISIBILITY_CONSTRAINT.format(pattern=visibility_pattern))

    lines.append("}")
    return lines


def write_deps(kind: str, deps: Iterable[RuleDep]) -> list[str]:
    """Render a dependency list, grouping conditional deps by condition.

    Produces ``<kind> = [ ... ]`` with the unconditional deps (an empty list
    if there are none but conditional deps exist), followed by one
    ``if (<cond>) { <kind> += [ ... ] }`` block per distinct condition, in
    ascending order of condition text.
    """
    # Sorting puts unconditional deps first and makes equal conditions adjacent
    ordered = sorted(deps)
    if not ordered:
        return []

    unconditional_end = next(
        (i for i, dep in enumerate(ordered) if not dep.cond.is_always),
        len(ordered),
    )

    lines = [f"{kind} = ["]
    lines.extend(write_list(dep.rule for dep in ordered[:unconditional_end]))

    for cond, group in groupby(ordered[unconditional_end:], key=lambda dep: dep.cond):
        lines.append(f"if ({cond.get_if()}) {{")
        lines.append(f"{kind} += [")
        lines.extend(write_list(dep.rule for dep in group))
        lines.append("}")

    return lines


def write_list(items: Iterable[str]) -> list[str]:
    """Render the items and closing bracket of a one-item-per-line GN list.

    The caller writes the opening ``<name> = [`` line.
    """
    lines = [f'"{item}",' for item in items]
    lines.append("]")
    return lines


def escape_str(s: str) -> str:
    """Escape a free-text string for a GN string literal.

    Newlines are dropped and double quotes become single quotes. Backslashes
    and "$" pass through untouched.
    """
    return s.replace("\n", "").replace('"', "'")
