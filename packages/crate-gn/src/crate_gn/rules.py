# SPDX-License-Identifier: MIT
"""In-memory model of a generated BUILD.gn file.

A BuildFile describes one crate epoch. It holds an ordered list of named
rules, which are either concrete ``cargo_crate()`` targets or ``group()``
aliases of one of those targets:

* ``:lib`` for normal dependents
* ``:test_support`` for first-party testonly dependents
* ``:cargo_tests_support`` for building third-party tests
* ``:buildrs_support`` for third-party build script dependents
* one target per crate executable
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, Union

from .crates import Epoch
from .platforms import PlatformSet, platform_to_condition


@dataclass(frozen=True)
class Condition:
    """Condition wrapped around some GN declarations.

    ``expr`` is None for unconditional declarations; otherwise it is the GN
    expression placed inside ``if (...)``.
    """

    expr: Optional[str] = None

    @classmethod
    def always(cls) -> "Condition":
        return cls()

    @classmethod
    def when(cls, expr: str) -> "Condition":
        return cls(expr=expr)

    @classmethod
    def from_platform_set(cls, platform_set: PlatformSet) -> "Condition":
        """Build the condition matching any platform of the set."""
        if platform_set.is_all:
            return cls.always()
        return cls.when(
            " || ".join(f"({platform_to_condition(p)})" for p in platform_set.platforms)
        )

    @property
    def is_always(self) -> bool:
        return self.expr is None

    def get_if(self) -> Optional[str]:
        """Return the conditional expression, or None if unconditional."""
        return self.expr

    @property
    def sort_key(self) -> tuple[int, str]:
        # Unconditional sorts before every condition
        if self.expr is None:
            return (0, "")
        return (1, self.expr)

    def __lt__(self, other: "Condition") -> bool:
        return self.sort_key < other.sort_key


@dataclass(frozen=True)
class RuleDep:
    """A (possibly conditional) dependency on another GN target.

    Ordering puts unconditional deps first and otherwise sorts by condition
    text, so that deps with equal conditions end up adjacent.
    """

    cond: Condition
    rule: str

    @property
    def sort_key(self) -> tuple[tuple[int, str], str]:
        return (self.cond.sort_key, self.rule)

    def __lt__(self, other: "RuleDep") -> bool:
        return self.sort_key < other.sort_key


@dataclass(frozen=True)
class RuleCommon:
    """Attributes shared by concrete and group rules.

    Attributes:
        testonly: Emit ``testonly = true``
        public_visibility: If False, restrict the target to third-party crates
    """

    testonly: bool = False
    public_visibility: bool = True


@dataclass
class RuleConcrete:
    """Arguments of one ``cargo_crate()`` target.

    Each field corresponds to an argument of the ``cargo_crate()`` template in
    build/rust/cargo_crate.gni. ``crate_name`` and ``epoch`` are only set for
    library targets.
    """

    crate_type: str = ""
    crate_root: str = ""
    edition: str = ""
    cargo_pkg_version: str = ""
    cargo_pkg_name: str = ""
    crate_name: Optional[str] = None
    epoch: Optional[Epoch] = None
    cargo_pkg_authors: Optional[str] = None
    cargo_pkg_description: Optional[str] = None
    deps: list[RuleDep] = field(default_factory=list)
    dev_deps: list[RuleDep] = field(default_factory=list)
    build_deps: list[RuleDep] = field(default_factory=list)
    features: list[str] = field(default_factory=list)
    build_root: Optional[str] = None
    build_script_outputs: list[str] = field(default_factory=list)
    # Extra GN text appended verbatim to the target body
    gn_variables_lib: str = ""

    def copy(self, **changes) -> "RuleConcrete":
        """Return a copy with independent dependency and feature lists."""
        copied = replace(
            self,
            deps=list(self.deps),
            dev_deps=list(self.dev_deps),
            build_deps=list(self.build_deps),
            features=list(self.features),
            build_script_outputs=list(self.build_script_outputs),
        )
        return replace(copied, **changes) if changes else copied


@dataclass
class ConcreteRule:
    common: RuleCommon
    details: RuleConcrete


@dataclass
class GroupRule:
    """An alias publishing ``concrete_target`` with different visibility."""

    common: RuleCommon
    concrete_target: str


Rule = Union[ConcreteRule, GroupRule]


@dataclass
class BuildFile:
    """All rules of one crate epoch's BUILD.gn, in emission order."""

    rules: list[tuple[str, Rule]] = field(default_factory=list)

    def rule_names(self) -> list[str]:
        return [name for name, _ in self.rules]

    def get_rule(self, name: str) -> Optional[Rule]:
        for rule_name, rule in self.rules:
            if rule_name == name:
                return rule
        return None

    def display(self, visibility_pattern: Optional[str] = None) -> str:
        """Render the whole file as GN text."""
        from .writer import DEFAULT_VISIBILITY_PATTERN, format_build_file

        return format_build_file(self, visibility_pattern or DEFAULT_VISIBILITY_PATTERN)
