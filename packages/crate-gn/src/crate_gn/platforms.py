# SPDX-License-Identifier: MIT
"""Platform constraints and their lowering to GN conditions.

Cargo dependencies may be restricted to a platform, written either as a
target triple ("x86_64-pc-windows-msvc") or as a cfg expression
("cfg(any(unix, target_os = \"fuchsia\"))"). This module parses those
constraints and maps them onto GN boolean expressions.

The mapping only covers the platforms we vendor for. Anything outside the
tables below raises UnknownPlatformError: a new platform needs an explicit
table entry rather than a guess.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, Union


class PlatformParseError(ValueError):
    """Raised when a platform constraint string is malformed."""

    pass


class UnknownPlatformError(Exception):
    """Raised when a platform has no GN condition in the lowering tables."""

    pass


# Target triple -> GN condition
TRIPLE_TO_GN_CONDITION: dict[str, str] = {
    "i686-linux-android": 'is_android && target_cpu == "x86"',
    "x86_64-linux-android": 'is_android && target_cpu == "x64"',
    "armv7-linux-android": 'is_android && target_cpu == "arm"',
    "aarch64-linux-android": 'is_android && target_cpu == "arm64"',
    "aarch64-fuchsia": 'is_fuchsia && target_cpu == "arm64"',
    "x86_64-fuchsia": 'is_fuchsia && target_cpu == "x64"',
    "aarch64-apple-ios": 'is_ios && target_cpu == "arm64"',
    "armv7-apple-ios": 'is_ios && target_cpu == "arm"',
    "x86_64-apple-ios": 'is_ios && target_cpu == "x64"',
    "i386-apple-ios": 'is_ios && target_cpu == "x86"',
    "i686-pc-windows-msvc": 'is_win && target_cpu == "x86"',
    "x86_64-pc-windows-msvc": 'is_win && target_cpu == "x64"',
    "i686-unknown-linux-gnu": '(is_linux || is_chromeos) && target_cpu == "x86"',
    "x86_64-unknown-linux-gnu": '(is_linux || is_chromeos) && target_cpu == "x64"',
    "x86_64-apple-darwin": 'is_mac && target_cpu == "x64"',
    "aarch64-apple-darwin": 'is_mac && target_cpu == "arm64"',
}

# cfg(target_os = "...") value -> GN condition
TARGET_OS_TO_GN_CONDITION: dict[str, str] = {
    "android": "is_android",
    "darwin": "is_mac",
    "fuchsia": "is_fuchsia",
    "ios": "is_ios",
    "linux": "is_linux || is_chromeos",
    "windows": "is_win",
}

# Bare cfg names -> GN condition.
# Fuchsia is not a unix, but rustc sets cfg(unix) for it, so we match rustc.
CFG_NAME_TO_GN_CONDITION: dict[str, str] = {
    "unix": "!is_win",
    "windows": "is_win",
}


# =============================================================================
# cfg() expression tree
# =============================================================================


@dataclass(frozen=True)
class CfgName:
    """A bare cfg predicate, e.g. ``unix``."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class CfgKeyPair:
    """A key/value cfg predicate, e.g. ``target_os = "linux"``."""

    key: str
    value: str

    def __str__(self) -> str:
        return f'{self.key} = "{self.value}"'


@dataclass(frozen=True)
class CfgNot:
    expr: "CfgExpr"

    def __str__(self) -> str:
        return f"not({self.expr})"


@dataclass(frozen=True)
class CfgAll:
    exprs: tuple["CfgExpr", ...] = ()

    def __str__(self) -> str:
        return f"all({', '.join(str(e) for e in self.exprs)})"


@dataclass(frozen=True)
class CfgAny:
    exprs: tuple["CfgExpr", ...] = ()

    def __str__(self) -> str:
        return f"any({', '.join(str(e) for e in self.exprs)})"


CfgExpr = Union[CfgName, CfgKeyPair, CfgNot, CfgAll, CfgAny]


@dataclass(frozen=True)
class Platform:
    """A Cargo platform constraint: a target triple or a cfg expression.

    Attributes:
        triple: Target triple, for ``[target.<triple>.dependencies]``
        cfg_expr: Parsed expression, for ``[target.'cfg(...)'.dependencies]``
    """

    triple: Optional[str] = None
    cfg_expr: Optional[CfgExpr] = None

    def __post_init__(self) -> None:
        if (self.triple is None) == (self.cfg_expr is None):
            raise ValueError("Platform requires exactly one of triple or cfg_expr")

    @classmethod
    def name(cls, triple: str) -> "Platform":
        return cls(triple=triple)

    @classmethod
    def cfg(cls, expr: CfgExpr) -> "Platform":
        return cls(cfg_expr=expr)

    def __str__(self) -> str:
        if self.triple is not None:
            return self.triple
        return f"cfg({self.cfg_expr})"


@dataclass(frozen=True)
class PlatformSet:
    """The set of platforms a dependency is enabled on.

    An empty ``platforms`` tuple together with ``is_all`` means every
    platform; otherwise the dependency applies on any of ``platforms``.
    """

    platforms: tuple[Platform, ...] = field(default_factory=tuple)
    is_all: bool = False

    @classmethod
    def all(cls) -> "PlatformSet":
        return cls(is_all=True)

    @classmethod
    def of(cls, platforms: list[Platform]) -> "PlatformSet":
        return cls(platforms=tuple(platforms))


# =============================================================================
# Parsing
# =============================================================================

# Tokens of the cfg() grammar: identifiers, string literals, punctuation
_TOKEN_PATTERN = re.compile(
    r"\s*(?:(?P<ident>[A-Za-z_][A-Za-z0-9_]*)"
    r'|"(?P<string>[^"]*)"'
    r"|(?P<punct>[(),=]))"
)


def _tokenize(text: str) -> list[tuple[str, str]]:
    tokens: list[tuple[str, str]] = []
    pos = 0
    text = text.rstrip()
    while pos < len(text):
        match = _TOKEN_PATTERN.match(text, pos)
        if not match:
            raise PlatformParseError(f"Unexpected character at offset {pos} in {text!r}")
        kind = match.lastgroup
        assert kind is not None
        tokens.append((kind, match.group(kind)))
        pos = match.end()
    return tokens


class _CfgParser:
    """Recursive-descent parser over the token list of one cfg expression."""

    def __init__(self, tokens: list[tuple[str, str]], source: str) -> None:
        self.tokens = tokens
        self.source = source
        self.pos = 0

    def _peek(self) -> Optional[tuple[str, str]]:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def _next(self) -> tuple[str, str]:
        token = self._peek()
        if token is None:
            raise PlatformParseError(f"Unexpected end of cfg expression: {self.source!r}")
        self.pos += 1
        return token

    def _expect(self, punct: str) -> None:
        kind, value = self._next()
        if kind != "punct" or value != punct:
            raise PlatformParseError(f"Expected {punct!r}, got {value!r} in {self.source!r}")

    def _at(self, punct: str) -> bool:
        token = self._peek()
        return token is not None and token == ("punct", punct)

    def parse_list(self, operator: str) -> tuple[CfgExpr, ...]:
        self._expect("(")
        exprs: list[CfgExpr] = []
        while not self._at(")"):
            exprs.append(self.parse_expr())
            if not self._at(")"):
                self._expect(",")
        self._expect(")")
        # An empty list would lower to an empty GN condition
        if not exprs:
            raise PlatformParseError(f"Empty {operator}() in {self.source!r}")
        return tuple(exprs)

    def parse_expr(self) -> CfgExpr:
        kind, value = self._next()
        if kind != "ident":
            raise PlatformParseError(f"Expected identifier, got {value!r} in {self.source!r}")

        if self._at("("):
            if value == "all":
                return CfgAll(self.parse_list("all"))
            if value == "any":
                return CfgAny(self.parse_list("any"))
            if value == "not":
                self._expect("(")
                expr = self.parse_expr()
                self._expect(")")
                return CfgNot(expr)
            raise PlatformParseError(f"Unknown cfg operator {value!r} in {self.source!r}")

        if self._at("="):
            self._next()
            string_kind, string_value = self._next()
            if string_kind != "string":
                raise PlatformParseError(
                    f"Expected string after '{value} =' in {self.source!r}"
                )
            return CfgKeyPair(value, string_value)

        return CfgName(value)

    def finish(self) -> None:
        if self._peek() is not None:
            raise PlatformParseError(f"Trailing input in cfg expression: {self.source!r}")


def parse_cfg_expr(text: str) -> CfgExpr:
    """Parse the inside of a ``cfg(...)`` constraint.

    Raises:
        PlatformParseError: If the expression is malformed
    """
    parser = _CfgParser(_tokenize(text), text)
    expr = parser.parse_expr()
    parser.finish()
    return expr


def parse_platform(text: str) -> Platform:
    """Parse a Cargo platform constraint string.

    Args:
        text: A target triple or a ``cfg(...)`` expression

    Returns:
        Platform instance

    Raises:
        PlatformParseError: If the constraint is malformed
    """
    text = text.strip()
    if not text:
        raise PlatformParseError("Empty platform constraint")

    if text.startswith("cfg(") and text.endswith(")"):
        return Platform.cfg(parse_cfg_expr(text[len("cfg(") : -1]))

    if not re.fullmatch(r"[A-Za-z0-9_.-]+", text):
        raise PlatformParseError(f"Invalid target triple: {text!r}")
    return Platform.name(text)


# =============================================================================
# Lowering
# =============================================================================


def platform_to_condition(platform: Platform) -> str:
    """Map a platform constraint to a GN conditional expression."""
    if platform.triple is not None:
        return triple_to_condition(platform.triple)
    assert platform.cfg_expr is not None
    return cfg_expr_to_condition(platform.cfg_expr)


def cfg_expr_to_condition(cfg_expr: CfgExpr) -> str:
    if isinstance(cfg_expr, CfgNot):
        return f"!({cfg_expr_to_condition(cfg_expr.expr)})"
    if isinstance(cfg_expr, CfgAll):
        return " && ".join(f"({cfg_expr_to_condition(e)})" for e in cfg_expr.exprs)
    if isinstance(cfg_expr, CfgAny):
        return " || ".join(f"({cfg_expr_to_condition(e)})" for e in cfg_expr.exprs)
    return cfg_to_condition(cfg_expr)


def cfg_to_condition(cfg: Union[CfgName, CfgKeyPair]) -> str:
    """Map a single cfg predicate to a GN condition.

    Only ``unix``, ``windows`` and ``target_os = "..."`` are supported.
    """
    if isinstance(cfg, CfgName):
        condition = CFG_NAME_TO_GN_CONDITION.get(cfg.name)
        if condition is None:
            raise UnknownPlatformError(f"cfg name {cfg.name} not supported")
        return condition

    if isinstance(cfg, CfgKeyPair):
        if cfg.key != "target_os":
            raise UnknownPlatformError(f"cfg key {cfg.key} not supported")
        return target_os_to_condition(cfg.value)

    raise TypeError(f"Not a cfg predicate: {cfg!r}")


def triple_to_condition(triple: str) -> str:
    condition = TRIPLE_TO_GN_CONDITION.get(triple)
    if condition is None:
        raise UnknownPlatformError(f"target triple {triple} not found")
    return condition


def target_os_to_condition(target_os: str) -> str:
    condition = TARGET_OS_TO_GN_CONDITION.get(target_os)
    if condition is None:
        raise UnknownPlatformError(f"target os {target_os} not found")
    return condition
