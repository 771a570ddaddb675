# SPDX-License-Identifier: MIT
"""Show the GN condition for Cargo platform constraints."""

from __future__ import annotations

import click

from ..main import Context, echo_error, echo_info, pass_context
from ..platforms import (
    PlatformParseError,
    UnknownPlatformError,
    parse_platform,
    platform_to_condition,
)


@click.command()
@click.argument("platforms", nargs=-1, required=True)
@pass_context
def condition(ctx: Context, platforms: tuple[str, ...]) -> None:
    """Print the GN condition for each PLATFORMS constraint.

    Each constraint is a target triple or a cfg() expression.

    \b
    Examples:
        crate-gn condition x86_64-pc-windows-msvc
        crate-gn condition 'cfg(not(target_os = "android"))'
    """
    failed = False
    for text in platforms:
        try:
            gn_condition = platform_to_condition(parse_platform(text))
        except (PlatformParseError, UnknownPlatformError) as e:
            echo_error(f"{text}: {e}")
            failed = True
            continue

        if ctx.verbose:
            echo_info(f"{text}: {gn_condition}")
        else:
            echo_info(gn_condition)

    if failed:
        raise SystemExit(1)
