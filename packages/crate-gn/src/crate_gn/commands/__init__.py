# SPDX-License-Identifier: MIT
"""CLI command implementations."""

from . import condition, gen

__all__ = ["condition", "gen"]
