# SPDX-License-Identifier: MIT
"""Generate BUILD.gn files from a resolved dependency graph."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from ..config import ConfigError
from ..deps import InputError, ResolvedGraph
from ..main import Context, echo_error, echo_info, echo_success, echo_warning, pass_context
from ..paths import ThirdPartyPaths
from ..platforms import UnknownPlatformError
from ..synthesis import BuildFileError, build_files_from_deps
from ..writer import format_build_file


BUILD_FILE_NAME = "BUILD.gn"


@click.command()
@click.argument(
    "resolved",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to third_party.toml (defaults to <root>/third_party.toml if present).",
)
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory to write build files under (defaults to the checkout root).",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="List the files that would be written without writing them.",
)
@pass_context
def gen(
    ctx: Context,
    resolved: Path,
    config_path: Optional[Path],
    output_dir: Optional[Path],
    dry_run: bool,
) -> None:
    """Generate BUILD.gn files for every vendored crate.

    RESOLVED is the JSON document describing the resolved dependency graph
    and package metadata.

    \b
    Examples:
        crate-gn gen resolved.json
        crate-gn gen resolved.json -o out/gen --dry-run
    """
    try:
        config = ctx.load_config(config_path)
        graph = ResolvedGraph.from_json(resolved)
    except (ConfigError, InputError, FileNotFoundError) as e:
        echo_error(str(e))
        raise SystemExit(1)

    root = ctx.root
    paths = ThirdPartyPaths(root=root, third_party=config.third_party)
    crates = [package.crate for package in graph.packages]

    if ctx.verbose:
        echo_info(f"Checkout root: {root}")
        echo_info(f"Third-party directory: //{config.third_party}")
        echo_info(f"Packages: {len(graph.packages)}")

    try:
        build_files = build_files_from_deps(
            graph.packages,
            paths,
            graph.metadata,
            config.build_script_outputs_map(crates),
            config.visibility_map(crates),
            config.gn_variables_lib_map(crates),
        )
    except (BuildFileError, UnknownPlatformError) as e:
        echo_error(str(e))
        raise SystemExit(1)

    skipped = len(graph.packages) - len(build_files)
    if skipped:
        echo_warning(f"{skipped} package(s) have no buildable targets and were skipped")

    output_root = output_dir if output_dir is not None else root
    if not output_root.is_absolute():
        output_root = root / output_root

    for crate in sorted(build_files, key=lambda c: c.build_path):
        build_file = build_files[crate]
        target = output_root / config.third_party / crate.build_path / BUILD_FILE_NAME

        if dry_run:
            echo_info(f"Would write: {target}")
            continue

        if ctx.verbose:
            echo_info(f"{crate}: {', '.join(build_file.rule_names())}")

        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(
            format_build_file(build_file, paths.visibility_pattern),
            encoding="utf-8",
        )

    if dry_run:
        echo_info(f"{len(build_files)} build file(s) would be written")
    else:
        echo_success(f"Wrote {len(build_files)} build file(s) under {output_root}")
