# SPDX-License-Identifier: MIT
"""CLI entry point for the crate-gn command."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

import click

from .config import ConfigError, GenConfig
from .deps import InputError
from .platforms import UnknownPlatformError
from .synthesis import BuildFileError


DEFAULT_CONFIG_NAME = "third_party.toml"


class Context:
    """CLI context object passed to commands."""

    def __init__(self) -> None:
        self.config: Optional[GenConfig] = None
        self.verbose: bool = False
        self.project_dir: Optional[Path] = None

    @property
    def root(self) -> Path:
        """Absolute checkout root, with ".." collapsed but symlinks kept."""
        return Path(os.path.abspath(self.project_dir or Path.cwd()))

    def load_config(self, config_path: Optional[Path] = None) -> GenConfig:
        """Load configuration, caching the result.

        Without an explicit path, ``third_party.toml`` in the project directory
        is used if present, and defaults otherwise.
        """
        if self.config is None:
            if config_path is not None:
                self.config = GenConfig.from_toml(config_path)
            elif (self.root / DEFAULT_CONFIG_NAME).exists():
                self.config = GenConfig.from_toml(self.root / DEFAULT_CONFIG_NAME)
            else:
                self.config = GenConfig()
        return self.config


pass_context = click.make_pass_decorator(Context, ensure=True)


def echo_error(message: str) -> None:
    """Print an error message to stderr."""
    click.secho(f"Error: {message}", fg="red", err=True)


def echo_success(message: str) -> None:
    """Print a success message."""
    click.secho(message, fg="green")


def echo_info(message: str) -> None:
    """Print an info message."""
    click.echo(message)


def echo_warning(message: str) -> None:
    """Print a warning message."""
    click.secho(f"Warning: {message}", fg="yellow", err=True)


@click.group()
@click.version_option(package_name="crate-gn")
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Enable verbose output.",
)
@click.option(
    "-C",
    "--directory",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Checkout root (defaults to the current directory).",
)
@pass_context
def cli(ctx: Context, verbose: bool, directory: Optional[Path]) -> None:
    """Generate GN build files for vendored Rust crates.

    \b
    Examples:
        crate-gn gen resolved.json
        crate-gn gen resolved.json --config third_party.toml --dry-run
        crate-gn condition 'cfg(any(unix, target_os = "fuchsia"))'
    """
    ctx.verbose = verbose
    ctx.project_dir = directory


# Import and register commands
from .commands import condition, gen

cli.add_command(gen.gen)
cli.add_command(condition.condition)


def main() -> None:
    """Main entry point for the CLI."""
    try:
        cli()
    except (ConfigError, InputError, BuildFileError, UnknownPlatformError) as e:
        echo_error(str(e))
        sys.exit(1)
    except FileNotFoundError as e:
        echo_error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
