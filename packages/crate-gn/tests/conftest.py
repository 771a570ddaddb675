# SPDX-License-Identifier: MIT
"""Pytest configuration and fixtures for crate-gn tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Optional

import pytest
from click.testing import CliRunner

from crate_gn.crates import DependencyKind, Epoch, VendoredCrate
from crate_gn.deps import BinTarget, CrateMetadata, DepOfDep, LibTarget, Package, PerKindInfo
from crate_gn.paths import ThirdPartyPaths
from crate_gn.platforms import Platform


CHECKOUT_ROOT = Path("/src")


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def paths() -> ThirdPartyPaths:
    return ThirdPartyPaths(root=CHECKOUT_ROOT)


def crate(name: str, epoch: str) -> VendoredCrate:
    return VendoredCrate(name=name, epoch=Epoch.parse(epoch))


def crate_path(c: VendoredCrate, relative: str) -> Path:
    """Absolute path of a file inside a vendored crate directory."""
    return CHECKOUT_ROOT / "third_party/rust" / c.build_path / relative


def dep_of(name: str, epoch: str, platform: Optional[Platform] = None) -> DepOfDep:
    return DepOfDep(crate=crate(name, epoch), platform=platform)


@pytest.fixture
def make_package() -> Callable[..., Package]:
    """Build a Package with a library target and normal-kind features by default."""

    def _make(
        name: str = "foo",
        epoch: str = "2",
        lib_type: Optional[str] = "rlib",
        bins: tuple[str, ...] = (),
        kinds: Optional[dict[DependencyKind, list[str]]] = None,
        dependencies: Optional[list[DepOfDep]] = None,
        build_dependencies: Optional[list[DepOfDep]] = None,
        dev_dependencies: Optional[list[DepOfDep]] = None,
        build_script: bool = False,
    ) -> Package:
        c = crate(name, epoch)
        if kinds is None:
            kinds = {DependencyKind.NORMAL: ["std"]}
        return Package(
            crate=c,
            lib_target=(
                LibTarget(lib_type=lib_type, root=crate_path(c, "crate/src/lib.rs"))
                if lib_type is not None
                else None
            ),
            bin_targets=[
                BinTarget(name=b, root=crate_path(c, f"crate/src/bin/{b}.rs")) for b in bins
            ],
            dependency_kinds={k: PerKindInfo(features=f) for k, f in kinds.items()},
            dependencies=dependencies or [],
            build_dependencies=build_dependencies or [],
            dev_dependencies=dev_dependencies or [],
            build_script=crate_path(c, "crate/build.rs") if build_script else None,
        )

    return _make


@pytest.fixture
def metadata_for() -> Callable[..., dict[VendoredCrate, CrateMetadata]]:
    """Build a metadata map covering the given packages."""

    def _make(*packages: Package, **overrides: Any) -> dict[VendoredCrate, CrateMetadata]:
        result: dict[VendoredCrate, CrateMetadata] = {}
        for package in packages:
            fields: dict[str, Any] = {
                "name": package.crate.name,
                "version": f"{package.crate.epoch.to_version_string()}.0.1"
                if package.crate.epoch.major is not None
                else f"0.{package.crate.epoch.minor}.1",
                "edition": "2021",
            }
            fields.update(overrides)
            result[package.crate] = CrateMetadata(**fields)
        return result

    return _make


@pytest.fixture
def resolved_json(tmp_path: Path) -> Path:
    """Write a small resolved dependency document rooted at tmp_path."""
    root = tmp_path / "checkout"
    root.mkdir()
    foo_dir = root / "third_party/rust/foo/v2/crate"
    document = {
        "packages": [
            {
                "name": "foo",
                "version": "2.0.1",
                "lib": {"type": "rlib", "root": str(foo_dir / "src/lib.rs")},
                "dependency_kinds": {"normal": {"features": ["std"]}},
                "dependencies": [{"name": "bar", "version": "1.4.0"}],
            },
            {
                "name": "bar",
                "version": "1.4.0",
                "lib": {"type": "rlib", "root": "crate/src/lib.rs"},
                "dependency_kinds": {"normal": {"features": []}},
            },
            {
                "name": "headers-only",
                "version": "0.3.0",
            },
        ],
        "metadata": [
            {"name": "foo", "version": "2.0.1", "edition": "2021", "authors": ["Foo Dev"]},
            {"name": "bar", "version": "1.4.0", "edition": "2018"},
            {"name": "headers-only", "version": "0.3.0"},
        ],
    }
    path = root / "resolved.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    return path
