"""TOML config loading for klo.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_NAME = "klo.toml"


@dataclass
class PackageConfig:
    name: str = "untitled"
    version: str = "0.0.0"


@dataclass
class BuildConfig:
    go: str = "go"
    out_dir: str = "build"
    keep_go: bool = False


@dataclass
class RunConfig:
    timeout: int = 60


@dataclass
class KloConfig:
    package: PackageConfig = field(default_factory=PackageConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    run: RunConfig = field(default_factory=RunConfig)
    root: Path | None = None


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find klo.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_NAME
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError(f"No {CONFIG_NAME} found in any parent directory")
        path = parent


def load_config(path: Path) -> KloConfig:
    """Parse a klo.toml file into a KloConfig."""
    with open(path, "rb") as f:
        data = tomllib.load(f)

    config = KloConfig(root=path.parent)

    if "package" in data:
        pkg = data["package"]
        config.package = PackageConfig(
            name=pkg.get("name", "untitled"),
            version=pkg.get("version", "0.0.0"),
        )

    if "build" in data:
        bld = data["build"]
        config.build = BuildConfig(
            go=bld.get("go", "go"),
            out_dir=bld.get("out_dir", "build"),
            keep_go=bld.get("keep_go", False),
        )

    if "run" in data:
        config.run = RunConfig(timeout=data["run"].get("timeout", 60))

    return config


def config_for(source_path: Path) -> KloConfig:
    """Config governing *source_path*, or the defaults when there is none."""
    try:
        return load_config(find_config(source_path))
    except FileNotFoundError:
        return KloConfig()
