"""Project scaffolding for `klo new`."""

from __future__ import annotations

from pathlib import Path

_KLO_TOML_TEMPLATE = """\
[package]
name = "{name}"
version = "0.1.0"

[build]
go = "go"
out_dir = "build"
keep_go = false

[run]
timeout = 60
"""

_MAIN_KLO_TEMPLATE = """\
# Hello from klo!
name = "{name}"
print "Hello from", name

for i in range(3):
    print "step", i
"""

_GITIGNORE = """\
build/
klo_temp_*.go
__pycache__/
"""


def scaffold(name: str, parent: Path | None = None) -> Path:
    """Create a new klo project directory. Returns the project path."""
    base = parent or Path.cwd()
    project_dir = base / name

    if project_dir.exists():
        raise FileExistsError(f"Directory '{name}' already exists")

    project_dir.mkdir(parents=True)
    (project_dir / "klo.toml").write_text(_KLO_TOML_TEMPLATE.format(name=name))
    (project_dir / "main.klo").write_text(_MAIN_KLO_TEMPLATE.format(name=name))
    (project_dir / ".gitignore").write_text(_GITIGNORE)

    return project_dir
