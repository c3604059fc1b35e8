"""Full pipelines from a .klo file: transpile to Go, build, or run."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from klo.compiler import transpile
from klo.config import KloConfig
from klo.errors import CompileError, Diagnostic
from klo.go_toolchain import GoToolchainError, build_go, run_go

logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".klo"


@dataclass
class BuildResult:
    """Outcome of a transpile, build or run."""

    ok: bool
    go_file: Path | None = None
    binary: Path | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)
    go_error: str | None = None


def go_stem(source: Path) -> str:
    """Base name for generated Go files.

    Go treats ``*_test.go`` as test files, so such names get ``_example``.
    """
    stem = source.stem
    if stem.endswith("_test"):
        stem = stem[: -len("_test")] + "_example"
    return stem


def default_go_path(source: Path, config: KloConfig) -> Path:
    base = config.root or Path.cwd()
    return base / config.build.out_dir / f"{go_stem(source)}.go"


def temp_go_path(source: Path) -> Path:
    return Path.cwd() / f"klo_temp_{go_stem(source)}.go"


def _go_error(e: GoToolchainError) -> str:
    return f"{e}\n{e.stderr}" if e.stderr else str(e)


def transpile_file(
    source: Path, config: KloConfig, output: Path | None = None,
) -> BuildResult:
    """Translate *source* and write the Go program to *output*."""
    try:
        go_code = transpile(source.read_text(), str(source))
    except CompileError as e:
        return BuildResult(ok=False, diagnostics=e.diagnostics)

    go_file = output or default_go_path(source, config)
    go_file.parent.mkdir(parents=True, exist_ok=True)
    go_file.write_text(go_code)
    logger.info("wrote %s", go_file)
    return BuildResult(ok=True, go_file=go_file)


def build_file(
    source: Path, config: KloConfig, output: Path | None = None,
) -> BuildResult:
    """Transpile *source* and compile it to a native binary with ``go build``."""
    result = transpile_file(source, config)
    if not result.ok:
        return result

    assert result.go_file is not None
    binary = output or result.go_file.with_suffix("")
    try:
        build_go(
            result.go_file, binary,
            go=config.build.go, timeout=config.run.timeout,
        )
    except GoToolchainError as e:
        return BuildResult(ok=False, go_file=result.go_file, go_error=_go_error(e))

    return BuildResult(ok=True, go_file=result.go_file, binary=binary)


def run_file(
    source: Path, config: KloConfig, output: Path | None = None,
) -> BuildResult:
    """Transpile *source* and execute it with ``go run``.

    Without *output* the Go file is temporary and removed afterwards unless
    ``build.keep_go`` is set.
    """
    go_file = output or temp_go_path(source)
    result = transpile_file(source, config, go_file)
    if not result.ok:
        return result

    keep = config.build.keep_go or output is not None
    try:
        run_go(go_file, go=config.build.go, timeout=config.run.timeout)
    except GoToolchainError as e:
        return BuildResult(ok=False, go_file=go_file, go_error=_go_error(e))
    finally:
        if not keep:
            go_file.unlink(missing_ok=True)
            logger.debug("removed %s", go_file)

    return BuildResult(ok=True, go_file=go_file if keep else None)
