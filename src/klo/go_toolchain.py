"""Invoke the Go toolchain to build or run generated programs."""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


class GoToolchainError(Exception):
    """Raised when the go tool is missing, times out, or fails."""

    def __init__(self, message: str, stderr: str = "") -> None:
        self.stderr = stderr
        super().__init__(message)


def find_go(executable: str = "go") -> str | None:
    """Search PATH for the go tool."""
    return shutil.which(executable)


def _invoke(cmd: list[str], *, timeout: int, capture: bool) -> subprocess.CompletedProcess:
    logger.debug("running %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            capture_output=capture,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError:
        raise GoToolchainError(f"go tool '{cmd[0]}' not found")
    except subprocess.TimeoutExpired:
        raise GoToolchainError(f"'{' '.join(cmd[:2])}' timed out after {timeout}s")

    if result.returncode != 0:
        raise GoToolchainError(
            f"'{' '.join(cmd[:2])}' failed (exit {result.returncode})",
            stderr=result.stderr or "",
        )
    return result


def build_go(
    go_file: Path,
    output: Path,
    *,
    go: str | None = None,
    timeout: int = 60,
) -> Path:
    """Compile a Go source file into a native binary.

    Returns the output path on success; raises GoToolchainError on failure.
    """
    tool = go or find_go()
    if tool is None:
        raise GoToolchainError("no go tool found (install Go from https://go.dev)")
    _invoke([tool, "build", "-o", str(output), str(go_file)], timeout=timeout, capture=True)
    return output


def run_go(
    go_file: Path,
    *,
    go: str | None = None,
    timeout: int = 60,
) -> None:
    """Execute a Go source file with ``go run``; its output goes to our stdout."""
    tool = go or find_go()
    if tool is None:
        raise GoToolchainError("no go tool found (install Go from https://go.dev)")
    _invoke([tool, "run", str(go_file)], timeout=timeout, capture=False)
