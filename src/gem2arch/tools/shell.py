"""Subprocess implementations of the tool interfaces.

Each action runs one or more commands in the package directory with a
timeout and reports the result; none of them raises on a non-zero exit.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from gem2arch.tools.base import (
    ChecksumRefresher,
    PackageBuilder,
    PackageUploader,
    RevisionControl,
    ToolResult,
)

logger = logging.getLogger(__name__)

# Timeout for external commands (seconds). Builds can compile native code.
DEFAULT_COMMAND_TIMEOUT: float = 1800.0


def run_command(
    args: list[str],
    *,
    cwd: Path | None = None,
    timeout: float = DEFAULT_COMMAND_TIMEOUT,
) -> ToolResult:
    """Run *args* and capture combined output.

    A missing executable or a timeout is reported as a failed result.
    """
    logger.debug("Running %s in %s", " ".join(args), cwd or ".")
    try:
        proc = subprocess.run(
            args,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError:
        logger.warning("Command not found: %s", args[0])
        return ToolResult(False, f"{args[0]}: command not found")
    except subprocess.TimeoutExpired:
        logger.warning("Timeout running %s", " ".join(args))
        return ToolResult(False, f"{args[0]}: timed out after {timeout:.0f}s")
    return ToolResult(proc.returncode == 0, proc.stdout or "")


class UpdpkgsumsRefresher(ChecksumRefresher):
    """Refreshes checksums with ``updpkgsums`` (pacman-contrib)."""

    def __init__(self, timeout: float = DEFAULT_COMMAND_TIMEOUT) -> None:
        self._timeout = timeout

    def refresh(self, directory: Path) -> ToolResult:
        return run_command(["updpkgsums"], cwd=directory, timeout=self._timeout)


class MakepkgBuilder(PackageBuilder):
    """Builds with ``makepkg --nodeps -f``, installing with ``-i``."""

    def __init__(self, timeout: float = DEFAULT_COMMAND_TIMEOUT) -> None:
        self._timeout = timeout

    def build(self, directory: Path, *, install: bool = True) -> ToolResult:
        args = ["makepkg", "--nodeps", "-f"]
        if install:
            args.append("-i")
        return run_command(args, cwd=directory, timeout=self._timeout)


class SourcePackageUploader(PackageUploader):
    """Builds a source tarball and hands it to an upload command (``burp``)."""

    def __init__(
        self,
        command: str = "burp",
        timeout: float = DEFAULT_COMMAND_TIMEOUT,
    ) -> None:
        self._command = command
        self._timeout = timeout

    def upload(self, directory: Path, package_id: str) -> ToolResult:
        for stale in directory.glob("*.src.tar.gz"):
            stale.unlink()
        result = run_command(["makepkg", "-S", "-f"], cwd=directory, timeout=self._timeout)
        if not result:
            return result
        return run_command(
            [self._command, f"{package_id}.src.tar.gz"],
            cwd=directory,
            timeout=self._timeout,
        )


class GitRevisionControl(RevisionControl):
    """git in the work directory."""

    def __init__(self, workdir: Path, timeout: float = 60.0) -> None:
        self._workdir = workdir
        self._timeout = timeout

    def _git(self, *args: str) -> ToolResult:
        return run_command(["git", *args], cwd=self._workdir, timeout=self._timeout)

    def stash(self, message: str) -> ToolResult:
        return self._git("stash", "push", "-m", message)

    def _pathspec(self, path: Path) -> str:
        # git runs in the work directory, so paths are given relative to it.
        try:
            return str(path.absolute().relative_to(self._workdir.absolute()))
        except ValueError:
            return str(path.absolute())

    def commit(self, paths: list[Path], message: str) -> ToolResult:
        added = self._git("add", "--", *(self._pathspec(p) for p in paths))
        if not added:
            return added
        return self._git("commit", "-m", message)

    def user_identity(self) -> str | None:
        name = self._git("config", "--get", "user.name")
        if not name:
            return None
        email = self._git("config", "--get", "user.email")
        if not email:
            return None
        name_s, email_s = name.output.strip(), email.output.strip()
        if not name_s or not email_s:
            return None
        return f"{name_s} <{email_s}>"
