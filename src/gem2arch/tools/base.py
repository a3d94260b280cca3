"""Interfaces for the external programs gem2arch drives.

Checksum refresh, package builds, uploads and commits all have side effects
outside the work directory. The workflow only talks to these abstract
interfaces; ``gem2arch.tools.shell`` provides the subprocess-backed
implementations and tests substitute in-memory fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one external action.

    Attributes:
        success: True if the action completed.
        output: Captured output, useful in failure reports.
    """

    success: bool
    output: str = ""

    def __bool__(self) -> bool:
        return self.success


class ChecksumRefresher(ABC):
    """Recomputes the source checksums of a PKGBUILD after a version change."""

    @abstractmethod
    def refresh(self, directory: Path) -> ToolResult:
        """Refresh checksums of the PKGBUILD in *directory*."""


class PackageBuilder(ABC):
    """Builds (and optionally installs) the package in a directory."""

    @abstractmethod
    def build(self, directory: Path, *, install: bool = True) -> ToolResult:
        """Build the package described by ``directory/PKGBUILD``."""


class PackageUploader(ABC):
    """Publishes a source package to the secondary repository."""

    @abstractmethod
    def upload(self, directory: Path, package_id: str) -> ToolResult:
        """Upload the source package *package_id* (``<name>-<ver>-<rel>``)."""


class RevisionControl(ABC):
    """Records descriptor changes in the work tree's revision control."""

    @abstractmethod
    def stash(self, message: str) -> ToolResult:
        """Set aside uncommitted changes before a run."""

    @abstractmethod
    def commit(self, paths: list[Path], message: str) -> ToolResult:
        """Stage *paths* and commit them with *message*."""

    @abstractmethod
    def user_identity(self) -> str | None:
        """Return ``"Name <email>"`` of the configured user, if known."""
