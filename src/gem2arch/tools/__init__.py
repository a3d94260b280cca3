"""External program interfaces (checksums, builds, uploads, git) and their shell implementations."""

from __future__ import annotations

from gem2arch.tools.base import (
    ChecksumRefresher,
    PackageBuilder,
    PackageUploader,
    RevisionControl,
    ToolResult,
)

__all__ = [
    "ChecksumRefresher",
    "PackageBuilder",
    "PackageUploader",
    "RevisionControl",
    "ToolResult",
]
