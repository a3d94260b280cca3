"""Clients for the upstream gem registry and the Arch package repositories.

Public API::

    from gem2arch.registry import RemotePackage, RemoteStatusChecker, RunCache
    from gem2arch.registry.rubygems import RubyGemsClient
    from gem2arch.registry.arch import AurRepository, PacmanRepository
"""

from __future__ import annotations

from gem2arch.registry.arch import Origin, PackageRepository, RemotePackage
from gem2arch.registry.status import RemoteStatusChecker, RunCache

__all__ = [
    "Origin",
    "PackageRepository",
    "RemotePackage",
    "RemoteStatusChecker",
    "RunCache",
]
