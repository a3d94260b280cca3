"""Arch Linux package repositories.

Two tiers are queried for an existing package:

- primary: the official repositories, through ``pacman -Si``
- secondary: the AUR, through its RPC interface

Both report the version without the ``-<pkgrel>`` release.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from gem2arch.registry.http_client import DEFAULT_TIMEOUT, fetch_json
from gem2arch.tools.shell import run_command

logger = logging.getLogger(__name__)

AUR_RPC_URL: str = "https://aur.archlinux.org/rpc/v5/info"
AUR_PACKAGE_URL: str = "https://aur.archlinux.org/packages/{package}/"
ARCH_PACKAGE_URL: str = "https://archlinux.org/packages/{repo}/{arch}/{package}/"

# "1.2.3-2" -> "1.2.3"
_PKGREL_SUFFIX_RE = re.compile(r"^(.*)-\d+$")


class Origin(Enum):
    """Repository tier a package was found in."""

    PRIMARY = "repo"
    SECONDARY = "aur"


@dataclass(frozen=True)
class RemotePackage:
    """A package found in a repository.

    Attributes:
        version: Package version without release.
        origin: Repository tier.
        url: Package web page.
    """

    version: str
    origin: Origin
    url: str


def strip_release(version: str) -> str:
    m = _PKGREL_SUFFIX_RE.match(version.strip())
    return m.group(1).strip() if m else version.strip()


class PackageRepository(ABC):
    """A repository that can be asked for one package by name."""

    @property
    @abstractmethod
    def origin(self) -> Origin:
        """Tier of this repository."""

    @abstractmethod
    def query(self, package: str) -> RemotePackage | None:
        """Return the package, or None if the repository does not have it."""


class PacmanRepository(PackageRepository):
    """Official repositories as configured for the local ``pacman``."""

    def __init__(self, timeout: float = 60.0) -> None:
        self._timeout = timeout

    @property
    def origin(self) -> Origin:
        return Origin.PRIMARY

    def query(self, package: str) -> RemotePackage | None:
        result = run_command(["pacman", "-Si", package], timeout=self._timeout)
        if not result:
            return None
        return parse_pacman_info(package, result.output)


def _field(text: str, name: str) -> str | None:
    m = re.search(rf"^{name}\s*:(.*)$", text, re.MULTILINE)
    return m.group(1).strip() if m else None


def parse_pacman_info(package: str, text: str) -> RemotePackage | None:
    """Parse ``pacman -Si`` output; None if it has no version field."""
    version = _field(text, "Version")
    if version is None:
        logger.debug("No version in pacman output for %s", package)
        return None
    repo = _field(text, "Repository") or "extra"
    arch = _field(text, "Architecture") or "any"
    return RemotePackage(
        version=strip_release(version),
        origin=Origin.PRIMARY,
        url=ARCH_PACKAGE_URL.format(repo=repo, arch=arch, package=package),
    )


class AurRepository(PackageRepository):
    """The Arch User Repository."""

    def __init__(self, rpc_url: str = AUR_RPC_URL, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._rpc_url = rpc_url
        self._timeout = timeout

    @property
    def origin(self) -> Origin:
        return Origin.SECONDARY

    def query(self, package: str) -> RemotePackage | None:
        data = fetch_json(self._rpc_url, params={"arg[]": package}, timeout=self._timeout)
        if not isinstance(data, dict) or int(data.get("resultcount") or 0) <= 0:
            return None
        results = data.get("results")
        # RPC v5 returns a list; the legacy endpoint returned one object.
        info = results[0] if isinstance(results, list) and results else results
        if not isinstance(info, dict) or "Version" not in info:
            return None
        return RemotePackage(
            version=strip_release(str(info["Version"])),
            origin=Origin.SECONDARY,
            url=AUR_PACKAGE_URL.format(package=package),
        )
