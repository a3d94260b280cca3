"""rubygems.org client built on the compact index.

Endpoints used:

- ``/versions`` every gem with all published versions (``VersionIndex``)
- ``/info/<gem>`` one line per release with runtime dependencies and
  checksum::

      ---
      1.0.0 |checksum:7f3c...
      1.1.0 rack:>= 1.0&< 3,json:~> 2.0|checksum:a81b...,ruby:>= 2.5
      1.1.0-java rack:>= 1.0|checksum:0c12...

- ``/downloads/<gem>-<version>.gem`` the gem artifact
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from gem2arch.core.index import local_platform, match_platform
from gem2arch.core.versions import Dependency, GemVersion, Requirement
from gem2arch.exceptions import VersionError
from gem2arch.registry.http_client import DEFAULT_TIMEOUT, download, fetch_text

logger = logging.getLogger(__name__)

RUBYGEMS_URL: str = "https://rubygems.org"


@dataclass(frozen=True)
class GemRelease:
    """One published release of a gem, as listed in ``/info/<gem>``.

    Attributes:
        name: Gem name.
        version: Release version.
        platform: Platform suffix, None for pure-ruby releases.
        dependencies: Runtime dependencies in declaration order.
        checksum: SHA-256 of the ``.gem`` file, if listed.
    """

    name: str
    version: GemVersion
    platform: str | None = None
    dependencies: tuple[Dependency, ...] = field(default_factory=tuple)
    checksum: str | None = None

    @property
    def file_name(self) -> str:
        suffix = f"-{self.platform}" if self.platform else ""
        return f"{self.name}-{self.version}{suffix}.gem"


def parse_info(name: str, lines: Iterable[str]) -> list[GemRelease]:
    """Parse a compact ``/info/<gem>`` document.

    Malformed lines are skipped with a debug log entry.
    """
    releases: list[GemRelease] = []
    in_body = False
    for raw in lines:
        line = raw.strip()
        if not in_body:
            in_body = line == "---"
            continue
        if not line:
            continue
        head, _, meta = line.partition("|")
        version_token, _, deps_text = head.partition(" ")
        version_text, sep, gem_platform = version_token.partition("-")
        try:
            version = GemVersion(version_text)
            dependencies = tuple(_parse_dependencies(deps_text))
        except VersionError:
            logger.debug("Skipping malformed info line for %s: %r", name, line)
            continue

        checksum = None
        for item in meta.split(","):
            key, _, value = item.partition(":")
            if key.strip() == "checksum":
                checksum = value.strip() or None

        releases.append(GemRelease(
            name=name,
            version=version,
            platform=gem_platform if sep else None,
            dependencies=dependencies,
            checksum=checksum,
        ))
    return releases


def _parse_dependencies(text: str) -> list[Dependency]:
    deps: list[Dependency] = []
    for item in text.split(","):
        item = item.strip()
        if not item:
            continue
        dep_name, _, requirement = item.partition(":")
        deps.append(Dependency(dep_name, Requirement.parse(requirement)))
    return deps


class RubyGemsClient:
    """Queries rubygems.org.

    Args:
        base_url: Registry root, e.g. ``https://rubygems.org``.
        timeout: Per-request timeout in seconds.
        platform: Local platform; detected when omitted.
    """

    def __init__(
        self,
        base_url: str = RUBYGEMS_URL,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        platform: str | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._platform = platform or local_platform()

    def fetch_versions(self) -> str:
        """Return the compact ``/versions`` document.

        Raises:
            RegistryError: If the registry is unreachable.
        """
        body = fetch_text(f"{self.base_url}/versions", timeout=self._timeout)
        return body or ""

    def releases(self, name: str) -> list[GemRelease]:
        """Return every release of *name*, or ``[]`` for an unknown gem."""
        body = fetch_text(f"{self.base_url}/info/{name}", timeout=self._timeout, missing_ok=True)
        if body is None:
            return []
        return parse_info(name, body.splitlines())

    def find_release(
        self, name: str, requirement: Requirement | None = None
    ) -> GemRelease | None:
        """Return the newest released, installable release matching *requirement*."""
        requirement = requirement or Requirement.default()
        candidates = [
            r for r in self.releases(name)
            if not r.version.prerelease
            and match_platform(r.platform, self._platform)
            and requirement.satisfied_by(r.version)
        ]
        if not candidates:
            return None
        # Prefer the pure-ruby build when a version has several platforms.
        return max(candidates, key=lambda r: (r.version, r.platform is None))

    def gem_url(self, release: GemRelease) -> str:
        return f"{self.base_url}/downloads/{release.file_name}"

    def download(self, release: GemRelease, directory: Path) -> Path:
        """Download the ``.gem`` of *release* into *directory*."""
        return download(
            self.gem_url(release), directory / release.file_name, timeout=self._timeout
        )
