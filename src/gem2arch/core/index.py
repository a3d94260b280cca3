"""VersionIndex: released versions of every gem on the upstream registry.

The index is built from the rubygems.org compact index ``/versions``
document, which looks like::

    created_at: 2024-04-01T00:00:05Z
    ---
    rack 0.1.0,0.2.0,1.0.0 0123456789abcdef0123456789abcdef
    nokogiri 1.15.0,1.15.0-x86_64-linux,1.15.0-java fedcba...
    rack 3.0.0,-0.2.0 89abcdef...

A gem can appear on several lines because the file is append-only. A
version prefixed with ``-`` has been yanked. Versions may carry a platform
suffix after the first ``-``.

The index is loaded once per run and never persisted.
"""

from __future__ import annotations

import logging
import platform as _platform
from collections.abc import Callable, Iterable

from gem2arch.core.versions import GemVersion, Requirement
from gem2arch.exceptions import VersionError

logger = logging.getLogger(__name__)

RUBY_PLATFORM = "ruby"


def local_platform() -> str:
    """Return the RubyGems platform string of this machine, e.g. ``x86_64-linux``."""
    machine = _platform.machine().lower() or "x86_64"
    if machine == "amd64":
        machine = "x86_64"
    return f"{machine}-{_platform.system().lower() or 'linux'}"


def match_platform(gem_platform: str | None, local: str) -> bool:
    """Return True if a gem built for *gem_platform* installs on *local*.

    Pure-ruby gems always match. Binary gems match when the cpu and OS
    agree; a libc qualifier such as ``x86_64-linux-gnu`` is accepted.
    """
    if gem_platform is None or gem_platform == RUBY_PLATFORM:
        return True
    return gem_platform == local or gem_platform.startswith(local + "-")


def _split_platform(token: str) -> tuple[str, str | None]:
    version, sep, gem_platform = token.partition("-")
    return version, (gem_platform if sep else None)


class VersionIndex:
    """Ascending lists of released versions, keyed by gem name.

    Example::

        index = VersionIndex.parse(body)
        index.lookup("rack")      # [GemVersion('0.1.0'), ..., GemVersion('3.0.0')]
        index.latest("rack", Requirement.parse("~> 2.0"))
    """

    def __init__(self, versions: dict[str, list[GemVersion]] | None = None) -> None:
        self._versions: dict[str, list[GemVersion]] = {}
        for name, values in (versions or {}).items():
            self._versions[name] = _sorted_unique(values)

    @classmethod
    def load(
        cls,
        fetch: Callable[[], str],
        *,
        platform: str | None = None,
    ) -> VersionIndex:
        """Fetch the compact ``/versions`` document and build the index.

        Args:
            fetch: Returns the document body. Registry failures propagate
                as ``RegistryError`` and are fatal for the run.
            platform: Local platform string; detected when omitted.
        """
        body = fetch()
        index = cls.parse(body.splitlines(), platform=platform)
        logger.info("Loaded versions of %d gems", len(index))
        return index

    @classmethod
    def parse(cls, lines: Iterable[str], *, platform: str | None = None) -> VersionIndex:
        """Build an index from the lines of a compact ``/versions`` document."""
        local = platform or local_platform()
        # name -> published tokens ("1.0.0", "1.0.0-java") in file order
        grouped: dict[str, list[str]] = {}
        in_body = False

        for raw in lines:
            line = raw.strip()
            if not in_body:
                in_body = line == "---"
                continue
            if not line:
                continue
            fields = line.split()
            if len(fields) < 2:
                logger.debug("Skipping malformed index line: %r", line)
                continue
            name, tokens = fields[0], fields[1]
            bucket = grouped.setdefault(name, [])
            for token in tokens.split(","):
                if token.startswith("-"):
                    bucket[:] = [t for t in bucket if t != token[1:]]
                else:
                    bucket.append(token)

        versions: dict[str, list[GemVersion]] = {}
        for name, tokens in grouped.items():
            released: list[GemVersion] = []
            for token in tokens:
                text, gem_platform = _split_platform(token)
                if not match_platform(gem_platform, local):
                    continue
                try:
                    version = GemVersion(text)
                except VersionError:
                    logger.debug("Skipping unparsable version %s %s", name, text)
                    continue
                if not version.prerelease:
                    released.append(version)
            versions[name] = released
        return cls(versions)

    def __len__(self) -> int:
        return len(self._versions)

    def __contains__(self, name: object) -> bool:
        return name in self._versions

    @property
    def names(self) -> list[str]:
        """Gem names in registry iteration order."""
        return list(self._versions)

    def lookup(self, name: str) -> list[GemVersion]:
        """Return the ascending versions of *name*, or ``[]`` if unknown."""
        return list(self._versions.get(name, []))

    def latest(self, name: str, requirement: Requirement | None = None) -> GemVersion | None:
        """Return the highest version of *name* satisfying *requirement*."""
        requirement = requirement or Requirement.default()
        for version in reversed(self._versions.get(name, [])):
            if requirement.satisfied_by(version):
                return version
        return None


def _sorted_unique(values: Iterable[GemVersion]) -> list[GemVersion]:
    seen: set[GemVersion] = set()
    result: list[GemVersion] = []
    for version in sorted(values):
        if version not in seen:
            seen.add(version)
            result.append(version)
    return result
