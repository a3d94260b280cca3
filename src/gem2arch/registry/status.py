"""RemoteStatusChecker: is there already a package for this gem, and is it current?

Lookups go to the primary repository first and the secondary one on a miss.
Results, including misses, are memoised in a ``RunCache`` that lives for
one run. The first lookup of a package also compares the found version
with the newest matching gem release and records a notice when the
package is out of date or missing.
"""

from __future__ import annotations

import logging

from gem2arch.core.index import VersionIndex
from gem2arch.core.notices import NoticeKind, NoticeLog
from gem2arch.core.resolver import suffix_requirement
from gem2arch.registry.arch import PackageRepository, RemotePackage

logger = logging.getLogger(__name__)


class RunCache:
    """Package name -> lookup result, for the duration of one run.

    Entries are write-once: the first stored result, including ``None``
    for a package found nowhere, stays authoritative.
    """

    def __init__(self) -> None:
        self._entries: dict[str, RemotePackage | None] = {}

    def __contains__(self, package: object) -> bool:
        return package in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, package: str) -> RemotePackage | None:
        return self._entries.get(package)

    def put(self, package: str, info: RemotePackage | None) -> RemotePackage | None:
        """Store *info* unless *package* is already cached; return the cached value."""
        return self._entries.setdefault(package, info)


class RemoteStatusChecker:
    """Looks packages up in the repository tiers.

    Args:
        index: Upstream versions, used for the staleness check.
        repositories: Repositories in query order (primary first).
        cache: Run-scoped lookup cache.
        notices: Where out-of-date and missing packages are reported.
    """

    def __init__(
        self,
        index: VersionIndex,
        repositories: list[PackageRepository],
        cache: RunCache,
        notices: NoticeLog,
    ) -> None:
        self._index = index
        self._repositories = repositories
        self._cache = cache
        self._notices = notices

    def resolve(
        self, package: str, gem_name: str, suffix: str | None
    ) -> RemotePackage | None:
        """Return the existing package named *package*, or None.

        Raises:
            RegistryError: If a repository cannot be queried.
        """
        if package in self._cache:
            return self._cache.get(package)

        info = None
        for repo in self._repositories:
            info = repo.query(package)
            if info is not None:
                logger.debug("%s found in %s: %s", package, repo.origin.value, info.version)
                break
        info = self._cache.put(package, info)

        latest = self._index.latest(gem_name, suffix_requirement(suffix))
        latest_text = str(latest) if latest is not None else "none"
        if info is None:
            self._notices.add(
                NoticeKind.MISSING,
                package,
                f"Package {package} does not exist. Please create one.",
            )
        elif info.version != latest_text:
            self._notices.add(
                NoticeKind.OUT_OF_DATE,
                package,
                f"Package {package} is out-of-date (repo={info.version} gem={latest_text}). "
                f"Please visit {info.url} and mark it so.",
                url=info.url,
            )
        return info
