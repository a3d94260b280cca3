"""DescriptorSync: bring a PKGBUILD in line with upstream.

Release counter rules, in order:

1. A different dependency list (order matters) increments ``pkgrel``.
2. A different version resets ``pkgrel`` to 1, overriding rule 1.
3. The fields are rewritten even when nothing changed.
4. After a version change the source checksums are refreshed; failure
   aborts the run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from gem2arch.core.descriptor import DEPENDS_RE, PKGREL_RE, PKGVER_RE, Descriptor
from gem2arch.exceptions import ChecksumRefreshError, DescriptorError
from gem2arch.tools.base import ChecksumRefresher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReleaseChange:
    """Result of applying the release counter rules.

    Attributes:
        release: New ``pkgrel``.
        dependencies_changed: Rule 1 fired.
        version_changed: Rule 2 fired.
    """

    release: int
    dependencies_changed: bool
    version_changed: bool

    @property
    def modified(self) -> bool:
        return self.dependencies_changed or self.version_changed


def next_release(
    descriptor: Descriptor,
    target_version: str,
    target_dependencies: list[str],
) -> ReleaseChange:
    """Apply rules 1 and 2 without touching the descriptor.

    A synthesized (not yet written) descriptor has no version, so it always
    starts at release 1.
    """
    release = descriptor.release
    deps_changed = descriptor.stored_dependencies() != list(target_dependencies)
    if deps_changed:
        release += 1
    version_changed = descriptor.stored_version() != str(target_version)
    if version_changed:
        release = 1
    return ReleaseChange(release, deps_changed, version_changed)


class DescriptorSync:
    """Rewrites version, release and dependencies of existing PKGBUILDs.

    Args:
        checksums: Called after a version change to refresh source checksums.
    """

    def __init__(self, checksums: ChecksumRefresher) -> None:
        self._checksums = checksums

    def reconcile(
        self,
        descriptor: Descriptor,
        target_version: str,
        target_dependencies: list[str],
    ) -> bool:
        """Update *descriptor* in place and on disk.

        Returns:
            True if the version or the dependency list changed. Callers use
            this to decide whether to commit, build and upload.

        Raises:
            DescriptorError: If the descriptor has never been written.
            ChecksumRefreshError: If checksums cannot be refreshed after a
                version change.
        """
        if descriptor.content is None:
            raise DescriptorError(f"{descriptor.path}: cannot sync a descriptor that does not exist")

        change = next_release(descriptor, target_version, target_dependencies)
        depends = " ".join(target_dependencies)

        content = descriptor.content
        content = DEPENDS_RE.sub(lambda _m: f"depends=({depends})", content, count=1)
        content = PKGVER_RE.sub(lambda _m: f"pkgver={target_version}", content, count=1)
        content = PKGREL_RE.sub(lambda _m: f"pkgrel={change.release}", content, count=1)

        descriptor.content = content
        descriptor.version = str(target_version)
        descriptor.release = change.release
        descriptor.dependencies = list(target_dependencies)
        descriptor.save()

        if change.modified:
            logger.info(
                "%s: %s-%d", descriptor.directory.name, target_version, change.release
            )

        if change.version_changed:
            result = self._checksums.refresh(descriptor.directory)
            if not result:
                raise ChecksumRefreshError(
                    f"Cannot run updpkgsums for modifications in {descriptor.path}: "
                    f"{result.output.strip()}"
                )

        return change.modified
