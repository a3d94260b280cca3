"""Suffix resolution: encode a gem requirement into an Arch package name.

Arch has one package per name, so a dependency like ``rack (~> 2.2)`` can
only be met by the unsuffixed ``ruby-rack`` if the newest rack release
satisfies it. Otherwise the dependency must point at a versioned package
whose name carries the shortest dotted version prefix that still separates
the required release from the next newer one.

Example, with rack releases ``[1.0, 1.2, 1.4, 2.0]``:

- ``rack (>= 0)``  -> ``ruby-rack``
- ``rack (~> 1.2.0)`` matches ``1.2`` only -> suffix ``1.2`` -> ``ruby-rack-1.2``
- ``rack (< 2)`` matches up to ``1.4``; the next release is ``2.0`` -> ``ruby-rack-1``

A versioned package is built from the newest release matching
``~> <suffix>.0``, which by construction matches the required release and
not the next one.
"""

from __future__ import annotations

import logging
from itertools import zip_longest

from gem2arch.core.index import VersionIndex
from gem2arch.core.naming import NameMapper
from gem2arch.core.versions import Dependency, Requirement
from gem2arch.exceptions import NamingCollisionError, UnresolvedDependencyError

logger = logging.getLogger(__name__)


def suffix_requirement(suffix: str | None) -> Requirement:
    """Requirement served by a package with *suffix*: ``~> <suffix>.0`` or ``>= 0``."""
    if suffix is None:
        return Requirement.default()
    return Requirement.parse(f"~> {suffix}.0")


class ConstraintResolver:
    """Compute version suffixes against a loaded ``VersionIndex``.

    Args:
        index: Released versions of every gem.
        names: Mapper used to turn suffixes into package names.
    """

    def __init__(self, index: VersionIndex, names: NameMapper | None = None) -> None:
        self._index = index
        self._names = names or NameMapper()

    def resolve_suffix(self, dependency: Dependency) -> str | None:
        """Return the minimal suffix that pins *dependency*, or None.

        Raises:
            UnresolvedDependencyError: If no indexed version satisfies the
                requirement.
            NamingCollisionError: If no dotted prefix of the matched version
                excludes the next newer version.
        """
        if dependency.latest_version:
            return None

        versions = self._index.lookup(dependency.name)
        required_ind = None
        for i in range(len(versions) - 1, -1, -1):
            if dependency.requirement.satisfied_by(versions[i]):
                required_ind = i
                break

        if required_ind is None:
            raise UnresolvedDependencyError(
                f"Cannot resolve package dependency: {dependency}"
            )
        # The newest release already satisfies the requirement.
        if required_ind == len(versions) - 1:
            return None

        required = str(versions[required_ind]).split(".")
        following = str(versions[required_ind + 1]).split(".")

        parts: list[str] = []
        for p1, p2 in zip_longest(required, following):
            if p1 is None:
                break
            if p2 is None:
                raise NamingCollisionError(
                    f"Cannot generate arch name for dependency {dependency}"
                )
            parts.append(p1)
            if p1 != p2:
                suffix = ".".join(parts)
                logger.debug("%s resolves to suffix %s", dependency, suffix)
                return suffix

        raise NamingCollisionError(
            f"Cannot generate arch name for dependency {dependency}: "
            f"{versions[required_ind]} is a prefix of {versions[required_ind + 1]}"
        )

    def package_name(self, dependency: Dependency) -> str:
        """Return the Arch package name that satisfies *dependency*."""
        return self._names.to_package_name(
            dependency.name, self.resolve_suffix(dependency)
        )
