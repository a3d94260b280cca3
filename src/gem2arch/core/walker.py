"""DependencyGraphWalker: generate requested packages and their missing dependencies.

The walk is an explicit LIFO worklist plus a visited set of package names.
Processing a package may report dependencies that have no package in any
repository yet; those are pushed on the same worklist. Each package name
is processed at most once, which also ends dependency cycles.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from gem2arch.core.naming import NameMapper, PackageRequest

logger = logging.getLogger(__name__)

# (request, package name) -> requests for dependencies that must be generated too
ProcessFn = Callable[[PackageRequest, str], "list[PackageRequest]"]


class DependencyGraphWalker:
    """Drives package generation over a worklist.

    Args:
        process: Generates one package and returns requests for its missing
            dependencies.
        names: Mapper used to compute the package name of each request.
    """

    def __init__(self, process: ProcessFn, names: NameMapper | None = None) -> None:
        self._process = process
        self._names = names or NameMapper()

    def drive(self, requests: Iterable[PackageRequest]) -> list[str]:
        """Process *requests* until the worklist is empty.

        Returns:
            Package names in the order they were processed.
        """
        worklist: list[PackageRequest] = list(requests)
        visited: set[str] = set()
        processed: list[str] = []

        while worklist:
            request = worklist.pop()
            package_name = self._names.request_name(request)
            if package_name in visited:
                logger.debug("Skipping %s: already processed", package_name)
                continue
            visited.add(package_name)
            processed.append(package_name)

            logger.info("Generate PKGBUILD for %s", package_name)
            more = self._process(request, package_name)
            for dep in more:
                logger.debug("%s needs %s", package_name, self._names.request_name(dep))
            worklist.extend(more)

        return processed
