"""Mapping between gem names and Arch package names.

A gem ``rack`` is packaged as ``ruby-rack``. When a dependent gem needs an
older release line, the package carries a version suffix: ``ruby-rack-2.2``
holds the newest ``2.2.x`` release.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from gem2arch.exceptions import RequestError

DEFAULT_PREFIX = "ruby"
SEPARATOR = "-"
SLOT_SEPARATOR = "~"

# A slot is made only of numbers and dots, e.g. "2" or "2.2".
SLOT_RE = re.compile(r"^\d+(\.\d+)*$")


class PackageRequest(NamedTuple):
    """A request to generate the package of *name*, optionally pinned to *slot*."""

    name: str
    slot: str | None = None

    def __str__(self) -> str:
        return self.name + (SLOT_SEPARATOR + self.slot if self.slot else "")


class NameMapper:
    """Pure mapping ``(gem, suffix) -> <prefix>-<gem>[-<suffix>]``."""

    def __init__(self, prefix: str = DEFAULT_PREFIX) -> None:
        self.prefix = prefix

    @property
    def package_prefix(self) -> str:
        """Prefix shared by every generated package name, e.g. ``ruby-``."""
        return self.prefix + SEPARATOR

    def to_package_name(self, base_name: str, suffix: str | None = None) -> str:
        name = self.package_prefix + base_name
        if suffix:
            name += SEPARATOR + suffix
        return name

    def is_ecosystem_name(self, package_name: str) -> bool:
        """True for names produced by this mapper (``ruby-*``)."""
        return package_name.startswith(self.package_prefix)

    def request_name(self, request: PackageRequest) -> str:
        return self.to_package_name(request.name, request.slot)


def parse_request(text: str) -> PackageRequest:
    """Parse a command line request such as ``rack`` or ``rack~2.2``.

    Raises:
        RequestError: On an empty name, more than one ``~``, or a slot that
            is not made of numbers and dots.
    """
    parts = text.split(SLOT_SEPARATOR)
    if len(parts) > 2 or not parts[0]:
        raise RequestError(f"Invalid package name {text}")
    if len(parts) == 1:
        return PackageRequest(parts[0])
    if not SLOT_RE.match(parts[1]):
        raise RequestError(f"Invalid package number {text}")
    return PackageRequest(parts[0], parts[1])
