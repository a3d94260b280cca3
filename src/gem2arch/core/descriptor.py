"""PKGBUILD descriptors as stored on disk.

A generated package lives in ``<pkgname>/PKGBUILD``. Only a handful of
fields matter for synchronisation and are read back here:

- ``_gemname=`` the gem the package is built from
- ``pkgname=ruby-$_gemname-<slot>`` the optional version slot
- ``pkgver=`` / ``pkgrel=`` version and release counter
- ``depends=(...)`` dependencies; native ones (not ``ruby-``) are kept
- ``# Maintainer:`` / ``# Contributor:`` attribution lines
- ``license=(...)`` used when upstream does not declare one

A descriptor that does not exist yet is synthesized empty and written
once the package has been generated.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from gem2arch.core.naming import NameMapper
from gem2arch.exceptions import DescriptorError

logger = logging.getLogger(__name__)

DESCRIPTOR_FILENAME = "PKGBUILD"

GEMNAME_RE = re.compile(r"^_gemname=(\S+)", re.MULTILINE)
PKGVER_RE = re.compile(r"^pkgver=(\S+)", re.MULTILINE)
PKGREL_RE = re.compile(r"^pkgrel=(\d+)", re.MULTILINE)
DEPENDS_RE = re.compile(r"^depends=\((.*)\)", re.MULTILINE)
LICENSE_RE = re.compile(r"^license\s*=(.*)", re.MULTILINE)
_LICENSE_TOKEN_RE = re.compile(r"[a-zA-Z\d\-\.]+")


def read_tags(content: str, tag: str) -> list[str]:
    """Return the values of ``# <tag>: value`` comment lines, blanks dropped."""
    pattern = re.compile(rf"^\s*#\s*{re.escape(tag)}\s*:(.*)$", re.MULTILINE)
    return [m.strip() for m in pattern.findall(content) if m.strip()]


def _required(pattern: re.Pattern[str], content: str, path: Path) -> str:
    m = pattern.search(content)
    if m is None:
        raise DescriptorError(f"{path}: missing {pattern.pattern.lstrip('^')!r}")
    return m.group(1)


@dataclass
class Descriptor:
    """An Arch package descriptor, loaded from disk or synthesized empty.

    Attributes:
        path: Location of the PKGBUILD.
        gem_name: Gem the package is built from.
        version: Package version (``pkgver``).
        release: Release counter (``pkgrel``); 0 until first generated.
        dependencies: Native dependencies read from disk. Resolved ``ruby-``
            names are appended by the caller before synchronising, and
            after a sync the field holds the full written list.
        maintainers: ``# Maintainer:`` lines.
        contributors: ``# Contributor:`` lines.
        license: First license token, used when the gem declares none.
        slot: Version slot encoded in ``pkgname``, if any.
        content: Raw file content, None while the file does not exist.
    """

    path: Path
    gem_name: str | None = None
    version: str | None = None
    release: int = 0
    dependencies: list[str] = field(default_factory=list)
    maintainers: list[str] = field(default_factory=list)
    contributors: list[str] = field(default_factory=list)
    license: str | None = None
    slot: str | None = None
    content: str | None = None

    @classmethod
    def load(cls, path: Path, names: NameMapper | None = None) -> Descriptor:
        """Read *path*, or return an empty descriptor if it does not exist.

        Raises:
            DescriptorError: If the file exists but lacks ``_gemname``,
                ``pkgver``, ``pkgrel`` or ``depends``.
        """
        names = names or NameMapper()
        if not path.exists():
            return cls(path=path)

        content = path.read_text(encoding="utf-8")
        gem_name = _required(GEMNAME_RE, content, path)
        version = _required(PKGVER_RE, content, path)
        release = int(_required(PKGREL_RE, content, path))
        depends = _required(DEPENDS_RE, content, path).split()

        slot_re = re.compile(
            rf"^pkgname={re.escape(names.package_prefix)}\$_gemname-([\d\.]+)",
            re.MULTILINE,
        )
        slot_match = slot_re.search(content)

        license_token = None
        license_match = LICENSE_RE.search(content)
        if license_match:
            tokens = _LICENSE_TOKEN_RE.findall(license_match.group(1))
            license_token = tokens[0] if tokens else None

        return cls(
            path=path,
            gem_name=gem_name,
            version=version,
            release=release,
            dependencies=[d for d in depends if not names.is_ecosystem_name(d)],
            maintainers=read_tags(content, "Maintainer"),
            contributors=read_tags(content, "Contributor"),
            license=license_token,
            slot=slot_match.group(1) if slot_match else None,
            content=content,
        )

    @property
    def exists(self) -> bool:
        return self.content is not None

    @property
    def directory(self) -> Path:
        return self.path.parent

    def stored_version(self) -> str | None:
        """``pkgver`` as currently written, None for a new descriptor."""
        if self.content is None:
            return None
        m = PKGVER_RE.search(self.content)
        return m.group(1) if m else None

    def stored_dependencies(self) -> list[str]:
        """``depends`` as currently written, in file order."""
        if self.content is None:
            return []
        m = DEPENDS_RE.search(self.content)
        return m.group(1).split() if m else []

    def package_name(self, names: NameMapper | None = None) -> str:
        names = names or NameMapper()
        if self.gem_name is None:
            return self.directory.name
        return names.to_package_name(self.gem_name, self.slot)

    def save(self) -> None:
        if self.content is None:
            raise DescriptorError(f"{self.path}: nothing to write")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(self.content, encoding="utf-8")
        logger.debug("Wrote %s", self.path)
