"""Gem versions, requirements, and dependency edges.

This module provides the value types every other part of gem2arch works
with. Ordering and requirement semantics follow RubyGems:

- A version is a dot separated sequence of numeric and alphabetic
  segments (``1.2.3``, ``2.0.0.rc1``). Any alphabetic segment makes the
  version a prerelease.
- Trailing zero segments do not affect ordering (``1.0 == 1.0.0``).
- An alphabetic segment sorts below a numeric one, so ``1.0.a < 1.0``.
- Requirements are conjunctions of ``op version`` atoms with the
  operators ``=``, ``!=``, ``>``, ``<``, ``>=``, ``<=`` and the pessimistic
  ``~>``.

References
----------
.. [RG] RubyGems Guides. "Patterns: Semantic Versioning."
   https://guides.rubygems.org/patterns/#pessimistic-version-constraint
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass
from typing import Union

from gem2arch.exceptions import VersionError

# ---------------------------------------------------------------------------
# GemVersion
# ---------------------------------------------------------------------------

_VERSION_PATTERN = r"[0-9]+(?:\.[0-9a-zA-Z]+)*(?:-[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?"
_VERSION_RE = re.compile(rf"^\s*(?P<ver>{_VERSION_PATTERN})\s*$")
_SEGMENT_RE = re.compile(r"[0-9]+|[a-z]+", re.IGNORECASE)

Segment = Union[int, str]


def _strip_trailing_zeros(segments: list[Segment]) -> list[Segment]:
    while segments and segments[-1] == 0:
        segments.pop()
    return segments


@functools.total_ordering
class GemVersion:
    """A RubyGems version value.

    Instances are immutable and hashable. Two versions that differ only in
    trailing zeros compare and hash equal, while ``str()`` keeps the text
    as published.

    Raises:
        VersionError: If *version* is not a valid gem version.
    """

    __slots__ = ("_text", "_segments", "_canonical")

    def __init__(self, version: str | int | GemVersion) -> None:
        if isinstance(version, GemVersion):
            version = version._text
        m = _VERSION_RE.match(str(version))
        if not m:
            raise VersionError(f"Malformed version number string {version!r}")
        # RubyGems treats "1.0-beta" as "1.0.pre.beta".
        text = m.group("ver").replace("-", ".pre.")
        self._text = m.group("ver")
        self._segments: tuple[Segment, ...] = tuple(
            int(s) if s.isdigit() else s for s in _SEGMENT_RE.findall(text)
        )
        self._canonical = self._canonical_segments()

    def _canonical_segments(self) -> tuple[Segment, ...]:
        release: list[Segment] = []
        pre: list[Segment] = []
        for seg in self._segments:
            if pre or isinstance(seg, str):
                pre.append(seg)
            else:
                release.append(seg)
        return tuple(_strip_trailing_zeros(release) + _strip_trailing_zeros(pre))

    @property
    def segments(self) -> tuple[Segment, ...]:
        """Numeric and alphabetic segments in published order."""
        return self._segments

    @property
    def prerelease(self) -> bool:
        """True if any segment is alphabetic (``1.0.rc1``, ``2.0.0.beta``)."""
        return any(isinstance(s, str) for s in self._segments)

    def release(self) -> GemVersion:
        """Return the version with prerelease segments removed."""
        if not self.prerelease:
            return self
        segs: list[Segment] = []
        for seg in self._segments:
            if isinstance(seg, str):
                break
            segs.append(seg)
        return GemVersion(".".join(str(s) for s in segs) or "0")

    def bump(self) -> GemVersion:
        """Return the upper bound used by ``~>``.

        Alphabetic segments are dropped, then the last segment is dropped
        when more than one remains, and the new last segment is incremented:
        ``1.2.3 -> 1.3``, ``1.2 -> 2``, ``1 -> 2``.
        """
        segs = list(self._segments)
        while any(isinstance(s, str) for s in segs):
            segs.pop()
        if len(segs) > 1:
            segs.pop()
        segs[-1] = int(segs[-1]) + 1
        return GemVersion(".".join(str(s) for s in segs))

    def _compare(self, other: GemVersion) -> int:
        lhs, rhs = self._canonical, other._canonical
        if lhs == rhs:
            return 0
        for i in range(max(len(lhs), len(rhs))):
            a = lhs[i] if i < len(lhs) else 0
            b = rhs[i] if i < len(rhs) else 0
            if a == b:
                continue
            if isinstance(a, str) and isinstance(b, int):
                return -1
            if isinstance(a, int) and isinstance(b, str):
                return 1
            return -1 if a < b else 1  # type: ignore[operator]
        return 0

    def __eq__(self, other: object) -> bool:
        if isinstance(other, str):
            try:
                other = GemVersion(other)
            except VersionError:
                return False
        if not isinstance(other, GemVersion):
            return NotImplemented
        return self._compare(other) == 0

    def __lt__(self, other: object) -> bool:
        if isinstance(other, str):
            other = GemVersion(other)
        if not isinstance(other, GemVersion):
            return NotImplemented
        return self._compare(other) < 0

    def __hash__(self) -> int:
        return hash(self._canonical)

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"GemVersion({self._text!r})"


# ---------------------------------------------------------------------------
# Requirement
# ---------------------------------------------------------------------------

_REQUIREMENT_ATOM_RE = re.compile(
    rf"^\s*(?P<op>!=|>=|<=|~>|=|>|<)?\s*(?P<ver>{_VERSION_PATTERN})\s*$"
)

_ZERO = GemVersion("0")


def _pessimistic(version: GemVersion, target: GemVersion) -> bool:
    return version >= target and version.release() < target.bump()


_OPERATORS = {
    "=": lambda v, r: v == r,
    "!=": lambda v, r: v != r,
    ">": lambda v, r: v > r,
    "<": lambda v, r: v < r,
    ">=": lambda v, r: v >= r,
    "<=": lambda v, r: v <= r,
    "~>": _pessimistic,
}


@dataclass(frozen=True)
class Requirement:
    """A conjunction of version atoms, e.g. ``~> 1.2, >= 1.2.3``.

    The empty requirement is normalised to ``>= 0``, which RubyGems uses
    to mean "any version, prefer the latest".

    Attributes:
        atoms: ``(operator, version)`` pairs, all of which must hold.
    """

    atoms: tuple[tuple[str, GemVersion], ...] = ((">=", _ZERO),)

    @classmethod
    def default(cls) -> Requirement:
        return cls()

    @classmethod
    def parse(cls, text: str) -> Requirement:
        """Parse ``"~> 1.2, >= 1.2.3"``.

        Atoms may be separated by ``,`` or by ``&`` (the compact index form).
        A bare version means ``=``.

        Raises:
            VersionError: If an atom is malformed.
        """
        parts = [p for p in re.split(r"[,&]", text) if p.strip()]
        return cls.create(parts)

    @classmethod
    def create(cls, atoms: list[str] | tuple[str, ...]) -> Requirement:
        parsed: list[tuple[str, GemVersion]] = []
        for atom in atoms:
            m = _REQUIREMENT_ATOM_RE.match(atom)
            if not m:
                raise VersionError(f"Illformed requirement {atom!r}")
            pair = (m.group("op") or "=", GemVersion(m.group("ver")))
            if pair not in parsed:
                parsed.append(pair)
        if not parsed:
            return cls()
        return cls(tuple(parsed))

    @property
    def is_latest(self) -> bool:
        """True for the unrestricted requirement ``>= 0``."""
        return self.atoms == ((">=", _ZERO),)

    def satisfied_by(self, version: GemVersion | str) -> bool:
        """Check whether *version* satisfies every atom.

        Raises:
            VersionError: If *version* is a string that does not parse.
        """
        if not isinstance(version, GemVersion):
            version = GemVersion(version)
        return all(_OPERATORS[op](version, target) for op, target in self.atoms)

    def __str__(self) -> str:
        return ", ".join(f"{op} {ver}" for op, ver in self.atoms)


# ---------------------------------------------------------------------------
# Dependency: an edge from one gem to another
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Dependency:
    """A runtime dependency of a gem release on another gem.

    Attributes:
        name: Name of the required gem.
        requirement: Versions of that gem that satisfy the dependency.
    """

    name: str
    requirement: Requirement = Requirement()

    @property
    def latest_version(self) -> bool:
        """True when any version will do, so no versioned package is needed."""
        return self.requirement.is_latest

    def __str__(self) -> str:
        return f"{self.name} ({self.requirement})"
