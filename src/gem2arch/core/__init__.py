"""Version resolution and descriptor synchronisation.

All public names are re-exported here, so ``from gem2arch.core import X``
works for every building block:

- ``GemVersion``, ``Requirement``, ``Dependency``: RubyGems value types
- ``VersionIndex``: released versions per gem
- ``ConstraintResolver``: requirement -> minimal version suffix
- ``NameMapper``: gem name and suffix -> Arch package name
- ``Descriptor``, ``DescriptorSync``: PKGBUILD reading and release rules
- ``DependencyGraphWalker``: worklist over requested packages
"""

from gem2arch.core.descriptor import Descriptor
from gem2arch.core.index import VersionIndex
from gem2arch.core.naming import NameMapper, PackageRequest, parse_request
from gem2arch.core.notices import Notice, NoticeKind, NoticeLog
from gem2arch.core.resolver import ConstraintResolver, suffix_requirement
from gem2arch.core.sync import DescriptorSync, ReleaseChange, next_release
from gem2arch.core.versions import Dependency, GemVersion, Requirement
from gem2arch.core.walker import DependencyGraphWalker

__all__ = [
    "ConstraintResolver",
    "Dependency",
    "DependencyGraphWalker",
    "Descriptor",
    "DescriptorSync",
    "GemVersion",
    "NameMapper",
    "Notice",
    "NoticeKind",
    "NoticeLog",
    "PackageRequest",
    "ReleaseChange",
    "Requirement",
    "VersionIndex",
    "next_release",
    "parse_request",
    "suffix_requirement",
]
