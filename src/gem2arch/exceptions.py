"""gem2arch exception hierarchy.

All public exceptions inherit from Gem2ArchError. Anything raised from this
hierarchy is fatal for a run: the CLI reports it and exits non-zero.
Recoverable conditions are reported as notices instead
(see ``gem2arch.core.notices``).
"""


class Gem2ArchError(Exception):
    """Base exception for all gem2arch errors."""


class VersionError(Gem2ArchError, ValueError):
    """Raised when a gem version or requirement string cannot be parsed."""


class RequestError(Gem2ArchError):
    """Raised for a malformed package request such as ``rack~2.x``."""


class ResolutionError(Gem2ArchError):
    """Raised when a gem dependency cannot be mapped to an Arch package name."""


class UnresolvedDependencyError(ResolutionError):
    """Raised when no indexed version satisfies a dependency requirement."""


class NamingCollisionError(ResolutionError):
    """Raised when no version prefix separates the required version from the next one.

    The package naming scheme encodes a version range as a dotted prefix.
    When the matched version and its successor share every component the
    matched one has, no prefix can tell them apart.
    """


class RegistryError(Gem2ArchError):
    """Raised when rubygems.org or the AUR cannot be queried."""


class DescriptorError(Gem2ArchError):
    """Raised when an existing PKGBUILD lacks a field required for syncing."""


class ChecksumRefreshError(Gem2ArchError):
    """Raised when source checksums cannot be refreshed after a version bump.

    The downloaded artifact cannot be trusted without fresh checksums, so
    the run stops.
    """


class ConfigError(Gem2ArchError):
    """Raised for an unreadable configuration file or environment override."""
