"""gem2arch: Generate and maintain Arch Linux PKGBUILDs for Ruby gems."""

from __future__ import annotations

__version__ = "0.2.0"
__license__ = "MIT"

# Written into the header of every generated PKGBUILD.
_GENERATOR_ID = "gem2arch"
_GENERATOR_URL = "https://github.com/anatol/gem2arch"
