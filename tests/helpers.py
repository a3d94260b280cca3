"""Shared test helpers for writing PKGBUILD fixtures."""

from __future__ import annotations

from pathlib import Path

SAMPLE_PKGBUILD = """\
# Generated by gem2arch (https://github.com/anatol/gem2arch)
# Maintainer: Jane Doe <jane@example.org>
# Contributor: John Roe <john@example.org>

_gemname=rack
pkgname=ruby-$_gemname
pkgver=1.0
pkgrel=3
pkgdesc='A modular Ruby webserver interface'
arch=(any)
url='https://github.com/rack/rack'
license=(MIT)
depends=(ruby ruby-a)
options=(!emptydirs)
source=(https://rubygems.org/downloads/$_gemname-$pkgver.gem)
noextract=($_gemname-$pkgver.gem)
sha256sums=('0000000000000000000000000000000000000000000000000000000000000000')

package() {
  local _gemdir="$(ruby -e'puts Gem.default_dir')"
  gem install --ignore-dependencies --no-user-install -i "$pkgdir/$_gemdir" -n "$pkgdir/usr/bin" $_gemname-$pkgver.gem
  rm "$pkgdir/$_gemdir/cache/$_gemname-$pkgver.gem"
}
"""


def make_pkgbuild(
    gem_name: str = "rack",
    version: str = "1.0",
    release: int = 3,
    depends: str = "ruby ruby-a",
    slot: str | None = None,
) -> str:
    """Return SAMPLE_PKGBUILD with the synchronised fields replaced."""
    pkgname = "ruby-$_gemname" + (f"-{slot}" if slot else "")
    return (
        SAMPLE_PKGBUILD
        .replace("_gemname=rack", f"_gemname={gem_name}")
        .replace("pkgname=ruby-$_gemname", f"pkgname={pkgname}")
        .replace("pkgver=1.0", f"pkgver={version}")
        .replace("pkgrel=3", f"pkgrel={release}")
        .replace("depends=(ruby ruby-a)", f"depends=({depends})")
    )


def write_pkgbuild(workdir: Path, package: str, content: str) -> Path:
    """Write *content* to ``workdir/package/PKGBUILD`` and return the path."""
    directory = workdir / package
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "PKGBUILD"
    path.write_text(content)
    return path
