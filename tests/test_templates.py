"""Tests for PKGBUILD rendering.

A rendered PKGBUILD must load back into a Descriptor with the same
synchronised fields.
"""

from __future__ import annotations

from pathlib import Path

from gem2arch.core.descriptor import Descriptor
from gem2arch.templates import PkgbuildParams, quote_license, render_pkgbuild, shell_escape


def _params(**overrides) -> PkgbuildParams:
    values = dict(
        gem_name="rack",
        version="2.2.8",
        release=1,
        description="Rack's modular interface",
        website="https://github.com/rack/rack",
        licenses=["MIT"],
        depends=["ruby", "ruby-webrick"],
        checksum="abc123",
        maintainers=["Jane Doe <jane@example.org>"],
    )
    values.update(overrides)
    return PkgbuildParams(**values)


class TestRender:
    """Tests for render_pkgbuild()."""

    def test_no_placeholders_left(self) -> None:
        assert "{{" not in render_pkgbuild(_params())

    def test_fields(self) -> None:
        text = render_pkgbuild(_params())
        assert "_gemname=rack\n" in text
        assert "pkgname=ruby-$_gemname\n" in text
        assert "pkgver=2.2.8\n" in text
        assert "pkgrel=1\n" in text
        assert "depends=(ruby ruby-webrick)\n" in text
        assert "sha256sums=('abc123')" in text
        assert "arch=(any)" in text
        assert "# Maintainer: Jane Doe <jane@example.org>\n" in text

    def test_description_escaped(self) -> None:
        assert "pkgdesc='Rack'\\''s modular interface'" in render_pkgbuild(_params())

    def test_description_is_one_line(self) -> None:
        text = render_pkgbuild(_params(description="A modular\n  Ruby webserver\tinterface\n"))
        assert "pkgdesc='A modular Ruby webserver interface'\n" in text

    def test_pure_ruby_source(self) -> None:
        text = render_pkgbuild(_params())
        assert "source=(https://rubygems.org/downloads/$_gemname-$pkgver.gem)\n" in text
        assert "noextract=($_gemname-$pkgver.gem)\n" in text

    def test_platform_gem_file(self) -> None:
        text = render_pkgbuild(_params(platform="x86_64-linux", license_files=["LICENSE"]))
        gem_file = "$_gemname-$pkgver-x86_64-linux"
        assert f"source=(https://rubygems.org/downloads/{gem_file}.gem)\n" in text
        assert f"noextract=({gem_file}.gem)\n" in text
        assert f'-n "$pkgdir/usr/bin" {gem_file}.gem\n' in text
        assert f'rm "$pkgdir/$_gemdir/cache/{gem_file}.gem"\n' in text
        assert f"gems/{gem_file}/LICENSE" in text
        assert "$pkgver.gem" not in text

    def test_slot(self) -> None:
        text = render_pkgbuild(_params(suffix="2.2", remove_binaries=True))
        assert "pkgname=ruby-$_gemname-2.2\n" in text
        assert 'rm -r "$pkgdir/usr/bin/"' in text

    def test_no_binary_removal_by_default(self) -> None:
        assert "usr/bin/\"" not in render_pkgbuild(_params())

    def test_license_files(self) -> None:
        text = render_pkgbuild(_params(license_files=["MIT-LICENSE"]))
        assert "gems/$_gemname-$pkgver/MIT-LICENSE" in text
        assert "usr/share/licenses/$pkgname/MIT-LICENSE" in text

    def test_contributors(self) -> None:
        text = render_pkgbuild(_params(contributors=["John Roe <john@example.org>"]))
        assert "# Contributor: John Roe <john@example.org>\n" in text

    def test_loads_back(self, tmp_path: Path) -> None:
        path = tmp_path / "ruby-rack-2.2" / "PKGBUILD"
        path.parent.mkdir()
        path.write_text(render_pkgbuild(_params(suffix="2.2", licenses=["Ruby License", "MIT"])))
        desc = Descriptor.load(path)
        assert desc.gem_name == "rack"
        assert desc.version == "2.2.8"
        assert desc.release == 1
        assert desc.slot == "2.2"
        assert desc.dependencies == ["ruby"]
        assert desc.license == "Ruby"
        assert desc.maintainers == ["Jane Doe <jane@example.org>"]


def test_shell_escape() -> None:
    assert shell_escape("it's") == "it'\\''s"


def test_quote_license() -> None:
    assert quote_license("MIT") == "MIT"
    assert quote_license("Ruby License") == "'Ruby License'"
