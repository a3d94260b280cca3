"""PKGBUILD template and renderer.

The template is plain text with ``{{NAME}}`` placeholders; repeated
sections (attribution lines, license installs) are assembled in Python
before substitution.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from gem2arch import _GENERATOR_ID, _GENERATOR_URL

PKGBUILD_TEMPLATE: str = """# Generated by {{GENERATOR}} ({{GENERATOR_URL}})
{{ATTRIBUTION}}
_gemname={{GEM_NAME}}
pkgname={{PREFIX}}$_gemname{{VERSION_SUFFIX}}
pkgver={{VERSION}}
pkgrel={{RELEASE}}
pkgdesc='{{DESCRIPTION}}'
arch=({{ARCH}})
url='{{WEBSITE}}'
license=({{LICENSE}})
depends=({{DEPENDS}})
options=(!emptydirs)
source=(https://rubygems.org/downloads/{{GEM_FILE}}.gem)
noextract=({{GEM_FILE}}.gem)
sha256sums=('{{CHECKSUM}}')

package() {
  local _gemdir="$(ruby -e'puts Gem.default_dir')"
  gem install --ignore-dependencies --no-user-install -i "$pkgdir/$_gemdir" -n "$pkgdir/usr/bin" {{GEM_FILE}}.gem
  rm "$pkgdir/$_gemdir/cache/{{GEM_FILE}}.gem"
{{LICENSE_INSTALL}}{{REMOVE_BINARIES}}}
"""

_LICENSE_INSTALL_LINE = (
    '  install -D -m644 "$pkgdir/$_gemdir/gems/{gem_dir}/{file}" '
    '"$pkgdir/usr/share/licenses/$pkgname/{file}"\n'
)

_REMOVE_BINARIES = (
    "  # non-HEAD version should not install any files in /usr/bin\n"
    '  rm -r "$pkgdir/usr/bin/"\n'
)


def shell_escape(text: str) -> str:
    """Escape *text* for use inside single quotes in a shell script."""
    return text.replace("'", "'\\''")


def quote_license(name: str) -> str:
    return f"'{name}'" if " " in name else name


@dataclass
class PkgbuildParams:
    """Values substituted into ``PKGBUILD_TEMPLATE``.

    ``platform`` names the platform of the ``.gem`` artifact; None for
    pure-ruby gems.
    """

    gem_name: str
    version: str
    release: int
    prefix: str = "ruby-"
    suffix: str | None = None
    description: str = ""
    website: str = ""
    arch: str = "any"
    licenses: list[str] = field(default_factory=list)
    depends: list[str] = field(default_factory=list)
    checksum: str = ""
    license_files: list[str] = field(default_factory=list)
    maintainers: list[str] = field(default_factory=list)
    contributors: list[str] = field(default_factory=list)
    remove_binaries: bool = False
    platform: str | None = None


def render_pkgbuild(params: PkgbuildParams) -> str:
    """Render a complete PKGBUILD."""
    attribution = "".join(f"# Maintainer: {m}\n" for m in params.maintainers)
    attribution += "".join(f"# Contributor: {c}\n" for c in params.contributors)
    # Platform-specific gems are published as <name>-<version>-<platform>.gem.
    gem_file = "$_gemname-$pkgver" + (f"-{params.platform}" if params.platform else "")

    values = {
        "GENERATOR": _GENERATOR_ID,
        "GENERATOR_URL": _GENERATOR_URL,
        "ATTRIBUTION": attribution,
        "GEM_NAME": params.gem_name,
        "PREFIX": params.prefix,
        "VERSION_SUFFIX": f"-{params.suffix}" if params.suffix else "",
        "VERSION": params.version,
        "RELEASE": str(params.release),
        "DESCRIPTION": shell_escape(" ".join(params.description.split())),
        "ARCH": params.arch,
        "WEBSITE": params.website,
        "LICENSE": " ".join(quote_license(lic) for lic in params.licenses),
        "DEPENDS": " ".join(params.depends),
        "CHECKSUM": params.checksum,
        "GEM_FILE": gem_file,
        "LICENSE_INSTALL": "".join(
            _LICENSE_INSTALL_LINE.format(gem_dir=gem_file, file=f) for f in params.license_files
        ),
        "REMOVE_BINARIES": _REMOVE_BINARIES if params.remove_binaries else "",
    }

    content = PKGBUILD_TEMPLATE
    for key, value in values.items():
        content = content.replace("{{" + key + "}}", value)
    return content
