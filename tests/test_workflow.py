"""Tests for PackageWorkflow in bump and create mode.

Every collaborator is an in-memory fake: no network, no subprocesses.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from pathlib import Path

import pytest

from gem2arch.core.index import VersionIndex
from gem2arch.core.naming import PackageRequest
from gem2arch.core.notices import NoticeKind, NoticeLog
from gem2arch.core.sync import DescriptorSync
from gem2arch.core.versions import Dependency, GemVersion, Requirement
from gem2arch.exceptions import RegistryError
from gem2arch.registry.arch import Origin
from gem2arch.registry.gemfile import GemSpec
from gem2arch.registry.rubygems import GemRelease
from gem2arch.registry.status import RemoteStatusChecker, RunCache
from gem2arch.workflow import STASH_MESSAGE, PackageWorkflow, WorkflowOptions, find_license_files
from tests.fakes import (
    FakeBuilder,
    FakeGems,
    FakeRefresher,
    FakeRepository,
    FakeUploader,
    FakeVcs,
    release,
)
from tests.helpers import make_pkgbuild, write_pkgbuild

PAYLOAD = b"gem artifact"
PAYLOAD_SHA = hashlib.sha256(PAYLOAD).hexdigest()


def _dep(name: str, requirement: str = ">= 0") -> Dependency:
    return Dependency(name, Requirement.parse(requirement))


INDEX = VersionIndex({
    "sinatra": [GemVersion(v) for v in ("3.0.0", "4.0.0")],
    "rack": [GemVersion(v) for v in ("1.6.13", "2.2.8", "3.0.9")],
    "mustermann": [GemVersion("3.0.0")],
    "sorbet-static": [GemVersion("0.5.11")],
})

RELEASES = {
    "sinatra": [
        release("sinatra", "3.0.0", _dep("rack", "~> 2.2"), checksum=PAYLOAD_SHA),
        release(
            "sinatra", "4.0.0",
            _dep("rack", "~> 3.0"), _dep("rake"), _dep("mustermann", "~> 3.0"),
            checksum=PAYLOAD_SHA,
        ),
    ],
    "mustermann": [release("mustermann", "3.0.0", checksum=PAYLOAD_SHA)],
    "sorbet-static": [
        GemRelease(
            "sorbet-static", GemVersion("0.5.11"), platform="x86_64-linux", checksum=PAYLOAD_SHA
        ),
    ],
    "rack": [
        release("rack", "2.2.8", checksum=PAYLOAD_SHA),
        release("rack", "3.0.9", checksum=PAYLOAD_SHA),
    ],
}

SPECS = {
    "sinatra-4.0.0.gem": GemSpec(
        name="sinatra",
        version="4.0.0",
        summary="Classy web-development dressed in a DSL",
        homepage="https://sinatrarb.com/",
        licenses=["MIT"],
        files=["LICENSE", "README.md", "lib/sinatra.rb", "lib/LICENSE"],
        runtime_dependencies=[_dep("rack", "~> 3.0"), _dep("rake"), _dep("mustermann", "~> 3.0")],
    ),
    "mustermann-3.0.0.gem": GemSpec(name="mustermann", version="3.0.0", licenses=["MIT"]),
    "sorbet-static-0.5.11-x86_64-linux.gem": GemSpec(
        name="sorbet-static", version="0.5.11", licenses=["Apache-2.0"], files=["LICENSE"]
    ),
    "rack-2.2.8.gem": GemSpec(
        name="rack", version="2.2.8", licenses=["MIT"], executables=["rackup"]
    ),
    "rack-3.0.9.gem": GemSpec(
        name="rack", version="3.0.9", licenses=["MIT"], extensions=["ext/extconf.rb"]
    ),
}


@dataclass
class Harness:
    workflow: PackageWorkflow
    notices: NoticeLog
    gems: FakeGems
    primary: FakeRepository
    secondary: FakeRepository
    refresher: FakeRefresher
    builder: FakeBuilder
    uploader: FakeUploader
    vcs: FakeVcs


def _harness(
    workdir: Path,
    *,
    primary: dict[str, str] | None = None,
    secondary: dict[str, str] | None = None,
    options: WorkflowOptions | None = None,
    payload: bytes = PAYLOAD,
    build_ok: bool = True,
    upload_ok: bool = True,
) -> Harness:
    notices = NoticeLog()
    gems = FakeGems(RELEASES, payload=payload)
    repo = FakeRepository(primary or {}, Origin.PRIMARY)
    aur = FakeRepository(secondary or {}, Origin.SECONDARY)
    refresher = FakeRefresher()
    builder = FakeBuilder(build_ok)
    uploader = FakeUploader(upload_ok)
    vcs = FakeVcs()
    workflow = PackageWorkflow(
        workdir,
        index=INDEX,
        gems=gems,  # type: ignore[arg-type]
        checker=RemoteStatusChecker(INDEX, [repo, aur], RunCache(), notices),
        sync=DescriptorSync(refresher),
        builder=builder,
        uploader=uploader,
        vcs=vcs,
        notices=notices,
        options=options,
        read_spec=lambda path: SPECS[path.name],
    )
    return Harness(workflow, notices, gems, repo, aur, refresher, builder, uploader, vcs)


# ---------------------------------------------------------------------------
# Tests: bump mode
# ---------------------------------------------------------------------------


class TestBump:
    """Tests for re-synchronising existing PKGBUILDs."""

    def test_version_bump(self, tmp_path: Path) -> None:
        path = write_pkgbuild(
            tmp_path, "ruby-sinatra",
            make_pkgbuild(gem_name="sinatra", version="3.0.0", release=2, depends="ruby ruby-rack-2"),
        )
        h = _harness(tmp_path, primary={"ruby-rack": "3.0.9", "ruby-mustermann": "3.0.0"})

        changed = h.workflow.run([])

        assert changed == ["ruby-sinatra"]
        text = path.read_text()
        assert "pkgver=4.0.0" in text
        assert "pkgrel=1" in text
        assert "depends=(ruby ruby-rack ruby-mustermann)" in text
        assert h.refresher.calls == [path.parent]
        assert h.vcs.stashes == [STASH_MESSAGE]
        assert h.vcs.commits == [([path], "ruby-sinatra: bump")]
        assert h.builder.calls == [(path.parent, True)]
        assert h.uploader.calls == []
        assert len(h.notices) == 0

    def test_unchanged_package_not_published(self, tmp_path: Path) -> None:
        write_pkgbuild(
            tmp_path, "ruby-sinatra",
            make_pkgbuild(
                gem_name="sinatra", version="4.0.0", release=2,
                depends="ruby ruby-rack ruby-mustermann",
            ),
        )
        h = _harness(tmp_path, primary={"ruby-rack": "3.0.9", "ruby-mustermann": "3.0.0"})

        assert h.workflow.bump_packages() == []
        assert h.vcs.commits == []
        assert h.builder.calls == []

    def test_missing_dependency_skips_package(self, tmp_path: Path) -> None:
        path = write_pkgbuild(
            tmp_path, "ruby-sinatra",
            make_pkgbuild(gem_name="sinatra", version="3.0.0", release=2, depends="ruby"),
        )
        before = path.read_text()
        h = _harness(tmp_path, primary={"ruby-rack": "3.0.9"})

        assert h.workflow.bump_packages() == []
        assert path.read_text() == before
        [unsatisfied] = h.notices.of_kind(NoticeKind.UNSATISFIED)
        assert unsatisfied.message == (
            "ruby-sinatra=>ruby-mustermann does not satisfy gem dependency restrictions"
        )
        assert len(h.notices.of_kind(NoticeKind.MISSING)) == 1

    def test_unsatisfying_remote_is_reported(self, tmp_path: Path) -> None:
        """An old ruby-rack is flagged but the PKGBUILD is still bumped."""
        write_pkgbuild(
            tmp_path, "ruby-sinatra",
            make_pkgbuild(gem_name="sinatra", version="3.0.0", release=2, depends="ruby"),
        )
        h = _harness(
            tmp_path,
            primary={"ruby-mustermann": "3.0.0"},
            secondary={"ruby-rack": "2.2.8"},
        )

        assert h.workflow.bump_packages() == ["ruby-sinatra"]
        [unsatisfied] = h.notices.of_kind(NoticeKind.UNSATISFIED)
        assert unsatisfied.url == "https://example.org/aur/ruby-rack"
        assert len(h.notices.of_kind(NoticeKind.OUT_OF_DATE)) == 1

    def test_no_releases(self, tmp_path: Path) -> None:
        write_pkgbuild(tmp_path, "ruby-gone", make_pkgbuild(gem_name="gone", depends="ruby"))
        h = _harness(tmp_path)

        assert h.workflow.bump_packages() == []
        [notice] = h.notices.of_kind(NoticeKind.NO_RELEASES)
        assert notice.package == "ruby-gone"

    def test_slot_follows_release_line(self, tmp_path: Path) -> None:
        path = write_pkgbuild(
            tmp_path, "ruby-rack-2",
            make_pkgbuild(gem_name="rack", version="2.2.7", release=1, depends="ruby", slot="2"),
        )
        h = _harness(tmp_path)

        assert h.workflow.bump_packages() == ["ruby-rack-2"]
        assert "pkgver=2.2.8" in path.read_text()
        assert h.vcs.commits == [([path], "ruby-rack-2: bump")]

    def test_conflict_gems_ignored(self, tmp_path: Path) -> None:
        """rake ships with ruby and never becomes a dependency."""
        path = write_pkgbuild(
            tmp_path, "ruby-sinatra",
            make_pkgbuild(gem_name="sinatra", version="3.0.0", depends="ruby"),
        )
        h = _harness(tmp_path, primary={"ruby-rack": "3.0.9", "ruby-mustermann": "3.0.0"})
        h.workflow.bump_packages()
        assert "ruby-rake" not in path.read_text()
        assert "ruby-rake" not in h.primary.queries

    def test_build_failure_is_a_notice(self, tmp_path: Path) -> None:
        write_pkgbuild(
            tmp_path, "ruby-sinatra",
            make_pkgbuild(gem_name="sinatra", version="3.0.0", depends="ruby"),
        )
        h = _harness(
            tmp_path, primary={"ruby-rack": "3.0.9", "ruby-mustermann": "3.0.0"}, build_ok=False
        )
        assert h.workflow.bump_packages() == ["ruby-sinatra"]
        assert len(h.notices.of_kind(NoticeKind.BUILD_FAILED)) == 1

    def test_upload(self, tmp_path: Path) -> None:
        path = write_pkgbuild(
            tmp_path, "ruby-sinatra",
            make_pkgbuild(gem_name="sinatra", version="3.0.0", depends="ruby"),
        )
        h = _harness(
            tmp_path,
            primary={"ruby-rack": "3.0.9", "ruby-mustermann": "3.0.0"},
            options=WorkflowOptions(upload=True),
            upload_ok=False,
        )
        h.workflow.bump_packages()
        assert h.uploader.calls == [(path.parent, "ruby-sinatra-4.0.0-1")]
        [notice] = h.notices.of_kind(NoticeKind.UPLOAD_FAILED)
        assert notice.message == "Cannot upload changes for package ruby-sinatra"

    def test_no_git_no_install(self, tmp_path: Path) -> None:
        write_pkgbuild(
            tmp_path, "ruby-sinatra",
            make_pkgbuild(gem_name="sinatra", version="3.0.0", depends="ruby"),
        )
        h = _harness(
            tmp_path,
            primary={"ruby-rack": "3.0.9", "ruby-mustermann": "3.0.0"},
            options=WorkflowOptions(use_git=False, install=False),
        )
        assert h.workflow.run([]) == ["ruby-sinatra"]
        assert h.vcs.stashes == []
        assert h.vcs.commits == []
        assert h.builder.calls == []


# ---------------------------------------------------------------------------
# Tests: create mode
# ---------------------------------------------------------------------------


class TestCreate:
    """Tests for generating new PKGBUILDs."""

    def test_creates_package_and_missing_dependencies(self, tmp_path: Path) -> None:
        h = _harness(tmp_path, primary={"ruby-rack": "3.0.9"})

        processed = h.workflow.run([PackageRequest("sinatra")])

        assert processed == ["ruby-sinatra", "ruby-mustermann"]
        text = (tmp_path / "ruby-sinatra" / "PKGBUILD").read_text()
        assert "_gemname=sinatra\n" in text
        assert "pkgver=4.0.0\n" in text
        assert "pkgrel=1\n" in text
        assert "depends=(ruby ruby-rack ruby-mustermann)\n" in text
        assert f"sha256sums=('{PAYLOAD_SHA}')" in text
        assert "arch=(any)" in text
        assert "# Maintainer: Jane Doe <jane@example.org>" in text
        assert "usr/share/licenses/$pkgname/LICENSE" in text
        assert "lib/LICENSE" not in text
        assert (tmp_path / "ruby-mustermann" / "PKGBUILD").exists()
        assert [message for _, message in h.vcs.commits] == [
            "ruby-sinatra: add",
            "ruby-mustermann: add",
        ]

    def test_regenerate_keeps_release_and_attribution(self, tmp_path: Path) -> None:
        path = write_pkgbuild(
            tmp_path, "ruby-sinatra",
            make_pkgbuild(
                gem_name="sinatra", version="4.0.0", release=2,
                depends="ruby libffi ruby-rack ruby-mustermann",
            ),
        )
        h = _harness(tmp_path, primary={"ruby-rack": "3.0.9", "ruby-mustermann": "3.0.0"})

        assert h.workflow.run([PackageRequest("sinatra")]) == ["ruby-sinatra"]
        text = path.read_text()
        assert "pkgrel=2\n" in text
        assert "depends=(ruby libffi ruby-rack ruby-mustermann)\n" in text
        assert "# Maintainer: Jane Doe <jane@example.org>" in text
        assert "# Contributor: John Roe <john@example.org>" in text

    def test_slot_package(self, tmp_path: Path) -> None:
        h = _harness(tmp_path)
        h.workflow.run([PackageRequest("rack", "2")])
        text = (tmp_path / "ruby-rack-2" / "PKGBUILD").read_text()
        assert "pkgname=ruby-$_gemname-2\n" in text
        assert "pkgver=2.2.8\n" in text
        assert 'rm -r "$pkgdir/usr/bin/"' in text

    def test_native_extension_arch(self, tmp_path: Path) -> None:
        h = _harness(tmp_path)
        h.workflow.run([PackageRequest("rack")])
        text = (tmp_path / "ruby-rack" / "PKGBUILD").read_text()
        assert "arch=(x86_64)" in text
        assert "usr/bin/\"" not in text

    def test_platform_only_release(self, tmp_path: Path) -> None:
        """The PKGBUILD fetches the same platform .gem that was checksummed."""
        h = _harness(tmp_path)
        assert h.workflow.run([PackageRequest("sorbet-static")]) == ["ruby-sorbet-static"]

        directory = tmp_path / "ruby-sorbet-static"
        assert (directory / "sorbet-static-0.5.11-x86_64-linux.gem").exists()
        text = (directory / "PKGBUILD").read_text()
        gem_file = "$_gemname-$pkgver-x86_64-linux.gem"
        assert f"source=(https://rubygems.org/downloads/{gem_file})\n" in text
        assert f"noextract=({gem_file})\n" in text
        assert f"sha256sums=('{PAYLOAD_SHA}')" in text
        assert "$pkgver.gem" not in text

    def test_unknown_gem(self, tmp_path: Path) -> None:
        h = _harness(tmp_path)
        with pytest.raises(RegistryError, match="Could not find nope"):
            h.workflow.run([PackageRequest("nope")])

    def test_checksum_mismatch(self, tmp_path: Path) -> None:
        h = _harness(tmp_path, payload=b"tampered")
        with pytest.raises(RegistryError, match="Checksum mismatch"):
            h.workflow.run([PackageRequest("mustermann")])
        assert not (tmp_path / "ruby-mustermann" / "PKGBUILD").exists()

    def test_unsatisfying_dependency_reported(self, tmp_path: Path) -> None:
        h = _harness(tmp_path, primary={"ruby-rack": "2.2.8", "ruby-mustermann": "3.0.0"})
        assert h.workflow.run([PackageRequest("sinatra")]) == ["ruby-sinatra"]
        [notice] = h.notices.of_kind(NoticeKind.UNSATISFIED)
        assert notice.package == "ruby-rack"
        assert "does not satisfy gem dependency rack (~> 3.0)" in notice.message


def test_find_license_files() -> None:
    files = ["LICENSE.txt", "COPYING", "README.md", "lib/license.rb", "MIT-LICENSE"]
    assert find_license_files(files) == ["LICENSE.txt", "COPYING", "MIT-LICENSE"]
