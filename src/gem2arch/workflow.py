"""Run modes: bump existing PKGBUILDs, or create requested ones.

**Bump** walks every ``ruby-*/PKGBUILD`` in the work directory and brings
version, release and dependencies up to date with rubygems.org.

**Create** generates the PKGBUILD of each requested gem from its ``.gem``
artifact and keeps going with any dependency that has no package in the
official repositories or the AUR yet.

Changed packages are committed, built and optionally uploaded through the
tool interfaces in ``gem2arch.tools``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from gem2arch.config import Config
from gem2arch.core.descriptor import DESCRIPTOR_FILENAME, Descriptor
from gem2arch.core.index import VersionIndex
from gem2arch.core.naming import NameMapper, PackageRequest
from gem2arch.core.notices import NoticeKind, NoticeLog
from gem2arch.core.resolver import ConstraintResolver, suffix_requirement
from gem2arch.core.sync import DescriptorSync, next_release
from gem2arch.core.versions import Dependency
from gem2arch.core.walker import DependencyGraphWalker
from gem2arch.exceptions import RegistryError, VersionError
from gem2arch.registry.arch import AurRepository, PacmanRepository, RemotePackage
from gem2arch.registry.gemfile import GemSpec, read_gem, sha256_file
from gem2arch.registry.rubygems import RubyGemsClient
from gem2arch.registry.status import RemoteStatusChecker, RunCache
from gem2arch.templates import PkgbuildParams, render_pkgbuild
from gem2arch.tools.base import PackageBuilder, PackageUploader, RevisionControl
from gem2arch.tools.shell import (
    GitRevisionControl,
    MakepkgBuilder,
    SourcePackageUploader,
    UpdpkgsumsRefresher,
)

logger = logging.getLogger(__name__)

STASH_MESSAGE = "Save before running gem2arch"

# Arch dependency every generated package has.
RUBY_DEPENDENCY = "ruby"

_LICENSE_FILE_MARKERS = ("license", "copying", "copyright")


@dataclass(frozen=True)
class WorkflowOptions:
    """What to do with a changed package.

    Attributes:
        use_git: Stash before the run and commit each changed PKGBUILD.
        install: Build and install each changed package.
        upload: Upload each changed package to the AUR.
    """

    use_git: bool = True
    install: bool = True
    upload: bool = False


def find_license_files(files: Iterable[str]) -> list[str]:
    """Return top-level files that look like license texts."""
    found = []
    for name in files:
        if "/" in name:
            continue
        lowered = name.lower()
        if any(marker in lowered for marker in _LICENSE_FILE_MARKERS):
            found.append(name)
    return found


class PackageWorkflow:
    """Bumps and creates packages in *workdir*.

    All network and program access goes through the injected collaborators,
    see ``PackageWorkflow.from_config`` for the production wiring.
    """

    def __init__(
        self,
        workdir: Path,
        *,
        index: VersionIndex,
        gems: RubyGemsClient,
        checker: RemoteStatusChecker,
        sync: DescriptorSync,
        builder: PackageBuilder,
        uploader: PackageUploader,
        vcs: RevisionControl | None,
        notices: NoticeLog,
        names: NameMapper | None = None,
        conflict_gems: Iterable[str] = ("rake", "rdoc"),
        options: WorkflowOptions | None = None,
        read_spec: Callable[[Path], GemSpec] = read_gem,
    ) -> None:
        self.workdir = workdir
        self.notices = notices
        self.names = names or NameMapper()
        self.options = options or WorkflowOptions()
        self.resolver = ConstraintResolver(index, self.names)
        self._gems = gems
        self._checker = checker
        self._sync = sync
        self._builder = builder
        self._uploader = uploader
        self._vcs = vcs
        self._conflict_gems = frozenset(conflict_gems)
        self._read_spec = read_spec

    @classmethod
    def from_config(
        cls,
        config: Config,
        workdir: Path,
        options: WorkflowOptions,
        notices: NoticeLog,
    ) -> PackageWorkflow:
        """Wire the production collaborators and load the version index.

        Raises:
            RegistryError: If rubygems.org cannot be reached.
        """
        gems = RubyGemsClient(config.rubygems_url, timeout=config.timeout_s)
        index = VersionIndex.load(gems.fetch_versions)
        checker = RemoteStatusChecker(
            index,
            [
                PacmanRepository(timeout=config.command_timeout_s),
                AurRepository(config.aur_rpc_url, timeout=config.timeout_s),
            ],
            RunCache(),
            notices,
        )
        return cls(
            workdir,
            index=index,
            gems=gems,
            checker=checker,
            sync=DescriptorSync(UpdpkgsumsRefresher(config.command_timeout_s)),
            builder=MakepkgBuilder(config.command_timeout_s),
            uploader=SourcePackageUploader(config.upload_command, config.command_timeout_s),
            vcs=GitRevisionControl(workdir),
            notices=notices,
            names=NameMapper(config.package_prefix),
            conflict_gems=config.conflict_gems,
            options=options,
        )

    # -- Entry point --------------------------------------------------------

    def run(self, requests: list[PackageRequest]) -> list[str]:
        """Create *requests*, or bump every existing package when empty.

        Returns:
            Names of the packages that were created or changed.
        """
        if self.options.use_git and self._vcs is not None:
            self._vcs.stash(STASH_MESSAGE)
        if requests:
            return self.create_packages(requests)
        return self.bump_packages()

    # -- Bump ---------------------------------------------------------------

    def bump_packages(self) -> list[str]:
        changed = []
        pattern = f"{self.names.package_prefix}*/{DESCRIPTOR_FILENAME}"
        for path in sorted(self.workdir.glob(pattern)):
            if self.bump_package(path):
                changed.append(path.parent.name)
        return changed

    def bump_package(self, path: Path) -> bool:
        """Sync one existing PKGBUILD with the newest matching gem release.

        Returns:
            True if the descriptor changed.
        """
        descriptor = Descriptor.load(path, self.names)
        package = descriptor.package_name(self.names)
        gem_name = descriptor.gem_name or ""

        release = self._gems.find_release(gem_name, suffix_requirement(descriptor.slot))
        if release is None:
            self.notices.add(
                NoticeKind.NO_RELEASES, package, f"Could not find releases for gem {gem_name}"
            )
            return False

        dependencies = list(descriptor.dependencies)
        for dep in self._runtime(release.dependencies):
            suffix = self.resolver.resolve_suffix(dep)
            arch_name = self.names.to_package_name(dep.name, suffix)
            dependencies.append(arch_name)

            remote = self._checker.resolve(arch_name, dep.name, suffix)
            if remote is None:
                self.notices.add(
                    NoticeKind.UNSATISFIED,
                    package,
                    f"{package}=>{arch_name} does not satisfy gem dependency restrictions",
                )
                return False
            if not _satisfies(dep, remote):
                # Most likely the dependency package needs an update.
                self.notices.add(
                    NoticeKind.UNSATISFIED,
                    package,
                    f"{package}=>{arch_name} does not satisfy gem dependency restrictions",
                    url=remote.url,
                )

        modified = self._sync.reconcile(descriptor, str(release.version), dependencies)
        if modified:
            self._publish(descriptor, package, f"{package}: bump")
        return modified

    # -- Create -------------------------------------------------------------

    def create_packages(self, requests: list[PackageRequest]) -> list[str]:
        walker = DependencyGraphWalker(self.create_package, self.names)
        return walker.drive(requests)

    def create_package(self, request: PackageRequest, package_name: str) -> list[PackageRequest]:
        """Generate the PKGBUILD of one requested gem.

        Returns:
            Requests for dependencies that have no package anywhere yet.

        Raises:
            RegistryError: If the gem has no matching release or its
                download does not match the published checksum.
        """
        directory = self.workdir / package_name
        directory.mkdir(parents=True, exist_ok=True)
        descriptor = Descriptor.load(directory / DESCRIPTOR_FILENAME, self.names)

        release = self._gems.find_release(request.name, suffix_requirement(request.slot))
        if release is None:
            raise RegistryError(f"Could not find {request.name} in any repository")

        gem_path = self._gems.download(release, directory)
        checksum = sha256_file(gem_path)
        if release.checksum and release.checksum != checksum:
            raise RegistryError(
                f"Checksum mismatch for {gem_path.name}: "
                f"expected {release.checksum}, got {checksum}"
            )
        spec = self._read_spec(gem_path)

        runtime = self._runtime(spec.runtime_dependencies)
        more = self.check_dependencies(runtime)

        depends = list(descriptor.dependencies) or [RUBY_DEPENDENCY]
        depends += [self.resolver.package_name(d) for d in runtime]
        change = next_release(descriptor, spec.version, depends)

        licenses = list(spec.licenses)
        if not licenses and descriptor.license:
            licenses = [descriptor.license]

        maintainers = descriptor.maintainers
        if not maintainers:
            identity = self._vcs.user_identity() if self._vcs is not None else None
            maintainers = [identity or ""]

        content = render_pkgbuild(PkgbuildParams(
            gem_name=spec.name,
            version=spec.version,
            release=change.release,
            prefix=self.names.package_prefix,
            suffix=request.slot,
            description=spec.summary,
            website=spec.homepage,
            arch="any" if not spec.extensions else "x86_64",
            licenses=licenses,
            depends=depends,
            checksum=checksum,
            platform=release.platform,
            license_files=find_license_files(spec.files),
            maintainers=maintainers,
            contributors=descriptor.contributors,
            # A versioned package must not clash with the executables of the unversioned one.
            remove_binaries=request.slot is not None and bool(spec.executables),
        ))

        descriptor.gem_name = spec.name
        descriptor.version = spec.version
        descriptor.release = change.release
        descriptor.slot = request.slot
        descriptor.content = content
        descriptor.save()

        self._publish(descriptor, package_name, f"{package_name}: add")
        return more

    def check_dependencies(self, dependencies: list[Dependency]) -> list[PackageRequest]:
        """Look up the package of every dependency.

        Returns:
            Requests for dependencies with no package in any repository.
        """
        more: list[PackageRequest] = []
        for dep in dependencies:
            suffix = self.resolver.resolve_suffix(dep)
            arch_name = self.names.to_package_name(dep.name, suffix)
            remote = self._checker.resolve(arch_name, dep.name, suffix)
            if remote is None:
                logger.warning(
                    "Cannot find package for dependency: %s. Generate it as well.", arch_name
                )
                more.append(PackageRequest(dep.name, suffix))
                continue
            if not _satisfies(dep, remote):
                self.notices.add(
                    NoticeKind.UNSATISFIED,
                    arch_name,
                    f"Package {arch_name} version {remote.version} does not satisfy "
                    f"gem dependency {dep}",
                    url=remote.url,
                )
        return more

    # -- Helpers ------------------------------------------------------------

    def _runtime(self, dependencies: Iterable[Dependency]) -> list[Dependency]:
        return [d for d in dependencies if d.name not in self._conflict_gems]

    def _publish(self, descriptor: Descriptor, package: str, message: str) -> None:
        directory = descriptor.directory
        if self.options.use_git and self._vcs is not None:
            committed = self._vcs.commit([descriptor.path], message)
            if not committed:
                logger.warning("Cannot commit %s: %s", descriptor.path, committed.output.strip())

        if self.options.install:
            built = self._builder.build(directory, install=True)
            if not built:
                self.notices.add(
                    NoticeKind.BUILD_FAILED, package, f"Cannot build package {package}"
                )

        if self.options.upload:
            package_id = f"{package}-{descriptor.version}-{descriptor.release}"
            uploaded = self._uploader.upload(directory, package_id)
            if not uploaded:
                self.notices.add(
                    NoticeKind.UPLOAD_FAILED,
                    package,
                    f"Cannot upload changes for package {package}",
                )


def _satisfies(dependency: Dependency, remote: RemotePackage) -> bool:
    try:
        return dependency.requirement.satisfied_by(remote.version)
    except VersionError:
        return False
