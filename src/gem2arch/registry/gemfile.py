"""Read the specification embedded in a ``.gem`` artifact.

A ``.gem`` is a plain tar archive containing ``metadata.gz``, a gzipped
YAML dump of the ``Gem::Specification``. The dump uses Ruby-specific tags
(``!ruby/object:Gem::Version`` and friends); they are loaded as plain
mappings.
"""

from __future__ import annotations

import gzip
import hashlib
import tarfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from gem2arch.core.versions import Dependency, Requirement
from gem2arch.exceptions import RegistryError, VersionError


class _GemSpecLoader(yaml.SafeLoader):
    """SafeLoader that accepts ``!ruby/...`` tags."""


def _construct_ruby_tag(loader: yaml.SafeLoader, _suffix: str, node: yaml.Node) -> Any:
    if isinstance(node, yaml.MappingNode):
        return loader.construct_mapping(node, deep=True)
    if isinstance(node, yaml.SequenceNode):
        return loader.construct_sequence(node, deep=True)
    return loader.construct_scalar(node)


_GemSpecLoader.add_multi_constructor("!ruby/", _construct_ruby_tag)


@dataclass(frozen=True)
class GemSpec:
    """Fields of a gem specification that a PKGBUILD needs."""

    name: str
    version: str
    summary: str = ""
    homepage: str = ""
    licenses: list[str] = field(default_factory=list)
    executables: list[str] = field(default_factory=list)
    extensions: list[str] = field(default_factory=list)
    files: list[str] = field(default_factory=list)
    runtime_dependencies: list[Dependency] = field(default_factory=list)


def _version_text(value: Any) -> str:
    if isinstance(value, dict):
        return str(value.get("version", ""))
    return str(value)


def _requirement(value: Any) -> Requirement:
    if not isinstance(value, dict):
        return Requirement.default()
    atoms = [
        f"{pair[0]} {_version_text(pair[1])}"
        for pair in value.get("requirements") or []
        if isinstance(pair, list) and len(pair) == 2
    ]
    return Requirement.create(atoms)


def _str_list(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]


def spec_from_yaml(text: str | bytes) -> GemSpec:
    """Build a ``GemSpec`` from a YAML specification dump.

    Raises:
        RegistryError: If the document is not a gem specification.
    """
    try:
        data = yaml.load(text, Loader=_GemSpecLoader)  # noqa: S506
    except yaml.YAMLError as exc:
        raise RegistryError(f"Invalid gem specification: {exc}") from exc
    if not isinstance(data, dict) or "name" not in data:
        raise RegistryError("Invalid gem specification: no name")

    deps: list[Dependency] = []
    try:
        for dep in data.get("dependencies") or []:
            if not isinstance(dep, dict):
                continue
            # Older specs omit the type; RubyGems treats that as runtime.
            if str(dep.get("type", ":runtime")).lstrip(":") != "runtime":
                continue
            deps.append(Dependency(str(dep["name"]), _requirement(dep.get("requirement"))))
    except (KeyError, VersionError) as exc:
        raise RegistryError(f"Invalid dependency in gem specification: {exc}") from exc

    return GemSpec(
        name=str(data["name"]),
        version=_version_text(data.get("version")),
        summary=str(data.get("summary") or ""),
        homepage=str(data.get("homepage") or ""),
        licenses=_str_list(data.get("licenses") or data.get("license")),
        executables=_str_list(data.get("executables")),
        extensions=_str_list(data.get("extensions")),
        files=_str_list(data.get("files")),
        runtime_dependencies=deps,
    )


def read_gem(path: Path) -> GemSpec:
    """Return the specification stored in the ``.gem`` at *path*.

    Raises:
        RegistryError: If the file is not a gem archive.
    """
    try:
        with tarfile.open(path) as archive:
            member = archive.extractfile("metadata.gz")
            if member is None:
                raise RegistryError(f"{path}: metadata.gz is not a file")
            raw = gzip.decompress(member.read())
    except (tarfile.TarError, KeyError, OSError) as exc:
        raise RegistryError(f"{path}: not a gem archive ({exc})") from exc
    return spec_from_yaml(raw)


def sha256_file(path: Path) -> str:
    """Hex SHA-256 of the file at *path*."""
    digest = hashlib.sha256()
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(65536), b""):
            digest.update(chunk)
    return digest.hexdigest()
