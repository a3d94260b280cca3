"""Shared fixtures for gem2arch tests."""

from __future__ import annotations

import pytest

from gem2arch.core.index import VersionIndex
from gem2arch.core.naming import NameMapper
from gem2arch.core.versions import GemVersion


@pytest.fixture
def names() -> NameMapper:
    """The default ``ruby-`` name mapper."""
    return NameMapper()


@pytest.fixture
def sample_index() -> VersionIndex:
    """An index with a few gems and release lines."""
    return VersionIndex({
        "foo": [GemVersion(v) for v in ("1.0", "1.2", "1.4", "2.0")],
        "bar": [GemVersion(v) for v in ("1.0", "1.2")],
        "rack": [GemVersion(v) for v in ("1.6.13", "2.2.8", "3.0.9")],
        "json": [GemVersion(v) for v in ("2.6.3", "2.7.1")],
    })
