"""Non-fatal reports collected during a run.

Out-of-date or missing repository packages and failed builds do not stop
a run. They are recorded here and shown to the user at the end.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class NoticeKind(Enum):
    """Kinds of non-fatal reports."""

    OUT_OF_DATE = "out-of-date"
    MISSING = "missing"
    UNSATISFIED = "unsatisfied"
    NO_RELEASES = "no-releases"
    BUILD_FAILED = "build-failed"
    UPLOAD_FAILED = "upload-failed"


@dataclass(frozen=True)
class Notice:
    """One report about one package.

    Attributes:
        kind: What happened.
        package: Arch package name the notice is about.
        message: Human readable description.
        url: Page where the user can act on it (flag out-of-date, etc.).
    """

    kind: NoticeKind
    package: str
    message: str
    url: str = ""


class NoticeLog:
    """Ordered, run-scoped collection of notices."""

    def __init__(self) -> None:
        self._notices: list[Notice] = []

    def add(self, kind: NoticeKind, package: str, message: str, url: str = "") -> Notice:
        notice = Notice(kind=kind, package=package, message=message, url=url)
        self._notices.append(notice)
        logger.info("[%s] %s", kind.value, message)
        return notice

    def of_kind(self, kind: NoticeKind) -> list[Notice]:
        return [n for n in self._notices if n.kind is kind]

    def __iter__(self):
        return iter(self._notices)

    def __len__(self) -> int:
        return len(self._notices)
