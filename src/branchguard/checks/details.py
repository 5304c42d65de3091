"""Collect check rationale and gate it on whether a branch is protected."""

from __future__ import annotations

import logging

from branchguard.checks.base import DetailLogger
from branchguard.models import CheckDetail, DetailType

logger = logging.getLogger(__name__)


class DetailCollector:
    """Adapter for DetailLogger -- records details in memory and mirrors them to logging."""

    def __init__(self) -> None:
        self._details: list[CheckDetail] = []

    @property
    def details(self) -> list[CheckDetail]:
        return list(self._details)

    def info(self, desc: str, *args: object) -> None:
        self._record(DetailType.INFO, desc, args)

    def warn(self, desc: str, *args: object) -> None:
        self._record(DetailType.WARN, desc, args)

    def debug(self, desc: str, *args: object) -> None:
        self._record(DetailType.DEBUG, desc, args)

    def _record(self, detail_type: DetailType, desc: str, args: tuple[object, ...]) -> None:
        message = desc % args if args else desc
        self._details.append(CheckDetail(type=detail_type, message=message))
        logger.debug("[%s] %s", detail_type.value, message)


# ─── Gated helpers ─────────────────────────────────────────
# Unprotected branches are scored with logging suppressed so that every
# setting is not reported a second time after "protection not enabled".


def info(dl: DetailLogger, do_logging: bool, desc: str, *args: object) -> None:
    if not do_logging:
        return
    dl.info(desc, *args)


def warn(dl: DetailLogger, do_logging: bool, desc: str, *args: object) -> None:
    if not do_logging:
        return
    dl.warn(desc, *args)


def debug(dl: DetailLogger, do_logging: bool, desc: str, *args: object) -> None:
    if not do_logging:
        return
    dl.debug(desc, *args)
