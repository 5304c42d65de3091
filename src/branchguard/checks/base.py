"""Port: Rationale sink for check details."""

from __future__ import annotations

from typing import Protocol


class DetailLogger(Protocol):
    """Port for recording human-readable rationale while a check runs.

    ``desc`` is a printf-style format string, formatted with ``args``.
    """

    def info(self, desc: str, *args: object) -> None: ...

    def warn(self, desc: str, *args: object) -> None: ...

    def debug(self, desc: str, *args: object) -> None: ...
