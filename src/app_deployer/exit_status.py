"""!
@brief Aggregate per-invocation exit codes into a run's final status.
@details The reboot-required code (3010) is sticky: once recorded it stays the
final status. Any other non-zero code replaces the running status unless that
status is already 3010. Zero never changes the status.
"""
from __future__ import annotations

from typing import List, Tuple

from . import constants


class ExitStatus:
    """!
    @brief Running final exit code plus the ordered history of recorded codes.
    """

    def __init__(self) -> None:
        self._final = constants.EXIT_SUCCESS
        self._history: List[Tuple[str, int]] = []

    @property
    def final(self) -> int:
        return self._final

    @property
    def history(self) -> Tuple[Tuple[str, int], ...]:
        return tuple(self._history)

    @property
    def reboot_required(self) -> bool:
        return self._final == constants.EXIT_REBOOT_REQUIRED

    def record(self, code: int, label: str = "") -> int:
        """!
        @brief Fold ``code`` into the final status.
        @returns The final status after recording.
        """

        code = int(code)
        self._history.append((label, code))
        if code == constants.EXIT_REBOOT_REQUIRED:
            self._final = code
        elif code != constants.EXIT_SUCCESS and self._final != constants.EXIT_REBOOT_REQUIRED:
            self._final = code
        return self._final

    def __repr__(self) -> str:
        return f"ExitStatus(final={self._final}, recorded={len(self._history)})"


def summarize(codes: List[int]) -> int:
    """!
    @brief Final status for a plain sequence of codes.
    """

    status = ExitStatus()
    for code in codes:
        status.record(code)
    return status.final


__all__ = ["ExitStatus", "summarize"]
