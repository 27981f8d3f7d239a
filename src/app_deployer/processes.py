"""!
@brief Close applications that would block an installer.
@details Running executables are enumerated with ``tasklist`` and the ones
matching the requested names (``fnmatch`` patterns allowed) are stopped with
``taskkill``. Missing tools and failed kills are logged, never raised: a
process that refuses to close surfaces later as an installer exit code.
"""
from __future__ import annotations

import csv
import fnmatch
import io
from typing import Iterable, List

from . import exec_utils, logging_ext


def _parse_tasklist(output: str) -> List[str]:
    """!
    @brief Extract lower-cased image names from ``tasklist /FO CSV /NH`` output.
    """

    names: List[str] = []
    for row in csv.reader(io.StringIO(output)):
        if not row:
            continue
        name = row[0].strip().lower()
        if name and name not in names:
            names.append(name)
    return names


def running_processes(*, timeout: int = 30) -> List[str]:
    """!
    @brief Return image names of running processes; empty when unavailable.
    """

    result = exec_utils.run_command(
        ["tasklist.exe", "/FO", "CSV", "/NH"],
        event="process_enumeration",
        timeout=timeout,
    )
    if result.returncode != 0:
        logging_ext.get_human_logger().debug(
            "tasklist returned %s; assuming no running processes", result.returncode
        )
        return []
    return _parse_tasklist(result.stdout)


def match_processes(running: Iterable[str], patterns: Iterable[str]) -> List[str]:
    lowered = [pattern.strip().lower() for pattern in patterns if pattern and pattern.strip()]
    matched: List[str] = []
    for name in running:
        if any(fnmatch.fnmatch(name, pattern) for pattern in lowered) and name not in matched:
            matched.append(name)
    return matched


def close_processes(
    names: Iterable[str],
    *,
    dry_run: bool = False,
    timeout: int = 30,
) -> List[str]:
    """!
    @brief Forcefully stop running processes matching ``names``.
    @returns The image names a termination was issued for.
    """

    human_logger = logging_ext.get_human_logger()
    patterns = [str(name).strip() for name in names if str(name).strip()]
    if not patterns:
        return []

    targets = match_processes(running_processes(timeout=timeout), patterns)
    if not targets:
        human_logger.info("No running processes match %s", ", ".join(patterns))
        return []

    human_logger.info("Closing %d running process(es): %s", len(targets), ", ".join(targets))
    for process in targets:
        result = exec_utils.run_command(
            ["taskkill.exe", "/IM", process, "/F", "/T"],
            event="terminate_process",
            timeout=timeout,
            dry_run=dry_run,
            extra={"process_name": process},
        )
        if result.returncode != 0:
            human_logger.warning("taskkill exited with %s for %s", result.returncode, process)
    return targets


__all__ = ["close_processes", "match_processes", "running_processes"]
