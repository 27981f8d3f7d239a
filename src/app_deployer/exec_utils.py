"""!
@brief Subprocess execution helpers with sanitised environments.
@details Every installer, uninstaller and system utility launched by App
Deployer goes through :func:`run_command` so telemetry, dry-run handling and
environment hygiene stay uniform. Child processes never inherit the Python
virtual environment variables of a frozen or venv-hosted interpreter.
"""

from __future__ import annotations

import os
import subprocess
import time
from collections.abc import Iterable, Mapping, MutableMapping, Sequence
from dataclasses import dataclass

from . import logging_ext

_SANITIZE_BLOCKLIST = {
    "PYTHONPATH",
    "PYTHONHOME",
    "PYTHONWARNINGS",
    "VIRTUAL_ENV",
    "PIP_REQUIRE_VIRTUALENV",
    "CONDA_PREFIX",
    "CONDA_DEFAULT_ENV",
    "__PYVENV_LAUNCHER__",
}

MISSING_EXECUTABLE_RETURN_CODE = 127


@dataclass
class CommandResult:
    """!
    @brief Outcome information from :func:`run_command`.
    @details ``skipped`` is ``True`` when dry-run mode bypassed execution and
    ``timed_out`` when the process exceeded its timeout.
    """

    command: Sequence[str]
    returncode: int
    stdout: str
    stderr: str
    duration: float
    skipped: bool = False
    timed_out: bool = False
    error: str | None = None


def sanitize_environment(
    *,
    base_env: Mapping[str, str] | None = None,
    inherit: bool = True,
    extra: Mapping[str, str] | None = None,
    remove: Iterable[str] | None = None,
) -> MutableMapping[str, str]:
    """!
    @brief Produce a subprocess environment stripped of virtualenv artefacts.
    @param base_env Source mapping to copy prior to sanitisation.
    @param inherit When ``True`` and ``base_env`` is ``None`` the host
    environment is used as a starting point.
    @param extra Overrides applied after sanitisation.
    @param remove Additional variable names to drop.
    @returns Mutable mapping ready for subprocess invocation.
    """

    if base_env is not None:
        environment: MutableMapping[str, str] = {
            str(k): str(v) for k, v in base_env.items() if v is not None
        }
    elif inherit:
        environment = {str(k): str(v) for k, v in os.environ.items() if v is not None}
    else:
        environment = {}

    for key in _SANITIZE_BLOCKLIST:
        environment.pop(key, None)
    for key in remove or ():
        environment.pop(key, None)
    for key, value in (extra or {}).items():
        environment[str(key)] = str(value)

    return environment


def _call_payload(
    command_list: Sequence[str],
    *,
    timeout: float | int | None,
    cwd: str | None,
    extra: Mapping[str, object] | None,
) -> dict[str, object]:
    payload: dict[str, object] = {"command": list(command_list), "timeout": timeout}
    if cwd:
        payload["cwd"] = cwd
    for key, value in (extra or {}).items():
        if key not in {"event", "result"}:
            payload[key] = value
    return payload


def _result_payload(result: CommandResult) -> dict[str, object]:
    return {
        "rc": result.returncode,
        "duration_ms": round(result.duration * 1000, 3),
        "stdout": result.stdout,
        "stderr": result.stderr,
        "error": result.error,
        "timed_out": result.timed_out,
    }


def run_command(
    command: Sequence[str] | str,
    *,
    event: str,
    timeout: int | float | None = None,
    dry_run: bool = False,
    human_message: str | None = None,
    extra: Mapping[str, object] | None = None,
    env: Mapping[str, str] | None = None,
    env_overrides: Mapping[str, str] | None = None,
    cwd: str | None = None,
) -> CommandResult:
    """!
    @brief Execute ``command`` and wait for it to exit.
    @details Emits ``<event>_plan`` before and ``<event>_result`` (or
    ``_dry_run``/``_missing``/``_timeout``/``_error``) after execution on the
    machine channel. Launch failures are reported through the returned
    :class:`CommandResult` rather than raised, so callers can fold them into
    the run's exit status.
    @param command Sequence of command arguments.
    @param event Base name for structured log events.
    @param timeout Optional timeout (seconds).
    @param dry_run When ``True`` nothing is spawned and the result is ``skipped``.
    @param human_message Optional message emitted to the human logger.
    @param extra Additional metadata merged into machine log payloads.
    @param env Explicit environment mapping to start from.
    @param env_overrides Mapping applied after sanitisation.
    @param cwd Working directory for the child process.
    @returns :class:`CommandResult` describing the observed outcome.
    """

    human_logger = logging_ext.get_human_logger()
    machine_logger = logging_ext.get_machine_logger()

    command_list = [command] if isinstance(command, str) else [str(part) for part in command]
    call = _call_payload(command_list, timeout=timeout, cwd=cwd, extra=extra)
    machine_logger.info(
        f"{event}_plan", extra={"event": f"{event}_plan", "call": call, "dry_run": dry_run}
    )

    if dry_run:
        human_logger.info("%s [dry-run]", human_message or "Would execute " + " ".join(command_list))
        result = CommandResult(
            command=command_list, returncode=0, stdout="", stderr="", duration=0.0, skipped=True
        )
        machine_logger.info(
            f"{event}_dry_run",
            extra={"event": f"{event}_dry_run", "call": call, "result": _result_payload(result)},
        )
        return result

    if human_message:
        human_logger.info(human_message)

    start = time.monotonic()
    try:
        completed = subprocess.run(  # noqa: S603 - intentional command execution
            command_list,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
            env=dict(sanitize_environment(base_env=env, extra=env_overrides)),
            cwd=cwd,
        )
    except FileNotFoundError as exc:
        result = CommandResult(
            command=command_list,
            returncode=MISSING_EXECUTABLE_RETURN_CODE,
            stdout="",
            stderr="",
            duration=time.monotonic() - start,
            error=str(exc),
        )
        human_logger.error("Command not found: %s", command_list[0])
        machine_logger.error(
            f"{event}_missing",
            extra={"event": f"{event}_missing", "call": call, "result": _result_payload(result)},
        )
        return result
    except subprocess.TimeoutExpired as exc:
        result = CommandResult(
            command=command_list,
            returncode=1,
            stdout=str(exc.stdout or ""),
            stderr=str(exc.stderr or ""),
            duration=time.monotonic() - start,
            timed_out=True,
            error="timeout",
        )
        human_logger.error("Command timed out after %.1fs: %s", result.duration, command_list[0])
        machine_logger.error(
            f"{event}_timeout",
            extra={"event": f"{event}_timeout", "call": call, "result": _result_payload(result)},
        )
        return result
    except OSError as exc:
        result = CommandResult(
            command=command_list,
            returncode=1,
            stdout="",
            stderr="",
            duration=time.monotonic() - start,
            error=str(exc),
        )
        human_logger.error("Failed to execute %s: %s", command_list[0], exc)
        machine_logger.error(
            f"{event}_error",
            extra={"event": f"{event}_error", "call": call, "result": _result_payload(result)},
        )
        return result

    result = CommandResult(
        command=command_list,
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
        duration=time.monotonic() - start,
    )
    machine_logger.info(
        f"{event}_result",
        extra={"event": f"{event}_result", "call": call, "result": _result_payload(result)},
    )
    if result.returncode != 0:
        human_logger.warning("Command %s exited with %s", command_list[0], result.returncode)
    return result


__all__ = ["CommandResult", "run_command", "sanitize_environment"]
