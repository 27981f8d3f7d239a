"""!
@brief Launch installers and uninstallers and fold their exit codes.
@details Every external invocation runs through
:func:`app_deployer.exec_utils.run_command`. Codes listed as benign for the
installer family are treated as success; everything else is recorded in the
run's :class:`~app_deployer.exit_status.ExitStatus`. A failing invocation
never stops the remaining ones. Some installers keep file and registry locks
for a short while after exiting, so callers can request a settle pause.
"""
from __future__ import annotations

import time
from typing import Iterable, List, Sequence

from . import constants, exec_utils, logging_ext
from .context import DeploymentContext
from .exit_status import ExitStatus
from .resolver import UninstallTarget


def run_installer(
    command: Sequence[str],
    context: DeploymentContext,
    status: ExitStatus,
    *,
    event: str = "installer",
    label: str | None = None,
    ignore_exit_codes: Iterable[int] = (),
    settle_seconds: float = 0.0,
    cwd: str | None = None,
) -> int:
    """!
    @brief Run ``command`` to completion and record its effective exit code.
    @param command Executable followed by its arguments.
    @param context Supplies ``dry_run`` and ``timeout``.
    @param status Aggregator receiving the effective code.
    @param event Base name of the machine log events.
    @param label Human description; defaults to the executable.
    @param ignore_exit_codes Codes reported as success.
    @param settle_seconds Pause after the process exits (skipped in dry-run).
    @returns The effective exit code recorded.
    """

    human_logger = logging_ext.get_human_logger()
    machine_logger = logging_ext.get_machine_logger()

    command_list = [str(part) for part in command]
    description = label or (command_list[0] if command_list else event)
    ignored = frozenset(int(code) for code in ignore_exit_codes)

    result = exec_utils.run_command(
        command_list,
        event=event,
        timeout=context.timeout,
        dry_run=context.dry_run,
        human_message=f"Running {description}",
        extra={"label": description, "deployment_type": context.deployment_type.value},
        cwd=cwd,
    )

    effective = result.returncode
    if effective in ignored:
        human_logger.info(
            "%s returned %d, treated as success for this installer", description, effective
        )
        effective = constants.EXIT_SUCCESS

    final = status.record(effective, description)
    machine_logger.info(
        f"{event}_status",
        extra={
            "event": f"{event}_status",
            "label": description,
            "return_code": result.returncode,
            "effective_code": effective,
            "ignored": result.returncode in ignored,
            "final_status": final,
        },
    )
    if effective == constants.EXIT_REBOOT_REQUIRED:
        human_logger.info("%s requested a reboot", description)
    elif effective != constants.EXIT_SUCCESS:
        human_logger.error("%s failed with exit code %d", description, effective)

    if settle_seconds > 0 and not result.skipped:
        human_logger.debug("Waiting %.1fs for %s to release locks", settle_seconds, description)
        time.sleep(settle_seconds)

    return effective


def dispatch_targets(
    targets: Iterable[UninstallTarget],
    context: DeploymentContext,
    status: ExitStatus,
) -> List[int]:
    """!
    @brief Invoke each resolved uninstall target in order.
    @returns Effective exit code per target.
    """

    human_logger = logging_ext.get_human_logger()
    codes: List[int] = []
    target_list = list(targets)
    if not target_list:
        human_logger.info("No uninstall targets resolved; nothing to remove.")
        return codes

    for index, target in enumerate(target_list, start=1):
        label = f"{target.display_name} ({target.kind.value}) [{index}/{len(target_list)}]"
        codes.append(
            run_installer(
                target.command,
                context,
                status,
                event=target.event,
                label=label,
                ignore_exit_codes=target.ignore_exit_codes,
                settle_seconds=target.settle_seconds,
            )
        )
    return codes


def build_msi_install_command(
    msi_path: str,
    *,
    transforms: Sequence[str] = (),
    properties: Sequence[str] = (),
    log_path: str | None = None,
) -> List[str]:
    """!
    @brief ``msiexec /i`` for a package with optional transforms and properties.
    """

    command = [constants.MSIEXEC, "/i", str(msi_path)]
    if transforms:
        command.append("TRANSFORMS=" + ";".join(str(item) for item in transforms))
    command.extend(str(item) for item in properties)
    command.extend(constants.MSI_INSTALL_ARGS)
    if log_path:
        command.extend(["/L*v", str(log_path)])
    return command


def build_msi_patch_command(msp_path: str, *, log_path: str | None = None) -> List[str]:
    command = [constants.MSIEXEC, "/p", str(msp_path), *constants.MSI_INSTALL_ARGS]
    if log_path:
        command.extend(["/L*v", str(log_path)])
    return command


def build_msi_repair_command(product_code: str) -> List[str]:
    """!
    @brief ``msiexec /fvomus`` reinstalling every file and registry entry.
    """

    if not product_code:
        raise ValueError("product_code must be non-empty")
    return [constants.MSIEXEC, "/fvomus", product_code, *constants.MSI_INSTALL_ARGS]


__all__ = [
    "build_msi_install_command",
    "build_msi_patch_command",
    "build_msi_repair_command",
    "dispatch_targets",
    "run_installer",
]
