"""!
@brief Phase sequencing for application scripts.
@details An :class:`ApplicationScript` provides hook methods for each phase.
:func:`run_deployment` runs the three phases belonging to the context's
deployment type (``Pre-<Type>``, ``<Type>``, ``Post-<Type>``) in order, each
exactly once. A hook that raises aborts the remaining phases; the exception
propagates to the entry point which owns fatal error reporting.

Hooks receive a :class:`DeploymentSession`, which carries the immutable
context, the running exit status, and the helpers scripts use to close
processes, locate media, launch installers, resolve uninstall targets and
write registry values.
"""
from __future__ import annotations

import time
from pathlib import Path
from typing import Any, ClassVar, Iterable, List, Sequence, Tuple

from . import (
    catalog as catalog_module,
    dispatcher,
    inventory,
    logging_ext,
    processes,
    registry_tools,
    resolver,
    user_profiles,
)
from .context import DeploymentContext
from .errors import CatalogError, DeploymentError, InstallerNotFoundError
from .exit_status import ExitStatus


class PhaseSequenceError(DeploymentError):
    """!
    @brief Raised when a phase is entered twice or out of order.
    """


def hook_name(phase: str) -> str:
    """!
    @brief Map a phase name such as ``Post-Installation`` to ``post_installation``.
    """

    return phase.lower().replace("-", "_")


class DeploymentSession:
    """!
    @brief Per-run state and helpers handed to application script hooks.
    """

    def __init__(self, context: DeploymentContext, status: ExitStatus | None = None) -> None:
        self.context = context
        self.status = status or ExitStatus()
        self.current_phase: str | None = None
        self._entered: List[str] = []
        self.human_logger = logging_ext.get_human_logger()
        self.machine_logger = logging_ext.get_machine_logger()

    @property
    def completed_phases(self) -> Tuple[str, ...]:
        return tuple(self._entered)

    def enter_phase(self, phase: str) -> None:
        """!
        @brief Mark ``phase`` as entered, following the fixed order.
        @throws PhaseSequenceError When the phase was already entered or is not
        the next one for this deployment type.
        """

        expected = self.context.deployment_type.phases
        if phase in self._entered:
            raise PhaseSequenceError(f"Phase {phase} has already run")
        position = len(self._entered)
        if position >= len(expected) or expected[position] != phase:
            raise PhaseSequenceError(f"Phase {phase} is out of order; expected {expected[position:]}")
        self._entered.append(phase)
        self.current_phase = phase

    # ------------------------------------------------------------------
    # Helpers used by hooks
    # ------------------------------------------------------------------

    def close_apps(self, names: Iterable[str]) -> List[str]:
        return processes.close_processes(names, dry_run=self.context.dry_run)

    def find_media(self, pattern: str) -> Path:
        """!
        @brief Locate installer media in ``files_dir`` matching a glob ``pattern``.
        @details With several matches the lexically last one (usually the newest
        version) wins.
        @throws InstallerNotFoundError When nothing matches.
        """

        found = self.find_optional_media(pattern)
        if found is None:
            raise InstallerNotFoundError(
                f"No installer matching {pattern!r} in {self.context.files_dir}"
            )
        return found

    def find_optional_media(self, pattern: str) -> Path | None:
        matches = sorted(path for path in self.context.files_dir.glob(pattern) if path.is_file())
        return matches[-1] if matches else None

    def run(self, command: Sequence[object], **kwargs: Any) -> int:
        """!
        @brief Launch an installer through :func:`dispatcher.run_installer`.
        """

        return dispatcher.run_installer(
            [str(part) for part in command], self.context, self.status, **kwargs
        )

    def pause(self, seconds: float) -> None:
        if seconds > 0 and not self.context.dry_run:
            time.sleep(seconds)

    def installed(self, names: str | Sequence[str], *, match: str = "contains") -> List[inventory.InstalledApplication]:
        return inventory.get_installed_applications(names, match=match)

    def load_catalog(self) -> catalog_module.ProductCatalog | None:
        """!
        @brief Load the context's catalog; ``None`` when unset or unreadable.
        """

        path = self.context.catalog_path
        if path is None:
            return None
        try:
            return catalog_module.load_catalog(path)
        except CatalogError as exc:
            self.human_logger.warning("Product catalog unavailable: %s", exc)
            return None

    def uninstall_applications(
        self,
        names: str | Sequence[str],
        *,
        match: str = "contains",
    ) -> List[int]:
        """!
        @brief Classify, resolve and silently uninstall every matching application.
        @returns Effective exit code per dispatched target.
        """

        applications = self.installed(names, match=match)
        if not applications:
            return []
        targets = resolver.resolve_targets(applications, self.load_catalog())
        return dispatcher.dispatch_targets(targets, self.context, self.status)

    def repair_applications(
        self,
        names: str | Sequence[str],
        *,
        match: str = "contains",
    ) -> List[int]:
        """!
        @brief Run a Windows Installer repair for every matching MSI product.
        @details Entries that are not Windows Installer packages are skipped.
        """

        codes: List[int] = []
        for application in self.installed(names, match=match):
            product_code = application.product_code
            if not product_code:
                self.human_logger.warning(
                    "Skipping repair of %s: not a Windows Installer package",
                    application.display_name,
                )
                continue
            codes.append(
                self.run(
                    dispatcher.build_msi_repair_command(product_code),
                    event="msi_repair",
                    label=f"Repair {application.display_name}",
                )
            )
        return codes

    def set_registry_value(self, handle: str, name: str, data: object, kind: str = "string") -> None:
        """!
        @brief Write a machine value addressed as ``HKLM\\Path\\To\\Key``.
        """

        parsed = registry_tools.parse_handle(handle)
        if parsed is None:
            raise ValueError(f"Invalid registry handle: {handle!r}")
        registry_tools.set_value(parsed[0], parsed[1], name, data, kind, dry_run=self.context.dry_run)

    def delete_registry_value(self, handle: str, name: str) -> bool:
        """!
        @brief Remove a machine value addressed as ``HKLM\\Path\\To\\Key``.
        @returns ``True`` when the value existed and was deleted.
        """

        parsed = registry_tools.parse_handle(handle)
        if parsed is None:
            raise ValueError(f"Invalid registry handle: {handle!r}")
        return registry_tools.delete_value(parsed[0], parsed[1], name, dry_run=self.context.dry_run)

    def set_user_registry_value(
        self,
        path: str,
        name: str,
        data: object,
        kind: str = "string",
        *,
        include_default_profile: bool = True,
    ) -> List[str]:
        """!
        @brief Write an ``HKCU``-relative value into every user profile.
        """

        def apply(sid: str) -> None:
            root, key = registry_tools.user_key(sid, path)
            registry_tools.set_value(root, key, name, data, kind, dry_run=self.context.dry_run)

        return user_profiles.apply_to_all_users(
            apply,
            include_default_profile=include_default_profile,
            dry_run=self.context.dry_run,
        )


class ApplicationScript:
    """!
    @brief Base class for per-application deployment scripts.
    @details Subclasses set the identity attributes and override the hooks
    they need. Unused hooks are no-ops.
    """

    name: ClassVar[str] = ""
    vendor: ClassVar[str] = ""
    title: ClassVar[str] = ""
    version: ClassVar[str] = ""
    catalog_relative_path: ClassVar[str | None] = None

    def pre_installation(self, session: DeploymentSession) -> None:
        pass

    def installation(self, session: DeploymentSession) -> None:
        pass

    def post_installation(self, session: DeploymentSession) -> None:
        pass

    def pre_uninstallation(self, session: DeploymentSession) -> None:
        pass

    def uninstallation(self, session: DeploymentSession) -> None:
        pass

    def post_uninstallation(self, session: DeploymentSession) -> None:
        pass

    def pre_repair(self, session: DeploymentSession) -> None:
        pass

    def repair(self, session: DeploymentSession) -> None:
        pass

    def post_repair(self, session: DeploymentSession) -> None:
        pass


def run_deployment(
    script: ApplicationScript,
    context: DeploymentContext,
    *,
    session: DeploymentSession | None = None,
) -> int:
    """!
    @brief Run the phase sequence of ``context.deployment_type`` for ``script``.
    @returns The run's final exit code.
    """

    active = session or DeploymentSession(context)
    human_logger = active.human_logger
    machine_logger = active.machine_logger

    human_logger.info(
        "%s of %s starting in %s mode",
        context.deployment_type.value,
        context.installation_title or script.name,
        context.deploy_mode.value,
    )
    machine_logger.info(
        "deployment_start",
        extra={"event": "deployment_start", "script": script.name, "context": context.to_dict()},
    )

    for phase in context.deployment_type.phases:
        active.enter_phase(phase)
        human_logger.info("Phase %s", phase)
        machine_logger.info("phase_start", extra={"event": "phase_start", "phase": phase})
        started = time.monotonic()
        getattr(script, hook_name(phase))(active)
        machine_logger.info(
            "phase_end",
            extra={
                "event": "phase_end",
                "phase": phase,
                "duration": round(time.monotonic() - started, 3),
                "status": active.status.final,
            },
        )

    machine_logger.info(
        "deployment_end",
        extra={
            "event": "deployment_end",
            "script": script.name,
            "exit_code": active.status.final,
            "history": [list(item) for item in active.status.history],
        },
    )
    human_logger.info(
        "%s of %s finished with exit code %d",
        context.deployment_type.value,
        context.installation_title or script.name,
        active.status.final,
    )
    if active.status.reboot_required:
        human_logger.warning("A reboot is required to complete %s", context.installation_title or script.name)
    return active.status.final


__all__ = [
    "ApplicationScript",
    "DeploymentSession",
    "PhaseSequenceError",
    "hook_name",
    "run_deployment",
]
