"""!
@brief Turn installed applications into concrete silent-uninstall targets.
@details Each application's uninstall string is classified by
:mod:`app_deployer.uninstall_parser`. MSI packages and legacy Creative Cloud
uninstallers map to a single command; HDBox-managed products are resolved
against the product catalog and yield one command per matching entry.
Unrecognized or unresolvable applications are logged and produce nothing.
Resolution has no side effects other than logging, so running it twice over
the same inventory yields the same targets.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Tuple

from . import constants, logging_ext
from .catalog import ProductCatalog, ProductCatalogEntry, find_entries
from .inventory import InstalledApplication
from .uninstall_parser import ParsedUninstallCommand, UninstallKind, classify_uninstall_string


@dataclass(frozen=True)
class UninstallTarget:
    """!
    @brief One external uninstaller invocation.
    """

    kind: UninstallKind
    display_name: str
    command: Tuple[str, ...]
    ignore_exit_codes: FrozenSet[int] = frozenset()
    settle_seconds: float = 0.0
    catalog_entry: ProductCatalogEntry | None = None

    @property
    def event(self) -> str:
        return {
            UninstallKind.MSI_PACKAGED: "msi_uninstall",
            UninstallKind.ADOBE_HDBOX_MANAGED: "hdbox_uninstall",
            UninstallKind.ADOBE_CC_LEGACY: "cc_legacy_uninstall",
        }.get(self.kind, "uninstall")


def build_msi_uninstall_command(product_code: str) -> Tuple[str, ...]:
    """!
    @brief ``msiexec`` removal of ``product_code`` with no UI and no reboot.
    """

    if not product_code:
        raise ValueError("product_code must be non-empty")
    return (constants.MSIEXEC, "/x", product_code, *constants.MSI_UNINSTALL_ARGS)


def build_hdbox_uninstall_command(
    entry: ProductCatalogEntry,
    *,
    platform: str | None = None,
    setup_executable: str = constants.HDBOX_SETUP_EXECUTABLE,
) -> Tuple[str, ...]:
    """!
    @brief HDBox ``Setup.exe`` invocation for one catalog entry.
    @details User preferences are always preserved.
    """

    resolved_platform = entry.platform or platform or ""
    return (
        setup_executable,
        "--uninstall=1",
        f"--sapCode={entry.sap_code}",
        f"--baseVersion={entry.version}",
        f"--platform={resolved_platform}",
        "--deleteUserPreferences=false",
    )


def build_cc_legacy_uninstall_command(executable: str) -> Tuple[str, ...]:
    return (executable, constants.CC_LEGACY_SILENT_FLAG)


def _log_skip(application: InstalledApplication, reason: str, **details: object) -> None:
    human_logger = logging_ext.get_human_logger()
    machine_logger = logging_ext.get_machine_logger()
    human_logger.warning("Skipping %s: %s", application.display_name, reason.replace("_", " "))
    machine_logger.info(
        reason,
        extra={
            "event": reason,
            "display_name": application.display_name,
            "uninstall_string": application.uninstall_string,
            **details,
        },
    )


def targets_for_application(
    application: InstalledApplication,
    catalog: ProductCatalog | None = None,
    *,
    setup_executable: str = constants.HDBOX_SETUP_EXECUTABLE,
) -> List[UninstallTarget]:
    """!
    @brief Resolve one application to zero or more targets.
    """

    parsed: ParsedUninstallCommand = classify_uninstall_string(
        application.uninstall_string, application.uninstall_subkey
    )

    if not parsed.actionable:
        _log_skip(application, "uninstall_unrecognized")
        return []

    if parsed.kind is UninstallKind.MSI_PACKAGED and parsed.product_code:
        return [
            UninstallTarget(
                kind=parsed.kind,
                display_name=application.display_name,
                command=build_msi_uninstall_command(parsed.product_code),
                ignore_exit_codes=constants.MSI_IGNORED_EXIT_CODES,
            )
        ]

    if parsed.kind is UninstallKind.ADOBE_HDBOX_MANAGED:
        if catalog is None:
            _log_skip(application, "catalog_unavailable", sap_code=parsed.sap_code)
            return []
        matches = find_entries(catalog, parsed.sap_code or "", parsed.base_version)
        if not matches:
            _log_skip(
                application,
                "catalog_no_match",
                sap_code=parsed.sap_code,
                base_version=parsed.base_version,
            )
            return []
        return [
            UninstallTarget(
                kind=parsed.kind,
                display_name=application.display_name,
                command=build_hdbox_uninstall_command(
                    entry, platform=parsed.product_platform, setup_executable=setup_executable
                ),
                ignore_exit_codes=constants.HDBOX_IGNORED_EXIT_CODES,
                settle_seconds=constants.HDBOX_SETTLE_SECONDS,
                catalog_entry=entry,
            )
            for entry in matches
        ]

    if parsed.kind is UninstallKind.ADOBE_CC_LEGACY and parsed.executable:
        return [
            UninstallTarget(
                kind=parsed.kind,
                display_name=application.display_name,
                command=build_cc_legacy_uninstall_command(parsed.executable),
                ignore_exit_codes=constants.CC_LEGACY_IGNORED_EXIT_CODES,
            )
        ]

    _log_skip(application, "uninstall_unrecognized")
    return []


def resolve_targets(
    applications: Iterable[InstalledApplication],
    catalog: ProductCatalog | None = None,
    *,
    setup_executable: str = constants.HDBOX_SETUP_EXECUTABLE,
) -> List[UninstallTarget]:
    """!
    @brief Resolve every application in ``applications``, preserving order.
    """

    targets: List[UninstallTarget] = []
    for application in applications:
        targets.extend(
            targets_for_application(application, catalog, setup_executable=setup_executable)
        )

    logging_ext.get_machine_logger().info(
        "uninstall_targets",
        extra={
            "event": "uninstall_targets",
            "targets": [
                {"kind": target.kind.value, "name": target.display_name, "command": list(target.command)}
                for target in targets
            ],
        },
    )
    return targets


__all__ = [
    "UninstallTarget",
    "build_cc_legacy_uninstall_command",
    "build_hdbox_uninstall_command",
    "build_msi_uninstall_command",
    "resolve_targets",
    "targets_for_application",
]
