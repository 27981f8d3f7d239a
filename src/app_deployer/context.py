"""!
@brief Immutable deployment context shared by every component.
@details The context bundles what a deployment run needs to know about itself
(application identity, deployment type and mode, media and log locations,
dry-run and timeout settings) into a frozen dataclass that is passed
explicitly to phases, resolvers and dispatchers.
"""
from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Tuple

from . import constants


class DeploymentType(str, enum.Enum):
    """!
    @brief Requested deployment action.
    """

    INSTALL = "Install"
    UNINSTALL = "Uninstall"
    REPAIR = "Repair"

    @property
    def phases(self) -> Tuple[str, str, str]:
        """!
        @brief Ordered phase names run for this deployment type.
        """

        base = _PHASE_BASE_NAMES[self]
        return (f"Pre-{base}", base, f"Post-{base}")


_PHASE_BASE_NAMES: Dict[DeploymentType, str] = {
    DeploymentType.INSTALL: "Installation",
    DeploymentType.UNINSTALL: "Uninstallation",
    DeploymentType.REPAIR: "Repair",
}


class DeployMode(str, enum.Enum):
    INTERACTIVE = "Interactive"
    SILENT = "Silent"
    NON_INTERACTIVE = "NonInteractive"


@dataclass(frozen=True)
class DeploymentContext:
    """!
    @brief Everything a single deployment run is parameterised by.
    """

    app_vendor: str
    app_name: str
    app_version: str = ""
    deployment_type: DeploymentType = DeploymentType.INSTALL
    deploy_mode: DeployMode = DeployMode.INTERACTIVE
    files_dir: Path = field(default_factory=lambda: Path("Files"))
    log_dir: Path = field(default_factory=lambda: default_log_directory())
    dry_run: bool = False
    timeout: float | None = constants.DEFAULT_COMMAND_TIMEOUT
    catalog_path: Path | None = None

    @property
    def installation_title(self) -> str:
        parts = [self.app_vendor, self.app_name, self.app_version]
        return " ".join(part for part in parts if part)

    @property
    def is_interactive(self) -> bool:
        return self.deploy_mode is DeployMode.INTERACTIVE

    def to_dict(self) -> Dict[str, object]:
        return {
            "app_vendor": self.app_vendor,
            "app_name": self.app_name,
            "app_version": self.app_version,
            "deployment_type": self.deployment_type.value,
            "deploy_mode": self.deploy_mode.value,
            "files_dir": str(self.files_dir),
            "log_dir": str(self.log_dir),
            "dry_run": self.dry_run,
            "timeout": self.timeout,
            "catalog_path": str(self.catalog_path) if self.catalog_path else None,
        }


def default_log_directory() -> Path:
    """!
    @brief Resolve the log directory when none is supplied on the command line.
    @details ``APP_DEPLOYER_LOGDIR`` wins; otherwise ``%ProgramData%`` on
    Windows and the user's home directory elsewhere.
    """

    override = os.environ.get(constants.LOGDIR_ENVIRONMENT_VARIABLE)
    if override:
        return Path(override).expanduser()
    if os.name == "nt":
        program_data = os.environ.get("ProgramData", r"C:\ProgramData")
        return Path(program_data) / "AppDeployer" / "Logs"
    return Path.home() / ".app-deployer" / "logs"


__all__ = ["DeployMode", "DeploymentContext", "DeploymentType", "default_log_directory"]
