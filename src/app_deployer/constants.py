"""!
@brief Static data and enumerations for App Deployer.
@details Centralises registry roots, uninstall-string markers, installer
command templates and the exit-code contract shared with the endpoint
management agent so every module works from a single source of truth.
"""
from __future__ import annotations

from typing import Dict, FrozenSet, Tuple

try:  # pragma: no cover - Windows registry handles are optional on test hosts.
    import winreg
except ImportError:  # pragma: no cover - test scaffolding supplies substitutes.
    winreg = None  # type: ignore[assignment]


if winreg is not None:  # pragma: no branch - deterministic assignments.
    HKLM = winreg.HKEY_LOCAL_MACHINE
    HKCU = winreg.HKEY_CURRENT_USER
    HKCR = winreg.HKEY_CLASSES_ROOT
    HKU = winreg.HKEY_USERS
else:  # pragma: no cover - exercised implicitly in non-Windows CI.
    HKLM = 0x80000002
    HKCU = 0x80000001
    HKCR = 0x80000000
    HKU = 0x80000003


REGISTRY_ROOTS: Dict[str, int] = {
    "HKLM": HKLM,
    "HKEY_LOCAL_MACHINE": HKLM,
    "HKCU": HKCU,
    "HKEY_CURRENT_USER": HKCU,
    "HKCR": HKCR,
    "HKEY_CLASSES_ROOT": HKCR,
    "HKU": HKU,
    "HKEY_USERS": HKU,
}

UNINSTALL_ROOTS: Tuple[Tuple[int, str], ...] = (
    (HKLM, r"SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall"),
    (HKLM, r"SOFTWARE\WOW6432Node\Microsoft\Windows\CurrentVersion\Uninstall"),
    (HKCU, r"SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall"),
)
"""!
@brief Registry views enumerated when building the installed-programs inventory.
"""

PROFILE_LIST_KEY = r"SOFTWARE\Microsoft\Windows NT\CurrentVersion\ProfileList"
"""!
@brief Machine key listing every local user profile by SID.
"""

# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS = 0
EXIT_REBOOT_REQUIRED = 3010
"""!
@brief Success with a pending reboot; survives later non-zero codes.
"""

EXIT_GENERIC_FATAL = 60001
EXIT_INSTALLER_NOT_FOUND = 60002
EXIT_BOOTSTRAP_FAILURE = 60008

RESERVED_EXIT_RANGE = range(60000, 69000)
"""!
@brief Exit codes owned by the toolkit itself rather than vendor installers.
"""

# ---------------------------------------------------------------------------
# Uninstall string markers
# ---------------------------------------------------------------------------

MSI_TOKEN = "msiexec"
HDBOX_MARKER = "\\adobe desktop common\\hdbox\\"
CC_LEGACY_MARKER = "\\adobe creative cloud\\utils\\creative cloud uninstaller.exe"

HDBOX_DIRECTORY = r"C:\Program Files (x86)\Common Files\Adobe\Adobe Desktop Common\HDBox"
HDBOX_SETUP_EXECUTABLE = HDBOX_DIRECTORY + r"\Setup.exe"
"""!
@brief Adobe managed-setup binary used for catalog driven uninstalls.
"""

CATALOG_SECTIONS: Tuple[str, ...] = ("RIBS", "HD")
"""!
@brief Independent product-list sections searched in Adobe deployment XML.
"""

# ---------------------------------------------------------------------------
# Installer command templates
# ---------------------------------------------------------------------------

MSIEXEC = "msiexec.exe"
MSI_UNINSTALL_ARGS: Tuple[str, ...] = ("REBOOT=ReallySuppress", "/qn")
MSI_INSTALL_ARGS: Tuple[str, ...] = ("REBOOT=ReallySuppress", "/qn")

MSI_IGNORED_EXIT_CODES: FrozenSet[int] = frozenset({1605, 1614})
"""!
@brief ``msiexec`` codes meaning the product is already absent.
"""

HDBOX_IGNORED_EXIT_CODES: FrozenSet[int] = frozenset()
CC_LEGACY_IGNORED_EXIT_CODES: FrozenSet[int] = frozenset()

HDBOX_SETTLE_SECONDS = 5.0
"""!
@brief Pause after HDBox ``Setup.exe`` so it releases its lock files.
"""

CC_LEGACY_SILENT_FLAG = "-uninstall"

DEFAULT_COMMAND_TIMEOUT = 3600
"""!
@brief Maximum seconds to wait for a single installer invocation.
"""

DEPLOYMENT_TYPES: Tuple[str, ...] = ("Install", "Uninstall", "Repair")
DEPLOY_MODES: Tuple[str, ...] = ("Interactive", "Silent", "NonInteractive")

LOGDIR_ENVIRONMENT_VARIABLE = "APP_DEPLOYER_LOGDIR"
