"""!
@brief Installed-application inventory from the Uninstall registry keys.
@details Enumerates the 64-bit, 32-bit (``WOW6432Node``) and per-user
Uninstall views and returns :class:`InstalledApplication` records whose
display names match a query. The records are read-only inputs to the
uninstall-string classifier.
"""
from __future__ import annotations

import fnmatch
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

from . import constants, guid_utils, logging_ext, registry_tools

MATCH_MODES = ("contains", "exact", "wildcard", "regex")


@dataclass(frozen=True)
class InstalledApplication:
    """!
    @brief One entry of the installed-programs view.
    @details ``uninstall_subkey`` is the Uninstall subkey name; for Windows
    Installer packages that is the product code.
    """

    display_name: str
    uninstall_string: str
    uninstall_subkey: str | None = None
    display_version: str = ""
    publisher: str = ""
    handle: str = ""
    windows_installer: bool = False

    @property
    def product_code(self) -> str | None:
        """!
        @brief Normalised product code when the subkey is a GUID.
        """

        if self.uninstall_subkey and guid_utils.is_valid_guid(self.uninstall_subkey):
            return guid_utils.normalize_guid(self.uninstall_subkey)
        return None

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "display_name": self.display_name,
            "uninstall_string": self.uninstall_string,
            "display_version": self.display_version,
            "publisher": self.publisher,
            "windows_installer": self.windows_installer,
        }
        if self.uninstall_subkey:
            payload["uninstall_subkey"] = self.uninstall_subkey
        if self.handle:
            payload["handle"] = self.handle
        return payload


def _name_matches(display_name: str, patterns: Sequence[str], mode: str) -> bool:
    lowered = display_name.lower()
    for pattern in patterns:
        if mode == "exact" and display_name == pattern:
            return True
        if mode == "contains" and pattern.lower() in lowered:
            return True
        if mode == "wildcard" and fnmatch.fnmatch(lowered, pattern.lower()):
            return True
        if mode == "regex" and re.search(pattern, display_name, re.IGNORECASE):
            return True
    return False


def _as_flag(value: object) -> bool:
    try:
        return int(value) == 1  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return False


def iter_uninstall_entries(
    roots: Iterable[Tuple[int, str]] = constants.UNINSTALL_ROOTS,
) -> Iterable[InstalledApplication]:
    """!
    @brief Yield every Uninstall entry that carries a ``DisplayName``.
    @details System components (``SystemComponent=1``) are skipped the way the
    Programs and Features view hides them.
    """

    for hive, base in roots:
        for subkey in registry_tools.list_subkeys(hive, base):
            path = f"{base}\\{subkey}"
            values = registry_tools.read_values(hive, path)
            display_name = str(values.get("DisplayName") or "").strip()
            if not display_name or _as_flag(values.get("SystemComponent")):
                continue
            yield InstalledApplication(
                display_name=display_name,
                uninstall_string=str(values.get("UninstallString") or "").strip(),
                uninstall_subkey=subkey,
                display_version=str(values.get("DisplayVersion") or "").strip(),
                publisher=str(values.get("Publisher") or "").strip(),
                handle=f"{registry_tools.hive_name(hive)}\\{path}",
                windows_installer=_as_flag(values.get("WindowsInstaller")),
            )


def get_installed_applications(
    names: str | Sequence[str],
    *,
    match: str = "contains",
    roots: Iterable[Tuple[int, str]] = constants.UNINSTALL_ROOTS,
) -> List[InstalledApplication]:
    """!
    @brief Return installed applications whose display name matches ``names``.
    @param names One name or a list of names/patterns.
    @param match ``contains`` (case-insensitive substring, default), ``exact``,
    ``wildcard`` (``fnmatch``) or ``regex``.
    @param roots Registry views to enumerate.
    @returns Matches in registry enumeration order; the same product seen in
    two views is reported once.
    """

    if match not in MATCH_MODES:
        raise ValueError(f"Unsupported match mode {match!r}; expected one of {MATCH_MODES}")
    patterns = [names] if isinstance(names, str) else [str(name) for name in names]
    patterns = [pattern for pattern in patterns if pattern]

    human_logger = logging_ext.get_human_logger()
    machine_logger = logging_ext.get_machine_logger()

    results: List[InstalledApplication] = []
    seen: set[Tuple[str, str, str]] = set()
    for application in iter_uninstall_entries(roots):
        if not _name_matches(application.display_name, patterns, match):
            continue
        identity = (
            application.display_name,
            application.uninstall_subkey or "",
            application.uninstall_string,
        )
        if identity in seen:
            continue
        seen.add(identity)
        results.append(application)

    human_logger.info(
        "Found %d installed application(s) matching %s", len(results), ", ".join(patterns)
    )
    machine_logger.info(
        "inventory_query",
        extra={
            "event": "inventory_query",
            "names": patterns,
            "match": match,
            "results": [application.to_dict() for application in results],
        },
    )
    return results


__all__ = [
    "InstalledApplication",
    "MATCH_MODES",
    "get_installed_applications",
    "iter_uninstall_entries",
]
