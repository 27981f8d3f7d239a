"""!
@brief Apply per-user registry settings to every local profile.
@details Profiles are enumerated from the machine ``ProfileList`` key. For a
profile whose hive is already mounted under ``HKU\\<SID>`` the callback runs
directly; otherwise the profile's ``NTUSER.DAT`` is mounted with
``reg load``, the callback runs, and the hive is unmounted again. The default
profile can be included so accounts created later inherit the settings.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List

from . import constants, exec_utils, logging_ext, registry_tools

USER_SID_PREFIX = "S-1-5-21-"
"""!
@brief Domain and local account SIDs; service accounts are excluded.
"""

DEFAULT_PROFILE_MOUNT = "AppDeployerDefaultProfile"


@dataclass(frozen=True)
class UserProfile:
    sid: str
    profile_path: Path

    @property
    def hive_path(self) -> Path:
        return self.profile_path / "NTUSER.DAT"


def list_user_profiles() -> List[UserProfile]:
    """!
    @brief Return user profiles registered under ``ProfileList``.
    """

    profiles: List[UserProfile] = []
    for sid in registry_tools.list_subkeys(constants.HKLM, constants.PROFILE_LIST_KEY):
        if not sid.startswith(USER_SID_PREFIX):
            continue
        image_path = registry_tools.get_value(
            constants.HKLM, f"{constants.PROFILE_LIST_KEY}\\{sid}", "ProfileImagePath"
        )
        if not image_path:
            continue
        profiles.append(UserProfile(sid=sid, profile_path=Path(os.path.expandvars(str(image_path)))))
    return profiles


def default_profile() -> UserProfile | None:
    """!
    @brief The template profile copied for new accounts, if it can be located.
    """

    directory = registry_tools.get_value(constants.HKLM, constants.PROFILE_LIST_KEY, "Default")
    if not directory:
        return None
    return UserProfile(
        sid=DEFAULT_PROFILE_MOUNT, profile_path=Path(os.path.expandvars(str(directory)))
    )


def _reg_hive(action: str, mount: str, *extra: str, dry_run: bool) -> bool:
    result = exec_utils.run_command(
        ["reg.exe", action, f"HKU\\{mount}", *extra],
        event=f"registry_hive_{action}",
        dry_run=dry_run,
        extra={"mount": mount},
    )
    return result.returncode == 0


def apply_to_all_users(
    callback: Callable[[str], None],
    *,
    include_default_profile: bool = False,
    dry_run: bool = False,
) -> List[str]:
    """!
    @brief Run ``callback(sid)`` once per user profile with its hive mounted.
    @details ``callback`` writes through ``registry_tools.user_key(sid, ...)``.
    Profiles whose hive cannot be mounted are skipped with a warning.
    @returns SIDs (or mount names) the callback ran for.
    """

    human_logger = logging_ext.get_human_logger()
    profiles = list_user_profiles()
    if include_default_profile:
        template = default_profile()
        if template is not None:
            profiles.append(template)

    applied: List[str] = []
    for profile in profiles:
        if registry_tools.key_exists(constants.HKU, profile.sid):
            callback(profile.sid)
            applied.append(profile.sid)
            continue

        if not profile.hive_path.exists() and not dry_run:
            human_logger.warning("No registry hive for profile %s at %s", profile.sid, profile.hive_path)
            continue

        if not _reg_hive("load", profile.sid, str(profile.hive_path), dry_run=dry_run):
            human_logger.warning("Unable to mount registry hive for %s", profile.sid)
            continue
        try:
            callback(profile.sid)
            applied.append(profile.sid)
        finally:
            if not _reg_hive("unload", profile.sid, dry_run=dry_run):
                human_logger.warning("Unable to unmount registry hive for %s", profile.sid)

    logging_ext.get_machine_logger().info(
        "user_settings_applied",
        extra={"event": "user_settings_applied", "profiles": applied, "dry_run": dry_run},
    )
    return applied


__all__ = [
    "UserProfile",
    "apply_to_all_users",
    "default_profile",
    "list_user_profiles",
]
