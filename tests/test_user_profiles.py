"""!
@brief Tests for per-user registry application across profiles.
"""

from __future__ import annotations

import pathlib
import sys

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from app_deployer import constants, exec_utils, registry_tools, user_profiles  # noqa: E402

LOADED_SID = "S-1-5-21-100-200-300-1001"
UNLOADED_SID = "S-1-5-21-100-200-300-1002"


def _install_fake_registry(monkeypatch, tmp_path, *, loaded: set[str]) -> list[list[str]]:
    profile_dir = tmp_path / "jdoe"
    profile_dir.mkdir()
    (profile_dir / "NTUSER.DAT").write_bytes(b"")
    default_dir = tmp_path / "Default"
    default_dir.mkdir()
    (default_dir / "NTUSER.DAT").write_bytes(b"")

    values = {
        f"{constants.PROFILE_LIST_KEY}\\{LOADED_SID}": str(tmp_path / "admin"),
        f"{constants.PROFILE_LIST_KEY}\\{UNLOADED_SID}": str(profile_dir),
    }

    def fake_list(hive, path):
        assert path == constants.PROFILE_LIST_KEY
        return ["S-1-5-18", LOADED_SID, UNLOADED_SID]

    def fake_get(hive, path, name, default=None):
        if name == "Default":
            return str(default_dir)
        return values.get(path, default)

    commands: list[list[str]] = []

    def fake_run(command, *, event, dry_run=False, **kwargs):  # type: ignore[no-untyped-def]
        commands.append([str(part) for part in command])
        return exec_utils.CommandResult(
            command=list(command), returncode=0, stdout="", stderr="", duration=0.0, skipped=dry_run
        )

    monkeypatch.setattr(registry_tools, "list_subkeys", fake_list)
    monkeypatch.setattr(registry_tools, "get_value", fake_get)
    monkeypatch.setattr(registry_tools, "key_exists", lambda hive, path: path in loaded)
    monkeypatch.setattr(exec_utils, "run_command", fake_run)
    return commands


def test_list_user_profiles_skips_service_accounts(monkeypatch, tmp_path) -> None:
    _install_fake_registry(monkeypatch, tmp_path, loaded=set())

    sids = [profile.sid for profile in user_profiles.list_user_profiles()]

    assert sids == [LOADED_SID, UNLOADED_SID]


def test_apply_to_all_users_mounts_unloaded_hives(monkeypatch, tmp_path) -> None:
    """!
    @brief Loaded hives are written directly, others through reg load/unload.
    """

    commands = _install_fake_registry(monkeypatch, tmp_path, loaded={LOADED_SID})
    seen: list[str] = []

    applied = user_profiles.apply_to_all_users(seen.append, include_default_profile=True)

    assert seen == [LOADED_SID, UNLOADED_SID, user_profiles.DEFAULT_PROFILE_MOUNT]
    assert applied == seen
    assert [command[:3] for command in commands] == [
        ["reg.exe", "load", f"HKU\\{UNLOADED_SID}"],
        ["reg.exe", "unload", f"HKU\\{UNLOADED_SID}"],
        ["reg.exe", "load", f"HKU\\{user_profiles.DEFAULT_PROFILE_MOUNT}"],
        ["reg.exe", "unload", f"HKU\\{user_profiles.DEFAULT_PROFILE_MOUNT}"],
    ]


def test_hive_is_unloaded_when_callback_fails(monkeypatch, tmp_path) -> None:
    commands = _install_fake_registry(monkeypatch, tmp_path, loaded={LOADED_SID})

    def failing(sid: str) -> None:
        if sid == UNLOADED_SID:
            raise OSError("access denied")

    with pytest.raises(OSError):
        user_profiles.apply_to_all_users(failing)

    assert commands[-1][:2] == ["reg.exe", "unload"]


def test_profiles_without_hive_are_skipped(monkeypatch, tmp_path) -> None:
    commands = _install_fake_registry(monkeypatch, tmp_path, loaded=set())
    (tmp_path / "jdoe" / "NTUSER.DAT").unlink()

    seen: list[str] = []
    assert user_profiles.apply_to_all_users(seen.append) == []
    assert commands == []
