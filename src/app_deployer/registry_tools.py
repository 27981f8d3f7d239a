"""!
@brief Registry access helpers.
@details Thin wrappers over ``winreg`` for reading uninstall metadata and
writing configuration values, including values scoped to a specific user
profile through ``HKU\\<SID>``. Handles are always closed and 64-bit views
are requested so a 32-bit interpreter sees the native hive.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Tuple

from . import constants, logging_ext

try:  # pragma: no cover - exercised through mocks on non-Windows platforms.
    import winreg
except ImportError:  # pragma: no cover - handled gracefully during tests.
    winreg = None  # type: ignore[assignment]


VALUE_KINDS = ("string", "expand_string", "dword", "qword", "multi_string")


def _ensure_winreg() -> None:
    """!
    @brief Raise an informative error when ``winreg`` is unavailable.
    """

    if winreg is None:  # pragma: no cover - simplifies non-Windows test runs.
        raise FileNotFoundError("Windows registry APIs are unavailable on this platform")


def _view_flag() -> int:
    return getattr(winreg, "KEY_WOW64_64KEY", 0)


@contextmanager
def open_key(root: int, path: str, access: int | None = None) -> Iterator[Any]:
    """!
    @brief Context manager around ``winreg.OpenKey`` that always closes the handle.
    """

    _ensure_winreg()
    access_mask = access if access is not None else winreg.KEY_READ  # type: ignore[union-attr]
    handle = winreg.OpenKey(root, path, 0, access_mask | _view_flag())  # type: ignore[union-attr]
    try:
        yield handle
    finally:
        winreg.CloseKey(handle)  # type: ignore[union-attr]


def iter_subkeys(root: int, path: str) -> Iterator[str]:
    """!
    @brief Yield subkey names for ``root``/``path``.
    """

    _ensure_winreg()
    with open_key(root, path) as handle:
        subkey_count, _, _ = winreg.QueryInfoKey(handle)  # type: ignore[union-attr]
        for index in range(subkey_count):
            yield winreg.EnumKey(handle, index)  # type: ignore[union-attr]


def iter_values(root: int, path: str) -> Iterator[Tuple[str, Any]]:
    _ensure_winreg()
    with open_key(root, path) as handle:
        _, value_count, _ = winreg.QueryInfoKey(handle)  # type: ignore[union-attr]
        for index in range(value_count):
            name, value, _ = winreg.EnumValue(handle, index)  # type: ignore[union-attr]
            yield name, value


def list_subkeys(root: int, path: str) -> list[str]:
    """!
    @brief Return subkey names, or an empty list when the key is missing.
    """

    try:
        return list(iter_subkeys(root, path))
    except OSError:
        return []


def read_values(root: int, path: str) -> Dict[str, Any]:
    """!
    @brief Read all values beneath ``root``/``path`` into a dictionary.
    @details Missing keys and access errors yield an empty mapping.
    """

    try:
        return dict(iter_values(root, path))
    except OSError:
        return {}


def get_value(root: int, path: str, value_name: str, default: Any | None = None) -> Any | None:
    try:
        _ensure_winreg()
        with open_key(root, path) as handle:
            value, _ = winreg.QueryValueEx(handle, value_name)  # type: ignore[union-attr]
            return value
    except OSError:
        return default


def key_exists(root: int, path: str) -> bool:
    try:
        _ensure_winreg()
        with open_key(root, path):
            return True
    except OSError:
        return False


def _value_type(kind: str) -> int:
    """!
    @brief Map a friendly value kind onto the ``winreg.REG_*`` constant.
    """

    _ensure_winreg()
    mapping = {
        "string": winreg.REG_SZ,  # type: ignore[union-attr]
        "expand_string": winreg.REG_EXPAND_SZ,  # type: ignore[union-attr]
        "dword": winreg.REG_DWORD,  # type: ignore[union-attr]
        "qword": winreg.REG_QWORD,  # type: ignore[union-attr]
        "multi_string": winreg.REG_MULTI_SZ,  # type: ignore[union-attr]
    }
    try:
        return mapping[kind.lower()]
    except KeyError:
        raise ValueError(f"Unsupported registry value kind: {kind!r}") from None


def set_value(
    root: int,
    path: str,
    value_name: str,
    data: Any,
    kind: str = "string",
    *,
    dry_run: bool = False,
) -> None:
    """!
    @brief Create ``root``/``path`` if needed and write ``value_name``.
    @param kind One of :data:`VALUE_KINDS`.
    @param dry_run When ``True`` only the intent is logged.
    """

    if kind.lower() not in VALUE_KINDS:
        raise ValueError(f"Unsupported registry value kind: {kind!r}")

    human_logger = logging_ext.get_human_logger()
    machine_logger = logging_ext.get_machine_logger()

    handle_name = f"{hive_name(root)}\\{path}"
    machine_logger.info(
        "registry_set_value",
        extra={
            "event": "registry_set_value",
            "key": handle_name,
            "value_name": value_name,
            "data": data,
            "kind": kind,
            "dry_run": dry_run,
        },
    )
    if dry_run:
        human_logger.info("Would set %s\\%s = %r [dry-run]", handle_name, value_name, data)
        return

    _ensure_winreg()
    if kind.lower() in {"dword", "qword"}:
        data = int(data)
    handle = winreg.CreateKeyEx(  # type: ignore[union-attr]
        root, path, 0, winreg.KEY_WRITE | _view_flag()  # type: ignore[union-attr]
    )
    try:
        winreg.SetValueEx(handle, value_name, 0, _value_type(kind), data)  # type: ignore[union-attr]
    finally:
        winreg.CloseKey(handle)  # type: ignore[union-attr]
    human_logger.info("Set %s\\%s = %r", handle_name, value_name, data)


def delete_value(root: int, path: str, value_name: str, *, dry_run: bool = False) -> bool:
    """!
    @brief Remove ``value_name`` beneath ``root``/``path``.
    @returns ``True`` when a value was deleted, ``False`` when it was absent.
    """

    machine_logger = logging_ext.get_machine_logger()
    machine_logger.info(
        "registry_delete_value",
        extra={
            "event": "registry_delete_value",
            "key": f"{hive_name(root)}\\{path}",
            "value_name": value_name,
            "dry_run": dry_run,
        },
    )
    if dry_run:
        return False
    try:
        _ensure_winreg()
        with open_key(root, path, winreg.KEY_SET_VALUE) as handle:  # type: ignore[union-attr]
            winreg.DeleteValue(handle, value_name)  # type: ignore[union-attr]
    except FileNotFoundError:
        return False
    return True


def user_key(sid: str, path: str) -> Tuple[int, str]:
    """!
    @brief Translate an ``HKCU``-relative path into the ``HKU\\<SID>`` equivalent.
    """

    cleaned_sid = sid.strip().strip("\\")
    if not cleaned_sid:
        raise ValueError("sid must be non-empty")
    relative = path.lstrip("\\")
    return constants.HKU, f"{cleaned_sid}\\{relative}"


def parse_handle(handle: str) -> Tuple[int, str] | None:
    """!
    @brief Break a ``HKLM\\...`` style handle into hive/path components.
    """

    cleaned = str(handle).strip()
    if not cleaned or "\\" not in cleaned:
        return None
    prefix, _, path = cleaned.partition("\\")
    hive = constants.REGISTRY_ROOTS.get(prefix.rstrip(":").upper())
    if hive is None or not path:
        return None
    return hive, path


def hive_name(root: int) -> str:
    """!
    @brief Provide a friendly identifier for a registry hive.
    """

    mapping = {
        constants.HKLM: "HKLM",
        constants.HKCU: "HKCU",
        constants.HKU: "HKU",
        constants.HKCR: "HKCR",
    }
    return mapping.get(root, hex(root))


__all__ = [
    "VALUE_KINDS",
    "delete_value",
    "get_value",
    "hive_name",
    "iter_subkeys",
    "iter_values",
    "key_exists",
    "list_subkeys",
    "open_key",
    "parse_handle",
    "read_values",
    "set_value",
    "user_key",
]
