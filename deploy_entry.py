"""!
@brief Shim entry point for App Deployer.
@details Makes the package in ``src/`` importable, checks that the toolkit
modules load, and hands control to :func:`app_deployer.main.main`. When the
toolkit itself cannot be imported no phase can run, so the shim exits with
the reserved bootstrap failure code instead of a traceback.
"""

from __future__ import annotations

import os
import sys
import time

__all__ = ["main"]

EXIT_BOOTSTRAP_FAILURE = 60008
"""!
@brief Mirrors ``app_deployer.constants.EXIT_BOOTSTRAP_FAILURE``; the shim
cannot import it when the package is broken.
"""

_STARTUP_TIME = time.perf_counter()

_REPO_ROOT = os.path.dirname(os.path.abspath(__file__))
_SRC_PATH = os.path.join(_REPO_ROOT, "src")

_TOOLKIT_MODULES = (
    "app_deployer.constants",
    "app_deployer.logging_ext",
    "app_deployer.exec_utils",
    "app_deployer.registry_tools",
    "app_deployer.session",
    "app_deployer.applications",
    "app_deployer.main",
)


def _log_init(message: str) -> None:
    """Print a bootstrap message with a dmesg-style timestamp."""
    print(f"[{time.perf_counter() - _STARTUP_TIME:12.6f}] {message}", file=sys.stderr, flush=True)


def _is_frozen() -> bool:
    """Check if running as a PyInstaller bundle."""
    return hasattr(sys, "_MEIPASS")


def _prepend_src_to_sys_path() -> None:
    if _is_frozen():
        return
    if os.path.isdir(_SRC_PATH) and _SRC_PATH not in sys.path:
        sys.path.insert(0, _SRC_PATH)


def load_toolkit(modules=_TOOLKIT_MODULES) -> list[str]:
    """!
    @brief Import every toolkit module.
    @returns Names of the modules that failed to import.
    """

    failures: list[str] = []
    for name in modules:
        try:
            __import__(name)
        except ImportError as exc:
            _log_init(f"Failed to load {name}: {exc}")
            failures.append(name)
    return failures


def main(argv: list[str] | None = None) -> int:
    """!
    @brief Verify the toolkit loads, then run the package entry point.
    @returns Exit status from :func:`app_deployer.main.main`, or
    :data:`EXIT_BOOTSTRAP_FAILURE` when the toolkit cannot be loaded.
    """

    _prepend_src_to_sys_path()
    if load_toolkit(_TOOLKIT_MODULES):
        _log_init(f"Toolkit bootstrap failed; exiting with {EXIT_BOOTSTRAP_FAILURE}")
        return EXIT_BOOTSTRAP_FAILURE

    from app_deployer.main import main as package_main

    return package_main(argv)


if __name__ == "__main__":  # pragma: no cover - manual invocation
    sys.exit(main())
