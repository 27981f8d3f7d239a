"""!
@brief Package version read from the bundled ``VERSION`` file.
"""
from __future__ import annotations

from importlib import resources

__all__ = ["__version__"]


def _load_version() -> str:
    try:
        return resources.files(__package__).joinpath("VERSION").read_text(encoding="utf-8").strip()
    except FileNotFoundError:  # pragma: no cover - source tree without data file
        return "0.0.0"


__version__ = _load_version()
