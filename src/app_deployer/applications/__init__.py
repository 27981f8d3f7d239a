"""!
@brief Registry of bundled application scripts.
"""
from __future__ import annotations

from typing import Dict, List, Type

from ..session import ApplicationScript
from .adobe_reader import AdobeReader
from .pycharm import PyCharmCommunity, PyCharmProfessional
from .virtualbox import VirtualBox

SCRIPTS: Dict[str, Type[ApplicationScript]] = {
    script.name: script
    for script in (AdobeReader, VirtualBox, PyCharmCommunity, PyCharmProfessional)
}


def available() -> List[str]:
    return sorted(SCRIPTS)


def get_script(name: str) -> ApplicationScript:
    """!
    @brief Instantiate the script registered under ``name``.
    @throws KeyError When no script has that name.
    """

    try:
        return SCRIPTS[name.lower()]()
    except KeyError:
        raise KeyError(f"Unknown application {name!r}; choose from {', '.join(available())}") from None


__all__ = ["SCRIPTS", "available", "get_script"]
