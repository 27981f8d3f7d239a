"""!
@brief GUID helpers for Windows Installer product codes.
@details Uninstall subkeys of MSI packages are named after the product code.
These helpers recognise that form and normalise it to the braced, upper-case
``{XXXXXXXX-XXXX-XXXX-XXXX-XXXXXXXXXXXX}`` shape ``msiexec`` expects.
"""

from __future__ import annotations

import re
from typing import Final

_GUID_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^\{?([0-9A-Fa-f]{8})-?([0-9A-Fa-f]{4})-?([0-9A-Fa-f]{4})-?"
    r"([0-9A-Fa-f]{4})-?([0-9A-Fa-f]{12})\}?$"
)


class GuidError(ValueError):
    """!
    @brief Raised when a string cannot be interpreted as a GUID.
    """


def is_valid_guid(guid: str) -> bool:
    """!
    @brief Check if a string is a GUID, with or without braces and dashes.
    """
    return _GUID_PATTERN.match(guid.strip()) is not None


def normalize_guid(guid: str) -> str:
    """!
    @brief Return ``guid`` in braced, dashed, upper-case form.
    @throws GuidError If ``guid`` is not a GUID.
    """
    match = _GUID_PATTERN.match(guid.strip())
    if match is None:
        raise GuidError(f"Invalid GUID: {guid!r}")
    return "{" + "-".join(match.groups()).upper() + "}"


__all__ = ["GuidError", "is_valid_guid", "normalize_guid"]
