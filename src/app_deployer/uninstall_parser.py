"""!
@brief Classify uninstall strings by installer family.
@details Installed applications publish an ``UninstallString`` whose shape
identifies how they were installed. :func:`classify_uninstall_string` maps a
raw string to a :class:`ParsedUninstallCommand`, first match wins:

1. an ``msiexec`` invocation with a known Uninstall subkey is MSI packaged;
2. a path under ``Adobe Desktop Common\\HDBox`` is managed by Adobe's shared
   installer, and its ``--sapCode``/``--productVersion``/``--productPlatform``
   options are extracted;
3. the bundled ``Creative Cloud Uninstaller.exe`` is the legacy Creative Cloud
   uninstaller;
4. anything else is unrecognized.

Options are read with a real ``--key=value`` tokenizer. Values are never
recovered by trimming a literal prefix, so a value that shares characters with
its key name (``--sapCode=CODE``) is returned intact.

@note Classification is a pure function of its inputs.
"""
from __future__ import annotations

import enum
import re
import types
from dataclasses import dataclass, field
from typing import Dict, Mapping, Tuple

from . import constants, guid_utils

_OPTION_PATTERN = re.compile(
    r"""(?:^|\s)--(?P<key>[A-Za-z][\w.-]*)(?:=(?P<value>"[^"]*"?|'[^']*'?|[^\s"']*))?"""
)
"""!
@brief ``--key`` or ``--key=value`` with optionally quoted values.
"""

_LEADING_NUMBER = re.compile(r"\s*(\d+)")

_ARGUMENT_START = re.compile(r"\s(?:--|/)\S")
"""!
@brief First ``--option`` or ``/switch`` after the executable path.
"""


class UninstallKind(str, enum.Enum):
    """!
    @brief Installer families recognised by the classifier.
    """

    MSI_PACKAGED = "MsiPackaged"
    ADOBE_HDBOX_MANAGED = "AdobeHDBoxManaged"
    ADOBE_CC_LEGACY = "AdobeCreativeCloudLegacy"
    UNRECOGNIZED = "Unrecognized"


@dataclass(frozen=True)
class ParsedUninstallCommand:
    """!
    @brief Fields derived from one uninstall string.
    @details Only the fields relevant to ``kind`` are populated. ``options``
    holds every ``--key=value`` pair found, keyed by lower-cased option name.
    """

    kind: UninstallKind
    sap_code: str | None = None
    product_version: str | None = None
    base_version: str | None = None
    product_platform: str | None = None
    product_code: str | None = None
    executable: str | None = None
    options: Mapping[str, str] = field(default_factory=lambda: types.MappingProxyType({}))

    @property
    def actionable(self) -> bool:
        return self.kind is not UninstallKind.UNRECOGNIZED


UNRECOGNIZED = ParsedUninstallCommand(kind=UninstallKind.UNRECOGNIZED)


def split_command_line(text: str | None) -> Tuple[str, str]:
    """!
    @brief Split a Windows command line into executable and argument text.
    @details Handles quoted executables (``"C:\\A B\\x.exe" /S``) and unquoted
    paths that contain spaces but end in ``.exe``
    (``C:\\Program Files\\x.exe /S``). For unquoted paths the last ``.exe``
    before the first option wins, so directories named like executables stay
    part of the path.
    @returns ``(executable, arguments)``; both empty for blank input.
    """

    cleaned = (text or "").strip()
    if not cleaned:
        return "", ""

    if cleaned.startswith('"'):
        closing = cleaned.find('"', 1)
        if closing == -1:
            return cleaned[1:].strip(), ""
        return cleaned[1:closing].strip(), cleaned[closing + 1 :].strip()

    argument = _ARGUMENT_START.search(cleaned)
    head_end = argument.start() if argument else len(cleaned)
    lowered = cleaned[:head_end].lower()
    exe_index = lowered.rfind(".exe")
    while exe_index != -1:
        end = exe_index + len(".exe")
        if end == head_end or cleaned[end].isspace():
            return cleaned[:end], cleaned[end:].strip()
        exe_index = lowered.rfind(".exe", 0, exe_index)

    executable, _, arguments = cleaned.partition(" ")
    return executable, arguments.strip()


def parse_options(text: str | None) -> Dict[str, str]:
    """!
    @brief Tokenize ``--key=value`` pairs out of ``text``.
    @details Keys are lower-cased; surrounding quotes are removed from values;
    flags without ``=`` map to an empty string. The first occurrence of a key
    wins.
    """

    options: Dict[str, str] = {}
    for match in _OPTION_PATTERN.finditer(text or ""):
        key = match.group("key").lower()
        raw_value = match.group("value") or ""
        value = raw_value.strip().strip("\"'").strip()
        options.setdefault(key, value)
    return options


def derive_base_version(product_version: str | None) -> str | None:
    """!
    @brief Return the leading numeric component of ``product_version``.
    @details ``26.3.1`` yields ``26``; strings without a leading number yield
    ``None``.
    """

    if not product_version:
        return None
    match = _LEADING_NUMBER.match(product_version)
    return match.group(1) if match else None


def _normalise_subkey(subkey: str) -> str:
    cleaned = subkey.strip()
    if guid_utils.is_valid_guid(cleaned):
        return guid_utils.normalize_guid(cleaned)
    return cleaned


def _parse_hdbox(uninstall_string: str) -> ParsedUninstallCommand:
    executable, arguments = split_command_line(uninstall_string)
    options = parse_options(arguments)
    sap_code = options.get("sapcode") or None
    if not sap_code:
        return UNRECOGNIZED
    product_version = options.get("productversion") or None
    return ParsedUninstallCommand(
        kind=UninstallKind.ADOBE_HDBOX_MANAGED,
        sap_code=sap_code,
        product_version=product_version,
        base_version=derive_base_version(product_version),
        product_platform=options.get("productplatform") or None,
        executable=executable or None,
        options=types.MappingProxyType(options),
    )


def classify_uninstall_string(
    uninstall_string: str | None,
    uninstall_subkey: str | None = None,
) -> ParsedUninstallCommand:
    """!
    @brief Map a raw uninstall string onto a :class:`ParsedUninstallCommand`.
    @param uninstall_string Value of ``UninstallString``; may be empty.
    @param uninstall_subkey Name of the Uninstall subkey (the MSI product code
    for Windows Installer packages), when known.
    @returns The parsed command. HDBox strings lacking a SAP code come back as
    :data:`UNRECOGNIZED` since they cannot be resolved against a catalog.
    """

    text = (uninstall_string or "").strip()
    if not text:
        return UNRECOGNIZED

    lowered = text.lower().replace("/", "\\")
    subkey = (uninstall_subkey or "").strip()

    if constants.MSI_TOKEN in lowered and subkey:
        return ParsedUninstallCommand(
            kind=UninstallKind.MSI_PACKAGED,
            product_code=_normalise_subkey(subkey),
            executable=constants.MSIEXEC,
        )

    if constants.HDBOX_MARKER in lowered:
        return _parse_hdbox(text)

    if constants.CC_LEGACY_MARKER in lowered:
        executable, _ = split_command_line(text)
        return ParsedUninstallCommand(
            kind=UninstallKind.ADOBE_CC_LEGACY,
            executable=executable or None,
        )

    return UNRECOGNIZED


__all__ = [
    "ParsedUninstallCommand",
    "UNRECOGNIZED",
    "UninstallKind",
    "classify_uninstall_string",
    "derive_base_version",
    "parse_options",
    "split_command_line",
]
