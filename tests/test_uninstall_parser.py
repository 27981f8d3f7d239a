"""!
@brief Tests for uninstall string classification.
@details Covers the four installer families, option tokenizing and the
command-line splitter in :mod:`app_deployer.uninstall_parser`.
"""

from __future__ import annotations

import pathlib
import sys

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from app_deployer import uninstall_parser  # noqa: E402
from app_deployer.uninstall_parser import UninstallKind, classify_uninstall_string  # noqa: E402

HDBOX_ILLUSTRATOR = (
    '"C:\\Program Files (x86)\\Common Files\\Adobe\\Adobe Desktop Common\\HDBox\\Uninstaller.exe" '
    "--uninstall=1 --sapCode=ILST --productVersion=26.3.1 --productPlatform=win64 "
    "--productAdobeCode={ILST-26.3.1-64-ADBEADBEADBEADBEADBEA}"
)

CC_LEGACY = (
    '"C:\\Program Files (x86)\\Adobe\\Adobe Creative Cloud\\Utils\\Creative Cloud Uninstaller.exe"'
)


def test_msi_uninstall_string_with_subkey_is_msi_packaged() -> None:
    """!
    @brief ``msiexec`` plus a product-code subkey classifies as MSI.
    """

    parsed = classify_uninstall_string(
        "MsiExec.exe /X{AC76BA86-7AD7-1033-7B44-AC0F074E4100}",
        "{ac76ba86-7ad7-1033-7b44-ac0f074e4100}",
    )

    assert parsed.kind is UninstallKind.MSI_PACKAGED
    assert parsed.product_code == "{AC76BA86-7AD7-1033-7B44-AC0F074E4100}"
    assert parsed.executable == "msiexec.exe"
    assert parsed.actionable


def test_msi_uninstall_string_without_subkey_is_not_msi() -> None:
    parsed = classify_uninstall_string("MsiExec.exe /X{AC76BA86-7AD7-1033-7B44-AC0F074E4100}")

    assert parsed.kind is UninstallKind.UNRECOGNIZED


def test_non_guid_subkey_is_kept_verbatim() -> None:
    parsed = classify_uninstall_string("msiexec /x foo", "  VendorProduct ")

    assert parsed.kind is UninstallKind.MSI_PACKAGED
    assert parsed.product_code == "VendorProduct"


def test_hdbox_string_extracts_catalog_keys() -> None:
    """!
    @brief HDBox strings yield the SAP code, version, base version and platform.
    """

    parsed = classify_uninstall_string(HDBOX_ILLUSTRATOR, "ILST_26_3_1")

    assert parsed.kind is UninstallKind.ADOBE_HDBOX_MANAGED
    assert parsed.sap_code == "ILST"
    assert parsed.product_version == "26.3.1"
    assert parsed.base_version == "26"
    assert parsed.product_platform == "win64"
    assert parsed.executable.endswith("HDBox\\Uninstaller.exe")
    assert parsed.options["productadobecode"] == "{ILST-26.3.1-64-ADBEADBEADBEADBEADBEA}"


def test_msi_rule_wins_over_hdbox_marker() -> None:
    text = HDBOX_ILLUSTRATOR + " msiexec"

    parsed = classify_uninstall_string(text, "{AC76BA86-7AD7-1033-7B44-AC0F074E4100}")

    assert parsed.kind is UninstallKind.MSI_PACKAGED


def test_hdbox_string_without_sap_code_is_unrecognized() -> None:
    text = (
        "C:\\Program Files (x86)\\Common Files\\Adobe\\Adobe Desktop Common\\HDBox\\Uninstaller.exe "
        "--uninstall=1 --productVersion=26.0"
    )

    parsed = classify_uninstall_string(text)

    assert parsed is uninstall_parser.UNRECOGNIZED
    assert not parsed.actionable


def test_hdbox_marker_matches_forward_slashes_and_case() -> None:
    text = "c:/program files (x86)/common files/adobe/ADOBE DESKTOP COMMON/HDBOX/Uninstaller.exe --sapCode=PHSP"

    parsed = classify_uninstall_string(text)

    assert parsed.kind is UninstallKind.ADOBE_HDBOX_MANAGED
    assert parsed.sap_code == "PHSP"
    assert parsed.product_version is None
    assert parsed.base_version is None


def test_sap_code_value_sharing_key_letters_is_intact() -> None:
    """!
    @brief A value that starts with letters of its key is not truncated.
    """

    text = (
        "C:\\Adobe Desktop Common\\HDBox\\Uninstaller.exe --sapCode=CODE --productVersion=code25"
    )

    parsed = classify_uninstall_string(text)

    assert parsed.sap_code == "CODE"
    assert parsed.product_version == "code25"
    assert parsed.base_version is None


def test_creative_cloud_legacy_uninstaller() -> None:
    parsed = classify_uninstall_string(CC_LEGACY, "Adobe Creative Cloud")

    assert parsed.kind is UninstallKind.ADOBE_CC_LEGACY
    assert parsed.executable.endswith("Creative Cloud Uninstaller.exe")
    assert not parsed.executable.startswith('"')


@pytest.mark.parametrize("text", ["", "   ", None, '"C:\\Program Files\\Vendor\\uninst.exe" /S'])
def test_other_strings_are_unrecognized(text) -> None:
    assert classify_uninstall_string(text, "Vendor").kind is UninstallKind.UNRECOGNIZED


def test_parsed_options_are_read_only() -> None:
    unrecognized = classify_uninstall_string("")
    hdbox = classify_uninstall_string(HDBOX_ILLUSTRATOR)

    with pytest.raises(TypeError):
        unrecognized.options["sapcode"] = "PHSP"  # type: ignore[index]
    with pytest.raises(TypeError):
        hdbox.options["sapcode"] = "PHSP"  # type: ignore[index]

    assert dict(classify_uninstall_string("").options) == {}
    assert hdbox.options["sapcode"] == "ILST"


def test_classification_is_pure() -> None:
    first = classify_uninstall_string(HDBOX_ILLUSTRATOR)
    second = classify_uninstall_string(HDBOX_ILLUSTRATOR)

    assert first == second


def test_parse_options_handles_quotes_flags_and_duplicates() -> None:
    options = uninstall_parser.parse_options(
        '--Mode="silent install" --force --sapCode=ILST --sapcode=PHSP --path=\'C:\\x y\''
    )

    assert options == {
        "mode": "silent install",
        "force": "",
        "sapcode": "ILST",
        "path": "C:\\x y",
    }


def test_parse_options_ignores_embedded_dashes() -> None:
    options = uninstall_parser.parse_options("C:\\tools\\a--b.exe --key=value")

    assert options == {"key": "value"}


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ('"C:\\Program Files\\App\\uninst.exe" /S', ("C:\\Program Files\\App\\uninst.exe", "/S")),
        ("C:\\Program Files\\App\\uninst.exe /S /norestart", ("C:\\Program Files\\App\\uninst.exe", "/S /norestart")),
        ("C:\\Program Files\\App\\uninst.exe", ("C:\\Program Files\\App\\uninst.exe", "")),
        (
            "C:\\Tools\\setup.exe files\\HDBox\\Uninstaller.exe --sapCode=X",
            ("C:\\Tools\\setup.exe files\\HDBox\\Uninstaller.exe", "--sapCode=X"),
        ),
        ("rundll32 shell32.dll,Control_RunDLL", ("rundll32", "shell32.dll,Control_RunDLL")),
        ('"C:\\unterminated\\x.exe', ("C:\\unterminated\\x.exe", "")),
        ("", ("", "")),
    ],
)
def test_split_command_line(text, expected) -> None:
    assert uninstall_parser.split_command_line(text) == expected


@pytest.mark.parametrize(
    ("version", "expected"),
    [("26.3.1", "26"), ("25", "25"), ("2024.1", "2024"), ("beta", None), ("", None), (None, None)],
)
def test_derive_base_version(version, expected) -> None:
    assert uninstall_parser.derive_base_version(version) == expected
