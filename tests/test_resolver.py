"""!
@brief Tests for uninstall target resolution.
"""

from __future__ import annotations

import pathlib
import sys

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from app_deployer import catalog, constants, resolver  # noqa: E402
from app_deployer.inventory import InstalledApplication  # noqa: E402
from app_deployer.uninstall_parser import UninstallKind  # noqa: E402

CATALOG = catalog.parse_catalog(
    """<Deployment>
      <RIBS><Media><SAPCode>ILST</SAPCode><BaseVersion>26.0</BaseVersion><Platform>win64</Platform></Media></RIBS>
      <HD>
        <Media SAPCode="ILST" BaseVersion="26.3" Platform="win64"/>
        <Media SAPCode="PHSP" BaseVersion="25.0" Platform=""/>
      </HD>
    </Deployment>"""
)

HDBOX = "C:\\Program Files (x86)\\Common Files\\Adobe\\Adobe Desktop Common\\HDBox\\Uninstaller.exe"


def _hdbox_app(sap_code: str, version: str, platform: str = "win64") -> InstalledApplication:
    return InstalledApplication(
        display_name=f"Adobe {sap_code}",
        uninstall_string=(
            f'"{HDBOX}" --uninstall=1 --sapCode={sap_code} --productVersion={version} '
            f"--productPlatform={platform}"
        ),
        uninstall_subkey=f"{sap_code}_{version}",
    )


def test_msi_application_resolves_to_msiexec_removal() -> None:
    app = InstalledApplication(
        display_name="Adobe Acrobat Reader DC",
        uninstall_string="MsiExec.exe /I{AC76BA86-7AD7-1033-7B44-AC0F074E4100}",
        uninstall_subkey="{AC76BA86-7AD7-1033-7B44-AC0F074E4100}",
    )

    [target] = resolver.resolve_targets([app])

    assert target.kind is UninstallKind.MSI_PACKAGED
    assert target.command == (
        "msiexec.exe",
        "/x",
        "{AC76BA86-7AD7-1033-7B44-AC0F074E4100}",
        "REBOOT=ReallySuppress",
        "/qn",
    )
    assert target.ignore_exit_codes == constants.MSI_IGNORED_EXIT_CODES
    assert target.event == "msi_uninstall"


def test_hdbox_application_yields_one_target_per_catalog_entry() -> None:
    """!
    @brief Listings in both catalog sections each produce a Setup.exe call.
    """

    targets = resolver.resolve_targets([_hdbox_app("ILST", "26.3.1")], CATALOG)

    assert [target.catalog_entry.section for target in targets] == ["RIBS", "HD"]
    assert targets[0].command == (
        constants.HDBOX_SETUP_EXECUTABLE,
        "--uninstall=1",
        "--sapCode=ILST",
        "--baseVersion=26.0",
        "--platform=win64",
        "--deleteUserPreferences=false",
    )
    assert targets[1].command[3] == "--baseVersion=26.3"
    assert all(target.settle_seconds == constants.HDBOX_SETTLE_SECONDS for target in targets)
    assert all(target.event == "hdbox_uninstall" for target in targets)


def test_hdbox_platform_falls_back_to_uninstall_string() -> None:
    [target] = resolver.resolve_targets([_hdbox_app("PHSP", "25.4", platform="win32")], CATALOG)

    assert "--platform=win32" in target.command


def test_hdbox_without_catalog_or_match_yields_nothing() -> None:
    app = _hdbox_app("ILST", "27.0")

    assert resolver.resolve_targets([app]) == []
    assert resolver.resolve_targets([app], CATALOG) == []


def test_legacy_creative_cloud_uninstaller() -> None:
    exe = "C:\\Program Files (x86)\\Adobe\\Adobe Creative Cloud\\Utils\\Creative Cloud Uninstaller.exe"
    app = InstalledApplication(display_name="Adobe Creative Cloud", uninstall_string=f'"{exe}"')

    [target] = resolver.resolve_targets([app])

    assert target.kind is UninstallKind.ADOBE_CC_LEGACY
    assert target.command == (exe, "-uninstall")


def test_unrecognized_application_yields_zero_targets() -> None:
    app = InstalledApplication(
        display_name="Something Else",
        uninstall_string='"C:\\Program Files\\Vendor\\uninst.exe" /S',
    )

    assert resolver.resolve_targets([app], CATALOG) == []


def test_resolution_is_repeatable() -> None:
    apps = [_hdbox_app("ILST", "26.3.1"), _hdbox_app("PHSP", "25.0")]

    assert resolver.resolve_targets(apps, CATALOG) == resolver.resolve_targets(apps, CATALOG)


def test_build_msi_uninstall_command_requires_code() -> None:
    with pytest.raises(ValueError):
        resolver.build_msi_uninstall_command("")
