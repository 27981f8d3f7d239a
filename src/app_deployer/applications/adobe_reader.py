"""!
@brief Adobe Acrobat Reader deployment.
@details Installs the enterprise MSI with an optional transform and the
latest cumulative ``.msp`` patch, locks down the built-in updater, and stops
Reader from prompting each user about PDF ownership. Existing Reader and
Acrobat installs are removed first, whichever installer family placed them:
MSI packages, Creative Cloud HDBox-managed products (resolved through the
deployment catalog ``Build\\setup.xml``) and the legacy Creative Cloud
uninstaller.
"""
from __future__ import annotations

from ..dispatcher import build_msi_install_command, build_msi_patch_command
from ..session import ApplicationScript, DeploymentSession

PROCESSES = (
    "AcroRd32.exe",
    "Acrobat.exe",
    "AcroCEF.exe",
    "RdrCEF.exe",
    "AdobeCollabSync.exe",
    "AdobeARM.exe",
)

PRODUCT_NAMES = ("Adobe Acrobat", "Adobe Reader")

FEATURE_LOCKDOWN_KEY = r"HKLM\SOFTWARE\Policies\Adobe\Acrobat Reader\DC\FeatureLockDown"
FEATURE_LOCKDOWN_VALUES = ("bUpdater", "bAcroSuppressUpsell")

PDF_OWNERSHIP_KEY = r"Software\Adobe\Acrobat Reader\DC\AVAlert\cCheckbox"


class AdobeReader(ApplicationScript):
    name = "adobe-reader"
    vendor = "Adobe"
    title = "Acrobat Reader"
    version = "DC"
    catalog_relative_path = r"Build\setup.xml"

    def pre_installation(self, session: DeploymentSession) -> None:
        session.close_apps(PROCESSES)
        session.uninstall_applications(PRODUCT_NAMES)

    def installation(self, session: DeploymentSession) -> None:
        package = session.find_media("AcroRead*.msi")
        transform = session.find_optional_media("*.mst")
        log_path = session.context.log_dir / "AdobeReader_Install.log"
        session.run(
            build_msi_install_command(
                str(package),
                transforms=[str(transform)] if transform else (),
                properties=("EULA_ACCEPT=YES", "DISABLEDESKTOPSHORTCUT=1"),
                log_path=str(log_path),
            ),
            event="msi_install",
            label=f"Install {package.name}",
        )

        patch = session.find_optional_media("*.msp")
        if patch is not None:
            session.run(
                build_msi_patch_command(
                    str(patch), log_path=str(session.context.log_dir / "AdobeReader_Patch.log")
                ),
                event="msi_patch",
                label=f"Patch {patch.name}",
            )

    def post_installation(self, session: DeploymentSession) -> None:
        session.set_registry_value(FEATURE_LOCKDOWN_KEY, "bUpdater", 0, "dword")
        session.set_registry_value(FEATURE_LOCKDOWN_KEY, "bAcroSuppressUpsell", 1, "dword")
        session.set_user_registry_value(
            PDF_OWNERSHIP_KEY, "iAppDoNotTakePDFOwnershipAtLaunchWin10", 1, "dword"
        )

    def pre_uninstallation(self, session: DeploymentSession) -> None:
        session.close_apps(PROCESSES)

    def uninstallation(self, session: DeploymentSession) -> None:
        session.uninstall_applications(PRODUCT_NAMES)

    def post_uninstallation(self, session: DeploymentSession) -> None:
        for name in FEATURE_LOCKDOWN_VALUES:
            session.delete_registry_value(FEATURE_LOCKDOWN_KEY, name)

    def pre_repair(self, session: DeploymentSession) -> None:
        session.close_apps(PROCESSES)

    def repair(self, session: DeploymentSession) -> None:
        session.repair_applications(PRODUCT_NAMES)
