"""!
@brief Oracle VirtualBox deployment.
@details The vendor bootstrapper wraps an MSI; it is run silently without
shortcuts and with reboot suppressed. VirtualBox keeps its network driver
files locked for a while after the bootstrapper exits, so the run pauses
before continuing. Removal resolves the MSI entries the bootstrapper
registered.
"""
from __future__ import annotations

from ..session import ApplicationScript, DeploymentSession

PROCESSES = ("VirtualBox.exe", "VirtualBoxVM.exe", "VBoxSVC.exe", "VBoxHeadless.exe", "VBoxSDS.exe")

PRODUCT_NAMES = ("Oracle VirtualBox", "Oracle VM VirtualBox")

INSTALL_MSI_PARAMS = "VBOX_INSTALLDESKTOPSHORTCUT=0 VBOX_INSTALLQUICKLAUNCHSHORTCUT=0 VBOX_START=0"

SETTLE_SECONDS = 10.0


class VirtualBox(ApplicationScript):
    name = "virtualbox"
    vendor = "Oracle"
    title = "VirtualBox"

    def pre_installation(self, session: DeploymentSession) -> None:
        session.close_apps(PROCESSES)

    def installation(self, session: DeploymentSession) -> None:
        installer = session.find_media("VirtualBox-*.exe")
        session.run(
            [
                installer,
                "--silent",
                "--ignore-reboot",
                "--msiparams",
                INSTALL_MSI_PARAMS,
            ],
            event="virtualbox_install",
            label=f"Install {installer.name}",
            settle_seconds=SETTLE_SECONDS,
        )

    def pre_uninstallation(self, session: DeploymentSession) -> None:
        session.close_apps(PROCESSES)

    def uninstallation(self, session: DeploymentSession) -> None:
        session.uninstall_applications(PRODUCT_NAMES)
        session.pause(SETTLE_SECONDS)

    def pre_repair(self, session: DeploymentSession) -> None:
        session.close_apps(PROCESSES)

    def repair(self, session: DeploymentSession) -> None:
        session.repair_applications(PRODUCT_NAMES)
