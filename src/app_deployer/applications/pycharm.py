"""!
@brief JetBrains PyCharm deployment, Community and Professional editions.
@details The NSIS installer takes ``/S`` for silent mode and an optional
``/CONFIG=`` file that picks shortcuts and file associations. PyCharm does
not register an MSI; its ``UninstallString`` points at the vendor
``Uninstall.exe`` which is run with ``/S``. A repair reinstalls from media.
"""
from __future__ import annotations

from ..session import ApplicationScript, DeploymentSession
from ..uninstall_parser import split_command_line

PROCESSES = ("pycharm64.exe", "pycharm.exe", "fsnotifier*.exe", "elevator.exe")

SETTLE_SECONDS = 5.0


class _PyCharm(ApplicationScript):
    vendor = "JetBrains"
    media_pattern = ""
    display_pattern = ""

    def pre_installation(self, session: DeploymentSession) -> None:
        session.close_apps(PROCESSES)

    def installation(self, session: DeploymentSession) -> None:
        installer = session.find_media(self.media_pattern)
        command: list[object] = [installer, "/S"]
        config = session.find_optional_media("silent.config")
        if config is not None:
            command.append(f"/CONFIG={config}")
        session.run(
            command,
            event="pycharm_install",
            label=f"Install {installer.name}",
            settle_seconds=SETTLE_SECONDS,
        )

    def pre_uninstallation(self, session: DeploymentSession) -> None:
        session.close_apps(PROCESSES)

    def uninstallation(self, session: DeploymentSession) -> None:
        for application in session.installed(self.display_pattern, match="regex"):
            executable, _ = split_command_line(application.uninstall_string)
            if not executable:
                session.human_logger.warning(
                    "Skipping %s: no uninstall string", application.display_name
                )
                continue
            session.run(
                [executable, "/S"],
                event="pycharm_uninstall",
                label=f"Uninstall {application.display_name}",
                settle_seconds=SETTLE_SECONDS,
            )

    def pre_repair(self, session: DeploymentSession) -> None:
        session.close_apps(PROCESSES)

    def repair(self, session: DeploymentSession) -> None:
        self.uninstallation(session)
        self.installation(session)


class PyCharmCommunity(_PyCharm):
    name = "pycharm-community"
    title = "PyCharm Community Edition"
    media_pattern = "pycharm-community-*.exe"
    display_pattern = r"^PyCharm Community Edition\b"


class PyCharmProfessional(_PyCharm):
    name = "pycharm-professional"
    title = "PyCharm Professional"
    media_pattern = "pycharm-professional-*.exe"
    display_pattern = r"^PyCharm (?!Community)"
