"""!
@brief Tests for phase sequencing and session helpers.
"""

from __future__ import annotations

import logging
import pathlib
import sys

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from app_deployer import exec_utils, inventory, logging_ext, session  # noqa: E402
from app_deployer.context import DeploymentContext, DeploymentType  # noqa: E402
from app_deployer.errors import InstallerNotFoundError  # noqa: E402
from app_deployer.inventory import InstalledApplication  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_logging_state() -> None:
    yield
    for name in (logging_ext.HUMAN_LOGGER_NAME, logging_ext.MACHINE_LOGGER_NAME):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        for flt in list(logger.filters):
            logger.removeFilter(flt)
        logger.propagate = True


def _context(tmp_path, deployment_type=DeploymentType.INSTALL, **overrides) -> DeploymentContext:
    return DeploymentContext(
        app_vendor="Vendor",
        app_name="Tool",
        deployment_type=deployment_type,
        files_dir=tmp_path,
        log_dir=tmp_path / "logs",
        **overrides,
    )


class RecordingScript(session.ApplicationScript):
    name = "recording"

    def __init__(self, fail_in: str | None = None) -> None:
        self.calls: list[str] = []
        self.fail_in = fail_in

    def _record(self, phase: str, active: session.DeploymentSession) -> None:
        self.calls.append(phase)
        assert active.current_phase == phase
        if phase == self.fail_in:
            raise RuntimeError(f"{phase} exploded")

    def pre_installation(self, active):
        self._record("Pre-Installation", active)

    def installation(self, active):
        self._record("Installation", active)
        active.status.record(3010, "installer")

    def post_installation(self, active):
        self._record("Post-Installation", active)

    def pre_uninstallation(self, active):
        self._record("Pre-Uninstallation", active)

    def uninstallation(self, active):
        self._record("Uninstallation", active)

    def post_uninstallation(self, active):
        self._record("Post-Uninstallation", active)

    def pre_repair(self, active):
        self._record("Pre-Repair", active)

    def repair(self, active):
        self._record("Repair", active)

    def post_repair(self, active):
        self._record("Post-Repair", active)


@pytest.mark.parametrize(
    ("deployment_type", "expected"),
    [
        (DeploymentType.INSTALL, ["Pre-Installation", "Installation", "Post-Installation"]),
        (DeploymentType.UNINSTALL, ["Pre-Uninstallation", "Uninstallation", "Post-Uninstallation"]),
        (DeploymentType.REPAIR, ["Pre-Repair", "Repair", "Post-Repair"]),
    ],
)
def test_phases_run_once_in_order(tmp_path, deployment_type, expected) -> None:
    script = RecordingScript()

    code = session.run_deployment(script, _context(tmp_path, deployment_type))

    assert script.calls == expected
    assert code == (3010 if deployment_type is DeploymentType.INSTALL else 0)


def test_reboot_required_is_reported_in_human_log(tmp_path) -> None:
    log_dir = tmp_path / "logs"
    logging_ext.setup_logging(log_dir)

    code = session.run_deployment(RecordingScript(), _context(tmp_path))

    assert code == 3010
    human_text = (log_dir / logging_ext.HUMAN_LOG_FILENAME).read_text(encoding="utf-8")
    assert "A reboot is required" in human_text


def test_failing_phase_aborts_remaining_phases(tmp_path) -> None:
    script = RecordingScript(fail_in="Installation")

    with pytest.raises(RuntimeError, match="Installation exploded"):
        session.run_deployment(script, _context(tmp_path))

    assert script.calls == ["Pre-Installation", "Installation"]


def test_enter_phase_rejects_repeats_and_skips(tmp_path) -> None:
    active = session.DeploymentSession(_context(tmp_path))

    with pytest.raises(session.PhaseSequenceError):
        active.enter_phase("Installation")
    active.enter_phase("Pre-Installation")
    with pytest.raises(session.PhaseSequenceError):
        active.enter_phase("Pre-Installation")
    with pytest.raises(session.PhaseSequenceError):
        active.enter_phase("Uninstallation")
    assert active.completed_phases == ("Pre-Installation",)


def test_hook_name() -> None:
    assert session.hook_name("Post-Uninstallation") == "post_uninstallation"


def test_find_media_prefers_last_match(tmp_path) -> None:
    (tmp_path / "VirtualBox-7.0.14.exe").write_bytes(b"")
    (tmp_path / "VirtualBox-7.0.20.exe").write_bytes(b"")
    active = session.DeploymentSession(_context(tmp_path))

    assert active.find_media("VirtualBox-*.exe").name == "VirtualBox-7.0.20.exe"
    assert active.find_optional_media("*.msp") is None
    with pytest.raises(InstallerNotFoundError) as excinfo:
        active.find_media("AcroRead*.msi")
    assert excinfo.value.exit_code == 60002


def test_load_catalog_tolerates_bad_file(tmp_path) -> None:
    bad = tmp_path / "setup.xml"
    bad.write_text("<Deployment>", encoding="utf-8")

    assert session.DeploymentSession(_context(tmp_path)).load_catalog() is None
    assert session.DeploymentSession(_context(tmp_path, catalog_path=bad)).load_catalog() is None


def test_uninstall_applications_dispatches_resolved_targets(monkeypatch, tmp_path) -> None:
    """!
    @brief Inventory, classification and dispatch work end to end.
    """

    apps = [
        InstalledApplication(
            display_name="Adobe Acrobat Reader DC",
            uninstall_string="MsiExec.exe /I{AC76BA86-7AD7-1033-7B44-AC0F074E4100}",
            uninstall_subkey="{AC76BA86-7AD7-1033-7B44-AC0F074E4100}",
        ),
        InstalledApplication(display_name="Adobe Reader helper", uninstall_string="helper.exe /remove"),
    ]
    monkeypatch.setattr(inventory, "get_installed_applications", lambda names, match="contains": apps)

    commands: list[list[str]] = []

    def fake_run(command, *, event, dry_run=False, **kwargs):  # type: ignore[no-untyped-def]
        commands.append([str(part) for part in command])
        return exec_utils.CommandResult(
            command=list(command), returncode=1605, stdout="", stderr="", duration=0.0
        )

    monkeypatch.setattr(exec_utils, "run_command", fake_run)
    active = session.DeploymentSession(_context(tmp_path, DeploymentType.UNINSTALL))

    codes = active.uninstall_applications(["Adobe Acrobat", "Adobe Reader"])

    assert codes == [0]
    assert commands == [
        ["msiexec.exe", "/x", "{AC76BA86-7AD7-1033-7B44-AC0F074E4100}", "REBOOT=ReallySuppress", "/qn"]
    ]
    assert active.status.final == 0


def test_repair_applications_skips_non_msi(monkeypatch, tmp_path) -> None:
    apps = [
        InstalledApplication(
            display_name="Oracle VirtualBox 7.0.20",
            uninstall_string="MsiExec.exe /X{11111111-2222-3333-4444-555555555555}",
            uninstall_subkey="{11111111-2222-3333-4444-555555555555}",
        ),
        InstalledApplication(display_name="Oracle VirtualBox Guest", uninstall_string="x.exe"),
    ]
    monkeypatch.setattr(inventory, "get_installed_applications", lambda names, match="contains": apps)
    commands: list[list[str]] = []
    monkeypatch.setattr(
        exec_utils,
        "run_command",
        lambda command, **kwargs: commands.append(list(command))
        or exec_utils.CommandResult(command=list(command), returncode=0, stdout="", stderr="", duration=0.0),
    )

    codes = session.DeploymentSession(_context(tmp_path, DeploymentType.REPAIR)).repair_applications(
        "Oracle VirtualBox"
    )

    assert codes == [0]
    assert commands[0][:3] == ["msiexec.exe", "/fvomus", "{11111111-2222-3333-4444-555555555555}"]


def test_pause_is_skipped_in_dry_run(monkeypatch, tmp_path) -> None:
    sleeps: list[float] = []
    monkeypatch.setattr(session.time, "sleep", lambda seconds: sleeps.append(seconds))

    session.DeploymentSession(_context(tmp_path, dry_run=True)).pause(10)
    session.DeploymentSession(_context(tmp_path)).pause(2)

    assert sleeps == [2]
