"""!
@brief Command-line entry point for App Deployer.
@details Parses the deployment request, builds the immutable
:class:`~app_deployer.context.DeploymentContext`, configures logging, and runs
the selected application script through its phase sequence. Any failure that
escapes a phase is logged with its traceback, shown to the operator, and
turned into a toolkit exit code.
"""
from __future__ import annotations

import argparse
import logging
import pathlib
import sys
from typing import Iterable, Optional

from . import applications, constants, logging_ext, session, ui, version
from .context import DeploymentContext, DeployMode, DeploymentType, default_log_directory
from .errors import DeploymentError


def build_arg_parser() -> argparse.ArgumentParser:
    """!
    @brief Create the top-level argument parser.
    """

    parser = argparse.ArgumentParser(
        prog="app-deployer",
        description="Silently install, uninstall or repair a packaged Windows application.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {version.__version__}",
    )
    parser.add_argument(
        "app",
        nargs="?",
        metavar="APP",
        help="Application script to run (see --list).",
    )
    parser.add_argument("--list", action="store_true", help="List bundled application scripts and exit.")
    parser.add_argument(
        "-t",
        "--deployment-type",
        choices=constants.DEPLOYMENT_TYPES,
        default="Install",
        help="Deployment action (default: Install).",
    )
    parser.add_argument(
        "-m",
        "--deploy-mode",
        choices=constants.DEPLOY_MODES,
        default="Interactive",
        help="Interaction level (default: Interactive).",
    )
    parser.add_argument("--files-dir", metavar="DIR", help="Directory holding installer media (default: ./Files).")
    parser.add_argument("--catalog", metavar="XML", help="Product catalog XML used to resolve managed installs.")
    parser.add_argument("--logdir", metavar="DIR", help="Directory for human/JSONL log output.")
    parser.add_argument("--timeout", metavar="SEC", type=int, help="Per-installer timeout in seconds.")
    parser.add_argument("--dry-run", action="store_true", help="Log every action without executing it.")
    parser.add_argument("--quiet", action="store_true", help="Minimal console output (errors only).")
    parser.add_argument("--json", action="store_true", help="Mirror structured events to stdout.")
    return parser


def build_context(args: argparse.Namespace, script: session.ApplicationScript) -> DeploymentContext:
    """!
    @brief Collapse parsed arguments and script identity into a context.
    """

    files_dir = pathlib.Path(args.files_dir or "Files").expanduser()
    log_dir = pathlib.Path(args.logdir).expanduser() if args.logdir else default_log_directory()

    catalog_path: pathlib.Path | None = None
    if args.catalog:
        catalog_path = pathlib.Path(args.catalog).expanduser()
    elif script.catalog_relative_path:
        candidate = files_dir.joinpath(*script.catalog_relative_path.split("\\"))
        if candidate.is_file():
            catalog_path = candidate

    return DeploymentContext(
        app_vendor=script.vendor,
        app_name=script.title or script.name,
        app_version=script.version,
        deployment_type=DeploymentType(args.deployment_type),
        deploy_mode=DeployMode(args.deploy_mode),
        files_dir=files_dir,
        log_dir=log_dir,
        dry_run=bool(args.dry_run),
        timeout=args.timeout if args.timeout and args.timeout > 0 else constants.DEFAULT_COMMAND_TIMEOUT,
        catalog_path=catalog_path,
    )


def _bootstrap_logging(args: argparse.Namespace, log_dir: pathlib.Path) -> tuple[logging.Logger, logging.Logger]:
    human_logger, machine_logger = logging_ext.setup_logging(
        log_dir,
        json_to_stdout=bool(args.json),
        console=True,
    )
    if args.quiet:
        for handler in human_logger.handlers:
            if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
                handler.setLevel(logging.ERROR)
    return human_logger, machine_logger


def main(argv: Optional[Iterable[str]] = None) -> int:
    """!
    @brief Run one deployment and return its process exit code.
    @returns 0, 3010, an installer failure code, or a toolkit code in the
    60000-68999 range.
    """

    parser = build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.list:
        for name in applications.available():
            script_class = applications.SCRIPTS[name]
            print(f"{name:<24} {script_class.vendor} {script_class.title}".rstrip())
        return constants.EXIT_SUCCESS
    if not args.app:
        parser.error("an application name is required (see --list)")

    try:
        script = applications.get_script(args.app)
    except KeyError as exc:
        parser.error(str(exc.args[0]))

    try:
        context = build_context(args, script)
        human_logger, machine_logger = _bootstrap_logging(args, context.log_dir)
    except OSError as exc:
        ui.show_blocking_error(
            None, f"Unable to prepare log directory: {exc}", exit_code=constants.EXIT_GENERIC_FATAL
        )
        return constants.EXIT_GENERIC_FATAL

    try:
        return session.run_deployment(script, context)
    except Exception as exc:
        exit_code = exc.exit_code if isinstance(exc, DeploymentError) else constants.EXIT_GENERIC_FATAL
        human_logger.exception("%s failed: %s", context.installation_title, exc)
        machine_logger.error(
            "deployment_fatal",
            exc_info=True,
            extra={
                "event": "deployment_fatal",
                "error": repr(exc),
                "exit_code": exit_code,
                "script": script.name,
            },
        )
        ui.show_blocking_error(context, str(exc), exit_code=exit_code)
        return exit_code


if __name__ == "__main__":  # pragma: no cover - manual invocation
    sys.exit(main())
