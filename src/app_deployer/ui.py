"""!
@brief Plain console messaging for operators.
@details Deployments usually run unattended under an endpoint management
agent. Only interactive runs attached to a console pause on a fatal error so
the operator can read the message before the window closes.
"""
from __future__ import annotations

import sys
import textwrap
from typing import Callable, TextIO

from .context import DeploymentContext

FATAL_TITLE = "Deployment failed"


def _is_console_attached(stream: TextIO | None) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def show_blocking_error(
    context: DeploymentContext | None,
    message: str,
    *,
    exit_code: int,
    input_func: Callable[[str], str] | None = None,
    stream: TextIO | None = None,
) -> bool:
    """!
    @brief Print a fatal error and wait for acknowledgement when interactive.
    @param context Run context; ``None`` when the failure happened before it existed.
    @param input_func Override used to wait for the operator.
    @param stream Output stream, ``stderr`` by default.
    @returns ``True`` when the operator was prompted.
    """

    output = stream or sys.stderr
    title = FATAL_TITLE
    if context is not None and context.installation_title:
        title = f"{context.installation_title}: {FATAL_TITLE.lower()}"

    body = textwrap.fill(message, width=76) if message else "An unexpected error occurred."
    print(f"\n{title}\n{'=' * len(title)}\n{body}\n\nExit code: {exit_code}", file=output)

    interactive = context is not None and context.is_interactive
    if not interactive:
        return False
    if input_func is None:
        if not _is_console_attached(sys.stdin):
            return False
        input_func = input
    try:
        input_func("Press Enter to close... ")
    except EOFError:
        pass
    return True


__all__ = ["FATAL_TITLE", "show_blocking_error"]
