"""!
@brief Exception hierarchy for deployment failures.
@details Each exception carries the process exit code reported to the
endpoint management agent when it escapes the phase sequence.
"""
from __future__ import annotations

from . import constants


class DeploymentError(RuntimeError):
    """!
    @brief Base class for fatal deployment failures.
    """

    exit_code = constants.EXIT_GENERIC_FATAL


class CatalogError(DeploymentError):
    """!
    @brief Raised when the product catalog cannot be read or parsed.
    """


class InstallerNotFoundError(DeploymentError):
    """!
    @brief Raised when the expected installer media is missing from ``files_dir``.
    """

    exit_code = constants.EXIT_INSTALLER_NOT_FOUND


__all__ = ["CatalogError", "DeploymentError", "InstallerNotFoundError"]
