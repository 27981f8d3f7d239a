"""!
@brief App Deployer package root.
@details Modules under this namespace discover installed applications, classify
their uninstall strings, resolve vendor catalog entries, and drive silent
installer and uninstaller invocations through a fixed phase sequence.
"""

__all__ = [
    "main",
    "session",
    "context",
    "inventory",
    "uninstall_parser",
    "catalog",
    "resolver",
    "dispatcher",
    "exit_status",
    "registry_tools",
    "user_profiles",
    "processes",
    "exec_utils",
    "logging_ext",
    "guid_utils",
    "constants",
    "errors",
    "ui",
    "version",
    "applications",
]
