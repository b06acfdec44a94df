# pkginstall/modules/errors.py
"""
Install error hierarchy.

Every failure of an install carries structured fields next to its message so
callers can react without parsing text.
"""

from __future__ import annotations
from typing import Optional


class InstallError(Exception):
    pass


class InvalidArchiveFormat(InstallError):
    def __init__(self, path: str, reason: Optional[str] = None):
        self.path = path
        self.reason = reason
        super().__init__(f"invalid package format for {path}")


class PathContainmentViolation(InstallError):
    def __init__(self, path: str, destination: Optional[str] = None):
        self.path = path
        self.destination = destination
        if destination is None:
            msg = f'attempt to install file into "{path}"'
        else:
            msg = f'attempt to install file into "{path}" under "{destination}"'
        super().__init__(msg)


class ExtensionBuildError(InstallError):
    def __init__(self, message: str, extension: Optional[str] = None, build_log: Optional[str] = None):
        self.extension = extension
        self.build_log = build_log
        super().__init__(message)


class FilePermissionError(InstallError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"You don't have write permissions into the {path} directory.")


class VersionConstraintUnmet(InstallError):
    def __init__(self, package: str, tool: str, constraint: str):
        self.package = package
        self.tool = tool
        self.constraint = constraint
        super().__init__(f"{package} requires {tool} version {constraint}")


class DescriptorError(InstallError):
    pass
