# pkginstall/modules/descriptor.py
"""
Package descriptor - load, validate and save metadata.yaml

A descriptor tells the installer what a package is called, which version it
is, which executables it publishes, which native extensions it needs built and
which tool versions it requires.
"""

from __future__ import annotations
import os
import platform
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from pkginstall import __version__
from pkginstall.modules import logger as _logger
from pkginstall.modules.errors import DescriptorError, VersionConstraintUnmet
from pkginstall.modules.version import version_satisfies

TOOL_LABELS = {
    "python": "Python",
    "pkginstall": "pkginstall",
}


@dataclass(frozen=True)
class PackageDescriptor:
    name: str
    version: str
    executables: Tuple[str, ...] = ()
    extensions: Tuple[Optional[str], ...] = ()
    required_versions: Mapping[str, str] = field(default_factory=dict)
    bindir: str = "bin"
    summary: str = ""
    post_install_message: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.name}-{self.version}"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "summary": self.summary,
            "bindir": self.bindir,
            "executables": list(self.executables),
            "extensions": list(self.extensions),
            "required_versions": dict(self.required_versions),
        }
        if self.post_install_message:
            data["post_install_message"] = self.post_install_message
        return data


class DescriptorManager:
    REQUIRED_FIELDS = ["name", "version"]
    LIST_FIELDS = ["executables", "extensions"]

    def __init__(self, logger: Optional[_logger.Logger] = None):
        self.log = logger or _logger.Logger("descriptor")

    # -------------------------
    # Validation
    # -------------------------
    def validate(self, data: Dict[str, Any]) -> bool:
        if not isinstance(data, dict):
            raise DescriptorError("descriptor must be a mapping")

        missing = [f for f in self.REQUIRED_FIELDS if f not in data or data[f] in (None, "")]
        if missing:
            raise DescriptorError(f"missing required fields: {missing}")

        for key in self.LIST_FIELDS:
            if key in data and data[key] is not None and not isinstance(data[key], list):
                raise DescriptorError(f"field '{key}' must be a list")

        req = data.get("required_versions")
        if req is not None and not isinstance(req, dict):
            raise DescriptorError("field 'required_versions' must be a mapping of tool -> constraint")

        if not isinstance(data["version"], (str, int, float)):
            raise DescriptorError("field 'version' must be a string or number")

        # name and version become the package directory name under the root
        for key in self.REQUIRED_FIELDS:
            value = str(data[key])
            if value in (".", "..") or "/" in value or "\\" in value or os.path.isabs(value):
                raise DescriptorError(f"field '{key}' is not a valid path component: {value!r}")

        bindir = data.get("bindir")
        if bindir:
            norm = os.path.normpath(str(bindir))
            if os.path.isabs(norm) or norm == ".." or norm.startswith(".." + os.sep):
                raise DescriptorError(f"field 'bindir' must stay inside the package: {bindir!r}")

        return True

    def from_dict(self, data: Dict[str, Any]) -> PackageDescriptor:
        self.validate(data)
        required = {str(k): str(v) for k, v in (data.get("required_versions") or {}).items()}
        return PackageDescriptor(
            name=str(data["name"]),
            version=str(data["version"]),
            executables=tuple(str(e) for e in (data.get("executables") or [])),
            # None is kept so the builder can report it as unsupported
            extensions=tuple(None if e is None else str(e) for e in (data.get("extensions") or [])),
            required_versions=required,
            bindir=str(data.get("bindir") or "bin"),
            summary=str(data.get("summary") or ""),
            post_install_message=data.get("post_install_message"),
        )

    # -------------------------
    # I/O
    # -------------------------
    def loads(self, text: str) -> PackageDescriptor:
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise DescriptorError(f"invalid descriptor YAML: {e}") from e
        return self.from_dict(data)

    def load(self, path: str) -> PackageDescriptor:
        path = os.path.abspath(path)
        if not os.path.exists(path):
            raise DescriptorError(f"descriptor file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            descriptor = self.loads(f.read())
        self.log.info(f"Descriptor loaded: {path}")
        return descriptor

    def dump(self, descriptor: PackageDescriptor) -> str:
        return yaml.safe_dump(descriptor.to_dict(), sort_keys=False, allow_unicode=True)

    def save(self, descriptor: PackageDescriptor, dest_dir: str) -> str:
        """Write <full_name>.yaml into dest_dir and return its path."""
        dest_dir = os.path.abspath(dest_dir)
        os.makedirs(dest_dir, exist_ok=True)
        dest_file = os.path.join(dest_dir, f"{descriptor.full_name}.yaml")
        with open(dest_file, "w", encoding="utf-8") as f:
            f.write(self.dump(descriptor))
        self.log.info(f"Descriptor saved to: {dest_file}")
        return dest_file


# -------------------------
# Required tool versions
# -------------------------
def available_tool_versions() -> Dict[str, str]:
    return {
        "python": platform.python_version(),
        "pkginstall": __version__,
    }


def check_required_versions(descriptor: PackageDescriptor,
                            available: Optional[Mapping[str, str]] = None,
                            logger: Optional[_logger.Logger] = None) -> None:
    available = available if available is not None else available_tool_versions()
    log = logger or _logger.Logger("descriptor")
    for tool, constraint in descriptor.required_versions.items():
        key = tool.lower()
        if key not in available:
            log.warning(f"{descriptor.full_name}: unknown required tool '{tool}', not checked")
            continue
        try:
            satisfied = version_satisfies(available[key], constraint)
        except ValueError as e:
            raise DescriptorError(f"{descriptor.full_name}: {e} for {tool}") from e
        if not satisfied:
            raise VersionConstraintUnmet(descriptor.name, TOOL_LABELS.get(key, tool), constraint)
        log.debug(f"{descriptor.full_name}: {tool} {available[key]} satisfies {constraint}")
