# pkginstall/modules/installer.py
"""
Install orchestrator.

install() runs the steps for one package archive strictly in order:

  open archive -> check required versions -> extract files
  -> build native extensions -> record descriptor -> publish bin stubs

The first failure aborts the remaining steps and propagates unchanged.
Installs sharing an installation root must be serialized by the caller.
"""

from __future__ import annotations
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from pkginstall.modules import logger as _logger
from pkginstall.modules.archive import TarPackageFormat
from pkginstall.modules.binstub import BinStubManager, InstallerOptions
from pkginstall.modules.config import config as _config
from pkginstall.modules.descriptor import DescriptorManager, PackageDescriptor, check_required_versions
from pkginstall.modules.errors import InstallError, PathContainmentViolation
from pkginstall.modules.extbuild import DEFAULT_BUILD_LOG, ExtensionBuilder
from pkginstall.modules.extract import ArchiveExtractor
from pkginstall.modules.ui import InstallUI

DEFAULT_ROOT = os.path.expanduser("~/.local/share/pkginstall")


def default_root() -> str:
    return os.path.expanduser(_config.get("install", "root", fallback=DEFAULT_ROOT))


@dataclass
class InstallResult:
    descriptor: PackageDescriptor
    package_dir: str
    files: List[str] = field(default_factory=list)
    stubs: Dict[str, str] = field(default_factory=dict)
    build_log: Optional[str] = None


class Installer:
    def __init__(self,
                 installation_root: Optional[str] = None,
                 options: Optional[InstallerOptions] = None,
                 ui: Optional[InstallUI] = None,
                 build_log_name: Optional[str] = None):
        self.root = os.path.abspath(installation_root or default_root())
        self.options = options or InstallerOptions.from_config()
        self.ui = ui or InstallUI()
        self.log = _logger.Logger("installer")

        self.extractor = ArchiveExtractor()
        self.builder = ExtensionBuilder(
            ui=self.ui,
            build_log_name=build_log_name or _config.get("install", "build_log", fallback=DEFAULT_BUILD_LOG),
            interpreter=self.options.interpreter_path,
        )
        self.stubs = BinStubManager(options=self.options, ui=self.ui)
        self.descriptors = DescriptorManager()

    # ------------------------
    # Layout
    # ------------------------
    def package_dir(self, descriptor: PackageDescriptor) -> str:
        packages = os.path.join(self.root, "packages")
        path = os.path.normpath(os.path.join(packages, descriptor.full_name))
        if os.path.dirname(path) != packages:
            raise PathContainmentViolation(descriptor.full_name, packages)
        return path

    def specifications_dir(self) -> str:
        return os.path.join(self.root, "specifications")

    # ------------------------
    # Install
    # ------------------------
    def install(self, archive: str, force: bool = False) -> InstallResult:
        fmt = TarPackageFormat.open(archive)
        descriptor = fmt.descriptor
        self.log.info(f"Installing {descriptor.full_name} from {fmt.path} into {self.root}")

        if force:
            self.log.warning(f"{descriptor.full_name}: required versions not checked (force)")
        else:
            check_required_versions(descriptor, logger=self.log)

        package_dir = self.package_dir(descriptor)
        result = InstallResult(descriptor=descriptor, package_dir=package_dir)
        try:
            result.files = self.extractor.extract_files(package_dir, fmt)
            result.build_log = self.builder.build_extensions(package_dir, descriptor)
            self.descriptors.save(descriptor, self.specifications_dir())
            result.stubs = self.stubs.generate_bin(descriptor, self.root, package_dir)
        except InstallError as e:
            self.log.error(f"Install of {descriptor.full_name} failed: {e}")
            raise

        if descriptor.post_install_message:
            self.ui.say(descriptor.post_install_message)

        self.log.success(f"Installed {descriptor.full_name}")
        return result
