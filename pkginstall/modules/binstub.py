# pkginstall/modules/binstub.py
"""
Shared command publication ("bin stubs").

Every executable a package declares is published under <root>/bin, either as
a generated wrapper script or as a symlink into one version's package
directory. The bin directory is shared by all installed versions, so a
symlink only moves forward: an install never points a command back at an
older version than the one it currently targets.

Per command name:

  absent      -> wrapper | symlink(v)
  wrapper     -> wrapper | symlink(v)        (always replaced)
  symlink(v)  -> symlink(v') if v' >= v, otherwise unchanged
  symlink(v)  -> wrapper                     (always replaced)
"""

from __future__ import annotations
import os
import platform
import sys
import tempfile
from dataclasses import dataclass, field
from string import Template
from typing import Callable, Dict, Optional

from pkginstall.modules import logger as _logger
from pkginstall.modules.config import PkgConfig, config as _config
from pkginstall.modules.descriptor import PackageDescriptor
from pkginstall.modules.errors import FilePermissionError
from pkginstall.modules.ui import InstallUI
from pkginstall.modules.version import compare_versions

WRAPPER_MARKER = "generated by pkginstall"
WRAPPER_MODE = 0o755
NO_SYMLINK_ARCH_MARKERS = ("win32", "win64", "mswin", "mingw", "bccwin", "windows")

WRAPPER_TEMPLATE = Template('''\
#!$interpreter
#
# This file was $marker.
#
# The application '$package' is installed as part of a package, and
# this file is here to facilitate running it.
# Written for $package-$version.

import os
import re
import sys

PACKAGE = $package_repr
COMMAND = $command_repr
BINDIR = $bindir_repr


def version_key(version):
    key = []
    for part in re.split(r"[.\\-_+]", version):
        key.append((1, int(part), "") if part.isdigit() else (0, 0, part))
    return key


def find_executable(root, pinned):
    packages = os.path.join(root, "packages")
    prefix = PACKAGE + "-"
    found = []
    if os.path.isdir(packages):
        for entry in os.listdir(packages):
            if not entry.startswith(prefix):
                continue
            version = entry[len(prefix):]
            if not re.match(r"\\d", version):
                continue
            if pinned is not None and version != pinned:
                continue
            exe = os.path.join(packages, entry, BINDIR, COMMAND)
            if os.path.isfile(exe):
                found.append((version_key(version), exe))
    if not found:
        return None
    return max(found)[1]


def main(argv):
    root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    pinned = None
    if argv and re.match(r"^_.+_$$", argv[0]):
        pinned = argv[0][1:-1]
        argv = argv[1:]
    exe = find_executable(root, pinned)
    if exe is None:
        wanted = PACKAGE if pinned is None else "%s (%s)" % (PACKAGE, pinned)
        sys.stderr.write("%s: no installed version of %s provides it\\n" % (COMMAND, wanted))
        return 1
    if os.access(exe, os.X_OK):
        os.execv(exe, [exe] + argv)
    os.execv(sys.executable, [sys.executable, exe] + argv)


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
''')


def default_arch() -> str:
    machine = (platform.machine() or "unknown").lower()
    return f"{machine}-{sys.platform}"


def symlinks_supported_on(arch: str) -> bool:
    arch = (arch or "").lower()
    return not any(marker in arch for marker in NO_SYMLINK_ARCH_MARKERS)


@dataclass(frozen=True)
class InstallerOptions:
    use_wrappers: bool = True
    interpreter_path: str = sys.executable
    arch: str = field(default_factory=default_arch)
    platform_supports_symlinks: Optional[bool] = None

    def __post_init__(self):
        if self.platform_supports_symlinks is None:
            object.__setattr__(self, "platform_supports_symlinks", symlinks_supported_on(self.arch))

    @classmethod
    def from_config(cls, cfg: Optional[PkgConfig] = None, **overrides) -> "InstallerOptions":
        cfg = cfg or _config
        values = {
            "use_wrappers": cfg.getboolean("install", "use_wrappers", fallback=True),
            "interpreter_path": cfg.get("install", "interpreter", fallback=None) or sys.executable,
            "arch": cfg.get("install", "arch", fallback=None) or default_arch(),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


class BinStubManager:
    def __init__(self,
                 options: Optional[InstallerOptions] = None,
                 ui: Optional[InstallUI] = None,
                 version_compare: Callable[[str, str], int] = compare_versions,
                 logger: Optional[_logger.Logger] = None):
        self.options = options or InstallerOptions()
        self.ui = ui or InstallUI()
        self.version_compare = version_compare
        self.log = logger or _logger.Logger("binstub")

    # -------------------------------
    # Paths
    # -------------------------------
    @staticmethod
    def bin_dir(installation_root: str) -> str:
        return os.path.join(os.path.abspath(installation_root), "bin")

    @staticmethod
    def default_package_dir(installation_root: str, descriptor: PackageDescriptor) -> str:
        return os.path.join(os.path.abspath(installation_root), "packages", descriptor.full_name)

    def ensure_bin_dir(self, bindir: str):
        try:
            os.makedirs(bindir, exist_ok=True)
        except PermissionError as e:
            raise FilePermissionError(bindir) from e
        if not os.access(bindir, os.W_OK | os.X_OK):
            raise FilePermissionError(bindir)

    # -------------------------------
    # Entry point
    # -------------------------------
    def generate_bin(self,
                     descriptor: PackageDescriptor,
                     installation_root: str,
                     package_dir: Optional[str] = None) -> Dict[str, str]:
        """
        Publish the descriptor's executables in <installation_root>/bin.
        Returns command name -> action taken ("wrapper", "symlink" or "kept").
        """
        if not descriptor.executables:
            return {}

        bindir = self.bin_dir(installation_root)
        self.ensure_bin_dir(bindir)
        package_dir = package_dir or self.default_package_dir(installation_root, descriptor)

        results = {}
        for exe in descriptor.executables:
            if self.options.use_wrappers:
                results[exe] = self.generate_bin_script(descriptor, exe, bindir)
            else:
                results[exe] = self.generate_bin_symlink(descriptor, exe, bindir, package_dir)
        return results

    # -------------------------------
    # Wrapper scripts
    # -------------------------------
    def wrapper_script(self, command: str, descriptor: PackageDescriptor) -> str:
        return WRAPPER_TEMPLATE.substitute(
            interpreter=self.options.interpreter_path,
            marker=WRAPPER_MARKER,
            package=descriptor.name,
            version=descriptor.version,
            package_repr=repr(descriptor.name),
            command_repr=repr(command),
            bindir_repr=repr(descriptor.bindir),
        )

    def generate_bin_script(self, descriptor: PackageDescriptor, exe: str, bindir: str) -> str:
        dst = os.path.join(bindir, os.path.basename(exe))
        content = self.wrapper_script(exe, descriptor)

        try:
            fd, tmp = tempfile.mkstemp(prefix=f".{os.path.basename(exe)}.", dir=bindir)
        except PermissionError as e:
            raise FilePermissionError(bindir) from e
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(content)
            os.chmod(tmp, WRAPPER_MODE)
            os.replace(tmp, dst)
        except PermissionError as e:
            self._discard(tmp)
            raise FilePermissionError(bindir) from e
        except OSError:
            self._discard(tmp)
            raise

        self.log.info(f"Wrapper for {exe} ({descriptor.full_name}) written to {dst}")
        return "wrapper"

    # -------------------------------
    # Symlinks
    # -------------------------------
    @staticmethod
    def linked_version(target: str, name: str, bindir: str, exe: str) -> Optional[str]:
        """Version of <name>'s package directory a stub symlink points into, if any."""
        parts = os.path.normpath(target).split(os.sep)
        depth = len(os.path.normpath(os.path.join(bindir, exe)).split(os.sep))
        if len(parts) <= depth:
            return None
        prefix = f"{name}-"
        dirname = parts[-depth - 1]
        if not dirname.startswith(prefix) or len(dirname) == len(prefix):
            return None
        return dirname[len(prefix):]

    def generate_bin_symlink(self,
                             descriptor: PackageDescriptor,
                             exe: str,
                             bindir: str,
                             package_dir: str) -> str:
        if not self.options.platform_supports_symlinks:
            self.ui.alert_warning(f"Unable to use symlinks on {self.options.arch}, installing wrapper")
            self.log.warning(f"Symlinks unavailable on {self.options.arch}; wrapper used for {exe}")
            return self.generate_bin_script(descriptor, exe, bindir)

        src = os.path.join(package_dir, descriptor.bindir, exe)
        dst = os.path.join(bindir, os.path.basename(exe))

        if os.path.islink(dst):
            current = self.linked_version(os.readlink(dst), descriptor.name, descriptor.bindir, exe)
            if current is not None and self.version_compare(descriptor.version, current) < 0:
                self.log.info(f"Keeping {dst}: linked version {current} is newer than {descriptor.version}")
                return "kept"
        elif os.path.lexists(dst):
            self.log.info(f"Replacing wrapper {dst} with a symlink")

        tmp = os.path.join(bindir, f".{os.path.basename(exe)}.{os.getpid()}.link")
        try:
            self._discard(tmp)
            os.symlink(src, tmp)
            os.replace(tmp, dst)
        except PermissionError as e:
            self._discard(tmp)
            raise FilePermissionError(bindir) from e
        except OSError:
            self._discard(tmp)
            raise

        self.log.info(f"Linked {dst} -> {src}")
        return "symlink"

    @staticmethod
    def _discard(path: str):
        if os.path.lexists(path):
            try:
                os.unlink(path)
            except OSError:
                pass
