# pkginstall/modules/extbuild.py
"""
Native extension builds.

Each declared extension is a build file path relative to the package
directory. The file name selects the build strategy:

  configure            sh configure, make, make install
  Makefile/GNUmakefile make, make install
  CMakeLists.txt       cmake, make, make install
  meson.build          meson setup, meson compile, meson install
  setup.py             <interpreter> setup.py build_ext --inplace

All tool output of one install goes to a single build log inside the package
directory. Users only see a pointer to that log.
"""

from __future__ import annotations
import os
import subprocess
import sys
from typing import List, Optional

from pkginstall.modules import logger as _logger
from pkginstall.modules.descriptor import PackageDescriptor
from pkginstall.modules.errors import ExtensionBuildError
from pkginstall.modules.extract import is_within
from pkginstall.modules.ui import InstallUI

DEFAULT_BUILD_LOG = "build.out"
BUILD_NOTICE = "Building native extensions.  This could take a while..."


# ---------------------------
# Builder strategies
# ---------------------------
class Builder:
    name = "generic"

    def commands(self, extension: str, package_dir: str, interpreter: str) -> List[List[str]]:
        raise NotImplementedError


class ConfigureBuilder(Builder):
    name = "configure"

    def commands(self, extension, package_dir, interpreter):
        script = os.path.basename(extension)
        return [
            ["sh", script, f"--prefix={package_dir}"],
            ["make"],
            ["make", "install"],
        ]


class MakeBuilder(Builder):
    name = "make"

    def commands(self, extension, package_dir, interpreter):
        makefile = os.path.basename(extension)
        return [
            ["make", "-f", makefile],
            ["make", "-f", makefile, "install", f"PREFIX={package_dir}"],
        ]


class CMakeBuilder(Builder):
    name = "cmake"

    def commands(self, extension, package_dir, interpreter):
        return [
            ["cmake", f"-DCMAKE_INSTALL_PREFIX={package_dir}", "."],
            ["make"],
            ["make", "install"],
        ]


class MesonBuilder(Builder):
    name = "meson"

    def commands(self, extension, package_dir, interpreter):
        return [
            ["meson", "setup", "build", f"--prefix={package_dir}"],
            ["meson", "compile", "-C", "build"],
            ["meson", "install", "-C", "build"],
        ]


class SetupPyBuilder(Builder):
    name = "setup.py"

    def commands(self, extension, package_dir, interpreter):
        return [[interpreter, os.path.basename(extension), "build_ext", "--inplace"]]


BUILDERS = {
    "configure": ConfigureBuilder,
    "Makefile": MakeBuilder,
    "GNUmakefile": MakeBuilder,
    "makefile": MakeBuilder,
    "CMakeLists.txt": CMakeBuilder,
    "meson.build": MesonBuilder,
    "setup.py": SetupPyBuilder,
}


def builder_for(extension: Optional[str]) -> Optional[Builder]:
    if not extension:
        return None
    cls = BUILDERS.get(os.path.basename(extension))
    return cls() if cls else None


# ---------------------------
# ExtensionBuilder
# ---------------------------
class ExtensionBuilder:
    def __init__(self,
                 ui: Optional[InstallUI] = None,
                 build_log_name: str = DEFAULT_BUILD_LOG,
                 interpreter: Optional[str] = None,
                 logger: Optional[_logger.Logger] = None):
        self.ui = ui or InstallUI()
        self.build_log_name = build_log_name
        self.interpreter = interpreter or sys.executable
        self.log = logger or _logger.Logger("extbuild")

    def build_log_path(self, package_dir: str) -> str:
        return os.path.join(os.path.abspath(package_dir), self.build_log_name)

    def _append_log(self, log_path: str, text: str):
        os.makedirs(os.path.dirname(log_path), exist_ok=True)
        with open(log_path, "a", encoding="utf-8") as fh:
            fh.write(text + "\n")

    def _failure(self, extension: str, log_path: str) -> ExtensionBuildError:
        msg = f"ERROR: Failed to build native extension.\n\nResults logged to {log_path}"
        return ExtensionBuildError(msg, extension=extension, build_log=log_path)

    def run_command(self, command: List[str], cwd: str, log_path: str) -> int:
        """Run one build command with stdout and stderr appended to the build log."""
        self._append_log(log_path, " ".join(command))
        with open(log_path, "a", encoding="utf-8") as fh:
            proc = subprocess.run(
                command,
                cwd=cwd,
                stdout=fh,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                env=os.environ.copy(),
            )
        return proc.returncode

    def build_extension(self, package_dir: str, extension: Optional[str], log_path: str):
        builder = builder_for(extension)
        if builder is None:
            message = f"No builder for extension '{extension or ''}'"
            self._append_log(log_path, message)
            self.log.error(message)
            raise ExtensionBuildError(message, extension=extension, build_log=log_path)

        package_dir = os.path.abspath(package_dir)
        ext_dir = os.path.normpath(os.path.join(package_dir, os.path.dirname(extension)))
        if os.path.isabs(extension) or not is_within(ext_dir, package_dir):
            message = f"Extension '{extension}' is outside the package directory {package_dir}"
            self._append_log(log_path, message)
            self.log.error(message)
            raise ExtensionBuildError(message, extension=extension, build_log=log_path)

        self.log.info(f"Building {extension} with {builder.name} builder in {ext_dir}")

        for command in builder.commands(extension, package_dir, self.interpreter):
            try:
                rc = self.run_command(command, ext_dir, log_path)
            except OSError as e:
                self._append_log(log_path, f"{command[0]}: {e}")
                self.log.error(f"{extension}: cannot run {command[0]}: {e}")
                raise self._failure(extension, log_path) from e
            if rc != 0:
                self.log.error(f"{extension}: '{' '.join(command)}' exited with status {rc}")
                raise self._failure(extension, log_path)

        self.log.success(f"Built extension {extension}")

    def build_extensions(self, package_dir: str, descriptor: PackageDescriptor) -> Optional[str]:
        """
        Build every extension the descriptor declares.
        Returns the build log path, or None when there was nothing to build.
        """
        if not descriptor.extensions:
            return None

        self.ui.say(BUILD_NOTICE)
        log_path = self.build_log_path(package_dir)
        for extension in descriptor.extensions:
            self.build_extension(package_dir, extension, log_path)
        return log_path
