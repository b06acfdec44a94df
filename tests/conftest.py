import io
import os
import stat

import pytest
from rich.console import Console

from pkginstall.modules.archive import ArchiveEntry
from pkginstall.modules.config import config
from pkginstall.modules.descriptor import PackageDescriptor
from pkginstall.modules.ui import InstallUI


@pytest.fixture(autouse=True)
def isolated_config(tmp_path_factory):
    """Point the shared config (and so every Logger) at a throwaway log file."""
    conf_dir = tmp_path_factory.mktemp("conf")
    conf_file = conf_dir / "pkginstall.conf"
    conf_file.write_text(
        "[logging]\n"
        f"log_file = {conf_dir / 'pkginstall.log'}\n"
        "level = debug\n"
    )
    old_locations = config.locations
    config.locations = [str(conf_file)]
    config.reload()
    yield config
    config.locations = old_locations
    config.reload()


def _console():
    return Console(file=io.StringIO(), color_system=None, width=200)


@pytest.fixture
def ui():
    return InstallUI(out=_console(), err=_console())


def output(ui):
    return ui.out.file.getvalue()


def error(ui):
    return ui.err.file.getvalue()


class FakeFormat:
    """In-memory archive adapter."""

    def __init__(self, entries):
        self.entries = entries
        self.consumed = 0

    def file_entries(self):
        for path, content, mode in self.entries:
            self.consumed += 1
            yield ArchiveEntry(path=path, size=len(content), mode=mode), content


@pytest.fixture
def make_descriptor():
    def _make(version="0.0.2", name="a", **kw):
        return PackageDescriptor(name=name, version=version, **kw)
    return _make


@pytest.fixture
def install_root(tmp_path):
    home = tmp_path / "root"
    home.mkdir()
    return home


def make_exec(root, version="0.0.2", name="a", exe="my_exec", body="#!/bin/sh\necho a\n"):
    """Create <root>/packages/<name>-<version>/bin/<exe> and return the package dir."""
    pkg_dir = root / "packages" / f"{name}-{version}"
    bindir = pkg_dir / "bin"
    bindir.mkdir(parents=True, exist_ok=True)
    path = bindir / exe
    path.write_text(body)
    path.chmod(0o755)
    return pkg_dir


def file_mode(path):
    return stat.S_IMODE(os.lstat(path).st_mode)


def running_as_root():
    return hasattr(os, "geteuid") and os.geteuid() == 0
