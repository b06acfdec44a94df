# pkginstall/modules/cli.py
"""
Command line front-end for pkginstall.

Usage examples:
  pkginstall install foo-1.0.pkg.tar.gz
  pkginstall install foo-1.0.pkg.tar.gz --root /opt/pkgs --symlinks
  pkginstall pack ./foo --descriptor ./foo/metadata.yaml --output dist
"""

from __future__ import annotations
import argparse
import os
import sys
from typing import List, Optional

from rich.panel import Panel
from rich.table import Table

from pkginstall import __version__
from pkginstall.modules import logger as _logger
from pkginstall.modules.archive import METADATA_NAME, pack_package
from pkginstall.modules.binstub import InstallerOptions
from pkginstall.modules.descriptor import DescriptorManager
from pkginstall.modules.errors import InstallError
from pkginstall.modules.installer import Installer
from pkginstall.modules.ui import InstallUI, make_console

LOG = _logger.Logger("cli")


class CLI:
    def __init__(self, ui: InstallUI):
        self.ui = ui

    # -----------------------
    # install
    # -----------------------
    def cmd_install(self, args: argparse.Namespace) -> int:
        options = InstallerOptions.from_config(
            use_wrappers=args.wrappers,
            interpreter_path=args.interpreter,
        )
        installer = Installer(installation_root=args.root, options=options, ui=self.ui)
        try:
            result = installer.install(args.archive, force=args.force)
        except InstallError as e:
            self.ui.alert_error(str(e))
            LOG.error(f"install {args.archive}: {e}")
            return 1

        self.ui.say(f"Successfully installed {result.descriptor.full_name}")
        if result.stubs:
            table = Table(title=f"Commands from {result.descriptor.full_name}")
            table.add_column("Command", style="bold")
            table.add_column("Stub")
            table.add_column("Path", overflow="fold")
            bindir = os.path.join(installer.root, "bin")
            for name, action in result.stubs.items():
                table.add_row(name, action, os.path.join(bindir, os.path.basename(name)))
            self.ui.out.print(table)
        return 0

    # -----------------------
    # pack
    # -----------------------
    def cmd_pack(self, args: argparse.Namespace) -> int:
        descriptor_path = args.descriptor or os.path.join(args.directory, METADATA_NAME)
        try:
            descriptor = DescriptorManager().load(descriptor_path)
        except InstallError as e:
            self.ui.alert_error(str(e))
            return 1
        archive = pack_package(args.directory, descriptor, args.output)
        self.ui.out.print(Panel(archive, title=f"packed {descriptor.full_name}", style="green"))
        return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="pkginstall", description="Install packaged software locally.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--no-color", action="store_true", help="Disable colored output")
    p.add_argument("--quiet", action="store_true", help="Suppress normal output")
    sub = p.add_subparsers(dest="command")

    inst = sub.add_parser("install", aliases=["i"], help="Install a package archive")
    inst.add_argument("archive", help="Path to a .pkg.tar.gz archive")
    inst.add_argument("--root", default=None, help="Installation root (default from config)")
    mode = inst.add_mutually_exclusive_group()
    mode.add_argument("--wrappers", dest="wrappers", action="store_const", const=True, default=None,
                      help="Publish executables as wrapper scripts")
    mode.add_argument("--symlinks", dest="wrappers", action="store_const", const=False,
                      help="Publish executables as symlinks")
    inst.add_argument("--interpreter", default=None, help="Interpreter used in wrapper shebangs")
    inst.add_argument("--force", action="store_true", help="Skip required version checks")

    pack = sub.add_parser("pack", help="Pack a directory into a package archive")
    pack.add_argument("directory", help="Directory holding the package files")
    pack.add_argument("--descriptor", default=None, help=f"Descriptor file (default DIR/{METADATA_NAME})")
    pack.add_argument("--output", default=None, help="Output directory (default: cwd)")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    ui = InstallUI(
        out=make_console(no_color=args.no_color, quiet=args.quiet),
        err=make_console(no_color=args.no_color, stderr=True),
    )
    cli = CLI(ui)

    if args.command in ("install", "i"):
        return cli.cmd_install(args)
    if args.command == "pack":
        return cli.cmd_pack(args)
    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
