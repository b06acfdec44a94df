# pkginstall/modules/ui.py
"""
Output and diagnostic channels.

Two independent rich consoles: normal output (stdout) and errors/diagnostics
(stderr). Install components only append lines to them.
"""

from __future__ import annotations
from typing import Optional

from rich.console import Console


def make_console(no_color: bool = False, quiet: bool = False, stderr: bool = False) -> Console:
    if no_color:
        return Console(color_system=None, force_terminal=False, markup=False, quiet=quiet, stderr=stderr)
    return Console(quiet=quiet, stderr=stderr)


class InstallUI:
    def __init__(self, out: Optional[Console] = None, err: Optional[Console] = None):
        self.out = out or make_console()
        self.err = err or make_console(stderr=True)

    def _emit(self, console: Console, text: str, style: Optional[str] = None):
        console.print(text, style=style, markup=False, highlight=False, soft_wrap=True)

    def say(self, text: str = ""):
        self._emit(self.out, text)

    def alert_warning(self, text: str):
        self._emit(self.err, f"WARNING:  {text}", style="yellow")

    def alert_error(self, text: str):
        self._emit(self.err, f"ERROR:  {text}", style="red")
