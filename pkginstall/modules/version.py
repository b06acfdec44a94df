# pkginstall/modules/version.py
"""
Version ordering used across pkginstall.

compare_versions is the comparator handed to BinStubManager; nothing else in
the install path parses version strings.
"""

from __future__ import annotations
import re
from typing import Optional


def version_key(v: Optional[str]):
    if v is None:
        return []
    s = str(v).strip()
    if s.startswith("v") and re.match(r"v\d", s):
        s = s[1:]
    parts = re.split(r'[.+_\-]', s)
    key = []
    for p in parts:
        if p.isdigit():
            key.append(int(p))
        else:
            # split alpha suffix like rc1
            m = re.match(r'([a-zA-Z]+)(\d+)$', p)
            if m:
                key.append(m.group(1))
                key.append(int(m.group(2)))
            else:
                key.append(p.lower())
    return key


def compare_versions(a: Optional[str], b: Optional[str]) -> int:
    if a is None and b is None:
        return 0
    if a is None:
        return -1
    if b is None:
        return 1
    ka = version_key(a)
    kb = version_key(b)
    for x, y in zip(ka, kb):
        if type(x) == type(y):
            if x < y: return -1
            if x > y: return 1
        else:
            if isinstance(x, int) and isinstance(y, str):
                return 1
            if isinstance(x, str) and isinstance(y, int):
                return -1
            if str(x) < str(y): return -1
            if str(x) > str(y): return 1
    # trailing zeros do not count: 1.0 == 1.0.0
    if len(ka) < len(kb):
        for r in kb[len(ka):]:
            if r == 0 or r == "":
                continue
            return -1
        return 0
    if len(ka) > len(kb):
        for r in ka[len(kb):]:
            if r == 0 or r == "":
                continue
            return 1
        return 0
    return 0


def _numeric(part: str, constraint: str) -> int:
    m = re.match(r"\d+", part)
    if m is None:
        raise ValueError(f"invalid version constraint '{constraint}'")
    return int(m.group(0))


def _range_base(c: str) -> str:
    base = c[1:].strip()
    if re.match(r"v\d", base):
        base = base[1:]
    return base


def _satisfies_one(v: str, c: str) -> bool:
    if c.startswith(">="):
        return compare_versions(v, c[2:].strip()) >= 0
    if c.startswith("<="):
        return compare_versions(v, c[2:].strip()) <= 0
    if c.startswith(">"):
        return compare_versions(v, c[1:].strip()) > 0
    if c.startswith("<"):
        return compare_versions(v, c[1:].strip()) < 0
    if c.startswith("="):
        return compare_versions(v, c[1:].strip()) == 0
    if c.startswith("^"):
        # ^1.2 => >=1.2 <2.0
        base = _range_base(c)
        upper = str(_numeric(base.split(".")[0], c) + 1)
        return compare_versions(v, base) >= 0 and compare_versions(v, upper) < 0
    if c.startswith("~"):
        # ~1.2 => >=1.2 <1.3
        base = _range_base(c)
        parts = base.split(".")
        major = _numeric(parts[0], c)
        if len(parts) >= 2:
            upper = f"{major}.{_numeric(parts[1], c) + 1}"
        else:
            upper = f"{major}.9999"
        return compare_versions(v, base) >= 0 and compare_versions(v, upper) < 0
    return compare_versions(v, c) == 0


def version_satisfies(version: Optional[str], constraint: Optional[str]) -> bool:
    """Check a version against a constraint such as ">= 1.2, < 2".

    Raises ValueError when a ^ or ~ constraint has a non-numeric bound.
    """
    if not constraint or not version:
        return True
    v = str(version).strip()
    for c in str(constraint).split(","):
        c = c.strip()
        if c and not _satisfies_one(v, c):
            return False
    return True
