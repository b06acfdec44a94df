# pkginstall/modules/extract.py
"""
Archive extraction with path containment.

Entry paths come straight from the archive and are untrusted: an entry may
only be written below the destination directory.
"""

from __future__ import annotations
import os
from typing import List, Optional

from pkginstall.modules import logger as _logger
from pkginstall.modules.archive import ArchiveFormat
from pkginstall.modules.errors import PathContainmentViolation


def is_within(path: str, directory: str) -> bool:
    directory = os.path.abspath(directory)
    return os.path.commonpath([path, directory]) == directory


class ArchiveExtractor:
    def __init__(self, logger: Optional[_logger.Logger] = None):
        self.log = logger or _logger.Logger("extract")

    def resolve(self, destination_dir: str, declared_path: str) -> str:
        """Return the absolute target of an entry or raise PathContainmentViolation."""
        if os.path.isabs(declared_path):
            raise PathContainmentViolation(declared_path)

        destination_dir = os.path.abspath(destination_dir)
        candidate = os.path.normpath(os.path.join(destination_dir, declared_path))
        if candidate == destination_dir or not is_within(candidate, destination_dir):
            raise PathContainmentViolation(declared_path, destination_dir)
        return candidate

    def extract_files(self, destination_dir: str, archive_format: ArchiveFormat) -> List[str]:
        if archive_format is None:
            raise ValueError("format required to extract from")

        written = []
        for entry, content in archive_format.file_entries():
            try:
                path = self.resolve(destination_dir, entry.path)
            except PathContainmentViolation as e:
                self.log.error(str(e))
                raise

            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as out:
                out.write(content)
            os.chmod(path, entry.mode)
            self.log.debug(f"Extracted {entry.path} ({entry.size} bytes, mode {oct(entry.mode)})")
            written.append(path)

        self.log.info(f"Extracted {len(written)} files into {os.path.abspath(destination_dir)}")
        return written
