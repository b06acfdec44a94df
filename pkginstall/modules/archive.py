# pkginstall/modules/archive.py
"""
archive.py - package archive format

Package archive (tar.gz):
 - metadata.yaml at the archive root (the package descriptor)
 - data/<relative path> for every file of the package

The installer only depends on the ArchiveFormat protocol; TarPackageFormat is
the concrete reader for the format above.
"""

from __future__ import annotations
import gzip
import io
import os
import tarfile
import time
import zlib
from dataclasses import dataclass
from typing import Iterator, Optional, Protocol, Tuple

from pkginstall.modules import logger as _logger
from pkginstall.modules.descriptor import DescriptorManager, PackageDescriptor
from pkginstall.modules.errors import DescriptorError, InvalidArchiveFormat

METADATA_NAME = "metadata.yaml"
DATA_PREFIX = "data/"
ARCHIVE_SUFFIX = ".pkg.tar.gz"


@dataclass(frozen=True)
class ArchiveEntry:
    path: str
    size: int
    mode: int


class ArchiveFormat(Protocol):
    """Anything producing a single-pass sequence of (entry, content) pairs."""

    def file_entries(self) -> Iterator[Tuple[ArchiveEntry, bytes]]:
        try:
            tar = tarfile.open(self.path, "r:*")
        except (tarfile.TarError, OSError) as e:
            raise InvalidArchiveFormat(self.path, str(e)) from e
        with tar:
            try:
                for member in tar:
                    if not member.name.startswith(DATA_PREFIX):
                        continue
                    if not member.isfile():
                        self.log.debug(f"Skipping non-regular member {member.name}")
                        continue
                    fh = tar.extractfile(member)
                    content = fh.read() if fh is not None else b""
                    entry = ArchiveEntry(
                        path=member.name[len(DATA_PREFIX):],
                        size=member.size,
                        mode=member.mode,
                    )
                    yield entry, content
            except (tarfile.TarError, EOFError, zlib.error, gzip.BadGzipFile) as e:
                raise InvalidArchiveFormat(self.path, str(e)) from e


# ------------------------
# Creating archives
# ------------------------
def pack_package(source_dir: str,
                 descriptor: PackageDescriptor,
                 output_dir: Optional[str] = None) -> str:
    """
    Pack the files below source_dir plus the descriptor into a package archive.
    Returns the path of the created archive.
    """
    source_dir = os.path.abspath(source_dir)
    if not os.path.isdir(source_dir):
        raise FileNotFoundError(source_dir)

    outdir = os.path.abspath(output_dir or os.getcwd())
    os.makedirs(outdir, exist_ok=True)
    archive_name = os.path.join(outdir, f"{descriptor.full_name}{ARCHIVE_SUFFIX}")

    files_list = []
    for root, _, files in os.walk(source_dir):
        for fn in files:
            rel = os.path.relpath(os.path.join(root, fn), source_dir)
            # the descriptor travels as metadata.yaml, not as package data
            if rel == METADATA_NAME:
                continue
            files_list.append(rel)

    log = _logger.Logger("archive")
    with tarfile.open(archive_name, "w:gz") as tar:
        meta_bytes = DescriptorManager(logger=log).dump(descriptor).encode("utf-8")
        meta_info = tarfile.TarInfo(name=METADATA_NAME)
        meta_info.size = len(meta_bytes)
        meta_info.mode = 0o644
        meta_info.mtime = int(time.time())
        tar.addfile(meta_info, io.BytesIO(meta_bytes))

        for rel in sorted(files_list):
            tar.add(os.path.join(source_dir, rel),
                    arcname=DATA_PREFIX + rel.replace(os.sep, "/"),
                    recursive=False)

    log.info(f"Packed {len(files_list)} files into {archive_name}")
    return archive_name
