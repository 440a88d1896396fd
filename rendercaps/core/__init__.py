"""
Core primitives for rendercaps.
"""

from .archive import Archive, FileSystemArchive, ZipArchive, open_archive
from .locks import ReadWriteLock

__all__ = [
    "Archive",
    "FileSystemArchive",
    "ReadWriteLock",
    "ZipArchive",
    "open_archive",
]
