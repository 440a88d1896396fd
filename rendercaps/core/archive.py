"""
Archives that hold capability scripts.

An archive lists resources by glob pattern and opens them as binary streams.
Two storage kinds are provided: a plain directory and a zip file.
"""

from __future__ import annotations

import fnmatch
import io
import zipfile
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Protocol, runtime_checkable

from rendercaps.logging_config import get_logger

logger = get_logger(__name__)

SKIP_DIRS = {"__MACOSX", ".git", ".venv", "__pycache__", "node_modules"}


@runtime_checkable
class Archive(Protocol):
    """Source of script resources."""

    name: str

    def list_resources(self, pattern: str = "*", recursive: bool = True) -> list[str]:
        ...

    def open(self, resource: str) -> BinaryIO:
        ...

    def close(self) -> None:
        ...


class FileSystemArchive:
    """Directory on disk; resources are POSIX paths relative to the root."""

    def __init__(self, root: Path | str):
        self.root = Path(root)
        self.name = str(self.root)
        if not self.root.is_dir():
            raise FileNotFoundError(f"Archive directory not found: {self.root}")

    def _contains(self, path: Path) -> bool:
        return path.resolve().is_relative_to(self.root.resolve())

    def list_resources(self, pattern: str = "*", recursive: bool = True) -> list[str]:
        paths = self.root.rglob(pattern) if recursive else self.root.glob(pattern)
        entries: list[str] = []
        for p in paths:
            rel = p.relative_to(self.root)
            if any(part in SKIP_DIRS for part in rel.parts):
                continue
            if not p.is_file():
                continue
            if not self._contains(p):
                logger.warning("archive_entry_outside_root", archive=self.name, resource=rel.as_posix())
                continue
            entries.append(rel.as_posix())
        return sorted(entries)

    def open(self, resource: str) -> BinaryIO:
        target = self.root / resource
        if not self._contains(target):
            raise PermissionError(f"Unsafe resource path: {resource}")
        return open(target.resolve(), "rb")

    def close(self) -> None:
        pass

    def __enter__(self) -> FileSystemArchive:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class ZipArchive:
    """Zip file; resources are member names."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self.name = str(self.path)
        if not self.path.is_file():
            raise FileNotFoundError(f"Archive file not found: {self.path}")
        self._zip = zipfile.ZipFile(self.path, "r")

    def list_resources(self, pattern: str = "*", recursive: bool = True) -> list[str]:
        entries: list[str] = []
        for info in self._zip.infolist():
            if info.is_dir():
                continue
            member = PurePosixPath(info.filename)
            if any(part in SKIP_DIRS for part in member.parts):
                continue
            if not recursive and len(member.parts) > 1:
                continue
            if fnmatch.fnmatchcase(member.name, pattern):
                entries.append(info.filename)
        return sorted(entries)

    def open(self, resource: str) -> BinaryIO:
        try:
            return io.BytesIO(self._zip.read(resource))
        except KeyError as e:
            raise FileNotFoundError(f"No such member in {self.name}: {resource}") from e
        except zipfile.BadZipFile as e:
            raise OSError(f"Corrupt member {resource} in {self.name}: {e}") from e

    def close(self) -> None:
        self._zip.close()

    def __enter__(self) -> ZipArchive:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


ARCHIVE_TYPES: dict[str, type] = {
    "FileSystem": FileSystemArchive,
    "Zip": ZipArchive,
}


def open_archive(location: Path | str, archive_type: str = "FileSystem"):
    """Open ``location`` with the archive class registered for ``archive_type``.

    Raises:
        ValueError: Unknown archive type
        FileNotFoundError: Location does not exist
    """
    factory = ARCHIVE_TYPES.get(archive_type)
    if factory is None:
        raise ValueError(
            f"Unknown archive type: {archive_type} (expected one of {', '.join(sorted(ARCHIVE_TYPES))})"
        )
    archive = factory(location)
    logger.debug("archive_opened", location=str(location), archive_type=archive_type)
    return archive
