"""
Capability registry.

Maps capability set names to parsed :class:`CapabilitySet` objects. Sets are
bulk loaded from ``.rendercaps`` scripts in an archive; one broken script is
reported and skipped without affecting the rest.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from rendercaps.capabilities.errors import CapabilityScriptError
from rendercaps.capabilities.model import CapabilitySet
from rendercaps.capabilities.serializer import SCRIPT_EXTENSION, parse_stream
from rendercaps.core.archive import open_archive
from rendercaps.core.locks import ReadWriteLock
from rendercaps.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class LoadReport:
    """Outcome of one bulk load."""

    source: str
    loaded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


class CapabilityRegistry:
    """
    Named store of capability sets.

    Lookups share a read lock; inserts take the write lock. Registered sets
    are treated as read-only by callers.
    """

    def __init__(self, strict: bool = False):
        """
        Initialize an empty registry.

        Args:
            strict: Reject scripts with unknown keywords instead of skipping
                those lines
        """
        self.strict = strict
        self._caps: dict[str, CapabilitySet] = {}
        self._lock = ReadWriteLock()

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def bulk_load(
        self,
        source: Path | str,
        archive_type: str = "FileSystem",
        recursive: bool = True,
    ) -> LoadReport:
        """
        Parse every ``.rendercaps`` script in an archive and register the results.

        A script contributes all of its blocks or, if any block fails to
        parse, none of them. Later entries replace earlier ones of the same
        name.

        Args:
            source: Archive location (directory or zip file)
            archive_type: ``"FileSystem"`` or ``"Zip"``
            recursive: Descend into subdirectories

        Returns:
            Names loaded and resources that failed
        """
        report = LoadReport(source=str(source))
        with open_archive(source, archive_type) as archive:
            resources = archive.list_resources(f"*{SCRIPT_EXTENSION}", recursive=recursive)
            for resource in resources:
                try:
                    with archive.open(resource) as stream:
                        blocks = parse_stream(stream, strict=self.strict, source=resource)
                except (CapabilityScriptError, UnicodeDecodeError, OSError) as exc:
                    report.failed[resource] = str(exc)
                    logger.error(
                        "rendercaps_parse_failed",
                        source=str(source),
                        resource=resource,
                        error=str(exc),
                    )
                    continue

                with self._lock.write():
                    for name, caps in blocks:
                        self._insert(name, caps, resource)
                report.loaded.extend(name for name, _ in blocks)

        logger.info(
            "rendercaps_bulk_loaded",
            source=str(source),
            resources=len(resources),
            loaded=len(report.loaded),
            failed=len(report.failed),
        )
        return report

    def _insert(self, name: str, caps: CapabilitySet, origin: str) -> None:
        if name in self._caps:
            logger.info("rendercaps_replaced", name=name, origin=origin)
        self._caps[name] = caps
        logger.debug("rendercaps_registered", name=name, origin=origin)

    def register(self, name: str, caps: CapabilitySet) -> None:
        """Register ``caps`` under ``name``, replacing any existing entry."""
        if not name:
            raise ValueError("name is required")
        with self._lock.write():
            self._insert(name, caps, "register")

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def lookup(self, name: str) -> CapabilitySet | None:
        """Return the set registered under ``name``, or None."""
        with self._lock.read():
            return self._caps.get(name)

    def names(self) -> list[str]:
        with self._lock.read():
            return sorted(self._caps)

    def __contains__(self, name: object) -> bool:
        with self._lock.read():
            return name in self._caps

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._caps)

    def clear(self) -> None:
        """Drop all entries."""
        with self._lock.write():
            self._caps.clear()
        logger.debug("rendercaps_registry_cleared")
