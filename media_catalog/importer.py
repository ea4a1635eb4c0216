from __future__ import annotations

import logging
import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import Callable, List, Optional

from . import parser
from .config import LibrarySettings
from .models import CatalogEntry, ImportFailure, MediaFile, Owner, ScanResult
from .ports import CatalogLookup, DiskProvider, MediaFileStore
from .resolver import CatalogResolver

logger = logging.getLogger(__name__)

# Failures that abort a single file's import but not the surrounding scan.
IMPORT_ERRORS = (OSError, sqlite3.Error)

_EARLIEST_AIR_DATE = date(1899, 12, 31)


class ImportReconciler:
    """Keeps the persisted media files of an owner in step with its root folder.

    Scans for the same owner must not overlap: the existence check and the
    insert in :meth:`import_file` are not atomic. Callers serialize per owner.
    """

    def __init__(
        self,
        settings: LibrarySettings,
        disk: DiskProvider,
        files: MediaFileStore,
        catalog: CatalogLookup,
        resolver: Optional[CatalogResolver] = None,
    ) -> None:
        self.settings = settings
        self.disk = disk
        self.files = files
        self.catalog = catalog
        self.resolver = resolver or CatalogResolver(catalog)
        self._exts = {ext.lower() for ext in settings.include_extensions}

    def scan(
        self,
        owner: Owner,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> ScanResult:
        result = ScanResult(owner_id=owner.id)
        try:
            for file_path in self.media_files_in(owner.path):
                if should_cancel is not None and should_cancel():
                    logger.info("Scan of %s cancelled", owner.title)
                    result.cancelled = True
                    break
                try:
                    media_file = self.import_file(owner, file_path)
                except IMPORT_ERRORS as exc:
                    result.failures.append(ImportFailure(path=file_path, error=str(exc)))
                    continue
                if media_file is not None:
                    result.files.append(media_file)
        finally:
            owner.last_disk_sync = datetime.now()
            self.catalog.update_owner(owner)
        logger.info(
            "Scanned %s: %d imported, %d failed",
            owner.title,
            len(result.files),
            len(result.failures),
        )
        return result

    def import_file(self, owner: Owner, path: Path | str) -> Optional[MediaFile]:
        path = Path(path)
        logger.debug("Importing file to database %s", path)
        try:
            size = self.disk.size_of(path)
            if size < self.settings.sample_size_threshold and "sample" in str(path).lower():
                logger.debug("%s appears to be a sample, skipping", path)
                return None

            normalized = parser.normalize_path(path)
            if self.files.media_file_exists(normalized):
                logger.debug("%s already exists in the database, skipping", path)
                return None

            info = parser.parse(str(path))
            if info is None:
                logger.debug("Unable to parse %s, skipping", path)
                return None
            info.series_title = owner.title

            entries = self.resolver.resolve(owner.id, info)
            if not entries:
                logger.warning("Unable to find %s in the database: %s", info, path)
                return None

            media_file = MediaFile(
                owner_id=owner.id,
                path=normalized,
                size=size,
                quality=info.quality,
                date_added=datetime.now(),
                release_group=info.release_group,
            )
            self.files.add_media_file(media_file)

            for entry in entries:
                entry.media_file_id = media_file.id
                self.catalog.update_entry(entry)
            logger.debug(
                "File %s:%s attached to episode(s) %s",
                media_file.id,
                path,
                ", ".join(str(entry.id) for entry in entries),
            )
            return media_file
        except IMPORT_ERRORS:
            logger.exception("An error has occurred while importing file %s", path)
            raise

    def cleanup(self, files: List[MediaFile]) -> List[MediaFile]:
        """Remove rows whose file is gone and unlink the episodes that pointed at them."""
        removed: List[MediaFile] = []
        for media_file in files:
            if self.disk.file_exists(media_file.path):
                continue
            logger.info("File %s no longer exists on disk, removing from database", media_file.path)
            self.files.delete_media_file(media_file.id)
            unlinked = self.catalog.clear_media_file_links(media_file.id)
            logger.debug("Unlinked %d episode(s) from %s", unlinked, media_file.path)
            removed.append(media_file)
        return removed

    def media_files_in(self, root: Path) -> List[Path]:
        logger.debug("Scanning %s for episodes", root)
        media = [
            path
            for path in self.disk.list_files(root, recursive=True)
            if Path(path).suffix.lower() in self._exts
        ]
        logger.debug("%d media files were found in %s", len(media), root)
        return media

    def update(self, media_file: MediaFile) -> None:
        self.files.update_media_file(media_file)

    def get_media_file(self, media_file_id: int) -> Optional[MediaFile]:
        return self.files.get_media_file(media_file_id)

    def linked_file(self, entry: CatalogEntry) -> Optional[MediaFile]:
        """Dereference an episode's file link, which may point at a deleted row."""
        if not entry.media_file_id:
            return None
        media_file = self.files.get_media_file(entry.media_file_id)
        if media_file is None:
            logger.debug("Episode %s links to missing file %s", entry.id, entry.media_file_id)
        return media_file

    def get_owner_files(self, owner_id: int) -> List[MediaFile]:
        return self.files.get_owner_media_files(owner_id)

    def get_season_files(self, owner_id: int, season_number: int) -> List[MediaFile]:
        found: List[MediaFile] = []
        seen: set[int] = set()
        for entry in self.catalog.get_entries(owner_id):
            if entry.season_number != season_number:
                continue
            media_file = self.linked_file(entry)
            if media_file is None or media_file.id in seen:
                continue
            seen.add(media_file.id)
            found.append(media_file)
        return found

    def episode_file_counts(self, owner_id: int) -> tuple[int, int]:
        """(aired episodes in monitored seasons, how many of those have a file)."""
        monitored = {s.season_number for s in self.catalog.get_seasons(owner_id) if s.monitored}
        today = date.today()
        total = 0
        with_file = 0
        for entry in self.catalog.get_entries(owner_id):
            if entry.season_number not in monitored or entry.air_date is None:
                continue
            if not (_EARLIEST_AIR_DATE < entry.air_date <= today):
                continue
            total += 1
            if self.linked_file(entry) is not None:
                with_file += 1
        return total, with_file
