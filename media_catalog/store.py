from __future__ import annotations

import json
import sqlite3
from datetime import date, datetime
from pathlib import Path
from threading import Lock
from typing import Any, Optional

from .custom_formats.formats import CustomFormat
from .models import (
    BlocklistRecord,
    CatalogEntry,
    HistoryRecord,
    MediaFile,
    Owner,
    Quality,
    QualityType,
    Season,
)

_ENTRY_COLUMNS = "id, owner_id, season_number, episode_number, title, air_date, media_file_id"
_FILE_COLUMNS = "id, owner_id, path, size, quality, proper, date_added, scene_name, release_group"


class CatalogStore:
    """SQLite-backed store for owners, episodes, media files and their records.

    There are no foreign keys: history rows may outlive the
    owners and seasons they reference until housekeeping removes them.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        if str(path) != ":memory:":
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = Lock()
        self._conn = sqlite3.connect(self.path, check_same_thread=False)
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS owners (
                id INTEGER PRIMARY KEY,
                title TEXT NOT NULL,
                path TEXT NOT NULL,
                last_disk_sync TEXT
            )
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS seasons (
                id INTEGER PRIMARY KEY,
                owner_id INTEGER NOT NULL,
                season_number INTEGER NOT NULL,
                monitored INTEGER NOT NULL DEFAULT 1,
                UNIQUE(owner_id, season_number)
            )
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS catalog_entries (
                id INTEGER PRIMARY KEY,
                owner_id INTEGER NOT NULL,
                season_number INTEGER NOT NULL,
                episode_number INTEGER NOT NULL,
                title TEXT,
                air_date TEXT,
                media_file_id INTEGER
            )
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS media_files (
                id INTEGER PRIMARY KEY,
                owner_id INTEGER NOT NULL,
                path TEXT NOT NULL UNIQUE,
                size INTEGER NOT NULL,
                quality TEXT NOT NULL,
                proper INTEGER NOT NULL DEFAULT 0,
                date_added TEXT NOT NULL,
                scene_name TEXT,
                release_group TEXT
            )
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS history (
                id INTEGER PRIMARY KEY,
                owner_id INTEGER NOT NULL,
                season_id INTEGER NOT NULL,
                source_title TEXT NOT NULL,
                quality TEXT NOT NULL,
                proper INTEGER NOT NULL DEFAULT 0,
                data TEXT NOT NULL DEFAULT '{}',
                date TEXT NOT NULL
            )
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS blocklist (
                id INTEGER PRIMARY KEY,
                owner_id INTEGER NOT NULL,
                season_id INTEGER,
                source_title TEXT NOT NULL,
                quality TEXT NOT NULL,
                proper INTEGER NOT NULL DEFAULT 0,
                size INTEGER NOT NULL DEFAULT 0,
                release_group TEXT,
                date TEXT NOT NULL
            )
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS custom_formats (
                id INTEGER PRIMARY KEY,
                name TEXT NOT NULL UNIQUE,
                specifications TEXT NOT NULL
            )
            """
        )
        self._conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_entries_owner ON catalog_entries(owner_id, season_number, episode_number)"
        )
        self._conn.commit()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def execute(self, sql: str, params: tuple[Any, ...] = ()) -> int:
        """Run a single write statement and return the affected row count."""
        with self._lock:
            cursor = self._conn.execute(sql, params)
            self._conn.commit()
        return cursor.rowcount

    # Owners

    def add_owner(self, title: str, path: Path | str) -> Owner:
        with self._lock:
            cursor = self._conn.execute(
                "INSERT INTO owners(title, path) VALUES(?, ?)",
                (title, str(path)),
            )
            self._conn.commit()
        return Owner(id=int(cursor.lastrowid), title=title, path=Path(path))

    def get_owner(self, owner_id: int) -> Optional[Owner]:
        with self._lock:
            cursor = self._conn.execute(
                "SELECT id, title, path, last_disk_sync FROM owners WHERE id = ?",
                (owner_id,),
            )
            row = cursor.fetchone()
        return _owner(row) if row else None

    def all_owners(self) -> list[Owner]:
        with self._lock:
            cursor = self._conn.execute("SELECT id, title, path, last_disk_sync FROM owners ORDER BY id")
            rows = cursor.fetchall()
        return [_owner(row) for row in rows]

    def update_owner(self, owner: Owner) -> None:
        synced = owner.last_disk_sync.isoformat() if owner.last_disk_sync else None
        with self._lock:
            self._conn.execute(
                "UPDATE owners SET title = ?, path = ?, last_disk_sync = ? WHERE id = ?",
                (owner.title, str(owner.path), synced, owner.id),
            )
            self._conn.commit()

    def delete_owner(self, owner_id: int) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM catalog_entries WHERE owner_id = ?", (owner_id,))
            self._conn.execute("DELETE FROM seasons WHERE owner_id = ?", (owner_id,))
            self._conn.execute("DELETE FROM owners WHERE id = ?", (owner_id,))
            self._conn.commit()

    # Seasons

    def add_season(self, owner_id: int, season_number: int, monitored: bool = True) -> Season:
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO seasons(owner_id, season_number, monitored)
                VALUES(?, ?, ?)
                ON CONFLICT(owner_id, season_number) DO NOTHING
                """,
                (owner_id, season_number, 1 if monitored else 0),
            )
            self._conn.commit()
            row = self._conn.execute(
                "SELECT id, monitored FROM seasons WHERE owner_id = ? AND season_number = ?",
                (owner_id, season_number),
            ).fetchone()
        return Season(id=int(row[0]), owner_id=owner_id, season_number=season_number, monitored=bool(row[1]))

    def get_seasons(self, owner_id: int) -> list[Season]:
        with self._lock:
            cursor = self._conn.execute(
                "SELECT id, owner_id, season_number, monitored FROM seasons WHERE owner_id = ? ORDER BY season_number",
                (owner_id,),
            )
            rows = cursor.fetchall()
        return [Season(id=r[0], owner_id=r[1], season_number=r[2], monitored=bool(r[3])) for r in rows]

    def delete_season(self, season_id: int) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM seasons WHERE id = ?", (season_id,))
            self._conn.commit()

    # Catalog entries

    def add_entry(
        self,
        owner_id: int,
        season_number: int,
        episode_number: int,
        *,
        title: Optional[str] = None,
        air_date: Optional[date] = None,
    ) -> CatalogEntry:
        with self._lock:
            cursor = self._conn.execute(
                """
                INSERT INTO catalog_entries(owner_id, season_number, episode_number, title, air_date)
                VALUES(?, ?, ?, ?, ?)
                """,
                (owner_id, season_number, episode_number, title, air_date.isoformat() if air_date else None),
            )
            self._conn.commit()
        return CatalogEntry(
            id=int(cursor.lastrowid),
            owner_id=owner_id,
            season_number=season_number,
            episode_number=episode_number,
            title=title,
            air_date=air_date,
        )

    def get_entry(self, entry_id: int) -> Optional[CatalogEntry]:
        return self._fetch_entry(f"SELECT {_ENTRY_COLUMNS} FROM catalog_entries WHERE id = ?", (entry_id,))

    def get_entry_by_date(self, owner_id: int, air_date: date) -> Optional[CatalogEntry]:
        return self._fetch_entry(
            f"SELECT {_ENTRY_COLUMNS} FROM catalog_entries WHERE owner_id = ? AND air_date = ? ORDER BY id",
            (owner_id, air_date.isoformat()),
        )

    def get_entry_by_number(
        self, owner_id: int, season_number: int, episode_number: int
    ) -> Optional[CatalogEntry]:
        return self._fetch_entry(
            f"""
            SELECT {_ENTRY_COLUMNS} FROM catalog_entries
            WHERE owner_id = ? AND season_number = ? AND episode_number = ?
            ORDER BY id
            """,
            (owner_id, season_number, episode_number),
        )

    def get_entries(self, owner_id: int) -> list[CatalogEntry]:
        with self._lock:
            cursor = self._conn.execute(
                f"SELECT {_ENTRY_COLUMNS} FROM catalog_entries WHERE owner_id = ? ORDER BY season_number, episode_number",
                (owner_id,),
            )
            rows = cursor.fetchall()
        return [_entry(row) for row in rows]

    def update_entry(self, entry: CatalogEntry) -> None:
        with self._lock:
            self._conn.execute(
                """
                UPDATE catalog_entries
                SET season_number = ?, episode_number = ?, title = ?, air_date = ?, media_file_id = ?
                WHERE id = ?
                """,
                (
                    entry.season_number,
                    entry.episode_number,
                    entry.title,
                    entry.air_date.isoformat() if entry.air_date else None,
                    entry.media_file_id,
                    entry.id,
                ),
            )
            self._conn.commit()

    def clear_media_file_links(self, media_file_id: int) -> int:
        with self._lock:
            cursor = self._conn.execute(
                "UPDATE catalog_entries SET media_file_id = NULL WHERE media_file_id = ?",
                (media_file_id,),
            )
            self._conn.commit()
        return cursor.rowcount

    # Media files

    def media_file_exists(self, normalized_path: str) -> bool:
        with self._lock:
            cursor = self._conn.execute(
                "SELECT 1 FROM media_files WHERE path = ?",
                (normalized_path,),
            )
            row = cursor.fetchone()
        return bool(row)

    def add_media_file(self, media_file: MediaFile) -> int:
        with self._lock:
            cursor = self._conn.execute(
                """
                INSERT INTO media_files(owner_id, path, size, quality, proper, date_added, scene_name, release_group)
                VALUES(?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    media_file.owner_id,
                    media_file.path,
                    int(media_file.size),
                    media_file.quality.quality_type.value,
                    1 if media_file.quality.proper else 0,
                    media_file.date_added.isoformat(),
                    media_file.scene_name,
                    media_file.release_group,
                ),
            )
            self._conn.commit()
        media_file.id = int(cursor.lastrowid)
        return media_file.id

    def update_media_file(self, media_file: MediaFile) -> None:
        with self._lock:
            self._conn.execute(
                """
                UPDATE media_files
                SET size = ?, quality = ?, proper = ?, scene_name = ?, release_group = ?
                WHERE id = ?
                """,
                (
                    int(media_file.size),
                    media_file.quality.quality_type.value,
                    1 if media_file.quality.proper else 0,
                    media_file.scene_name,
                    media_file.release_group,
                    media_file.id,
                ),
            )
            self._conn.commit()

    def delete_media_file(self, media_file_id: int) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM media_files WHERE id = ?", (media_file_id,))
            self._conn.commit()

    def get_media_file(self, media_file_id: int) -> Optional[MediaFile]:
        with self._lock:
            cursor = self._conn.execute(
                f"SELECT {_FILE_COLUMNS} FROM media_files WHERE id = ?",
                (media_file_id,),
            )
            row = cursor.fetchone()
        return _media_file(row) if row else None

    def all_media_files(self) -> list[MediaFile]:
        with self._lock:
            cursor = self._conn.execute(f"SELECT {_FILE_COLUMNS} FROM media_files ORDER BY id")
            rows = cursor.fetchall()
        return [_media_file(row) for row in rows]

    def get_owner_media_files(self, owner_id: int) -> list[MediaFile]:
        with self._lock:
            cursor = self._conn.execute(
                f"SELECT {_FILE_COLUMNS} FROM media_files WHERE owner_id = ? ORDER BY id",
                (owner_id,),
            )
            rows = cursor.fetchall()
        return [_media_file(row) for row in rows]

    # History / blocklist

    def add_history(
        self,
        owner_id: int,
        season_id: int,
        source_title: str,
        quality: Quality = Quality(),
        data: Optional[dict[str, str]] = None,
    ) -> HistoryRecord:
        record = HistoryRecord(
            id=0,
            owner_id=owner_id,
            season_id=season_id,
            source_title=source_title,
            quality=quality,
            data=dict(data or {}),
        )
        with self._lock:
            cursor = self._conn.execute(
                """
                INSERT INTO history(owner_id, season_id, source_title, quality, proper, data, date)
                VALUES(?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    owner_id,
                    season_id,
                    source_title,
                    quality.quality_type.value,
                    1 if quality.proper else 0,
                    json.dumps(record.data),
                    record.date.isoformat(),
                ),
            )
            self._conn.commit()
        record.id = int(cursor.lastrowid)
        return record

    def all_history(self) -> list[HistoryRecord]:
        with self._lock:
            cursor = self._conn.execute(
                "SELECT id, owner_id, season_id, source_title, quality, proper, data, date FROM history ORDER BY id"
            )
            rows = cursor.fetchall()
        return [_history(row) for row in rows]

    def add_blocklist(
        self,
        owner_id: int,
        season_id: Optional[int],
        source_title: str,
        quality: Quality = Quality(),
        size: int = 0,
        release_group: Optional[str] = None,
    ) -> BlocklistRecord:
        record = BlocklistRecord(
            id=0,
            owner_id=owner_id,
            season_id=season_id,
            source_title=source_title,
            quality=quality,
            size=size,
            release_group=release_group,
        )
        with self._lock:
            cursor = self._conn.execute(
                """
                INSERT INTO blocklist(owner_id, season_id, source_title, quality, proper, size, release_group, date)
                VALUES(?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    owner_id,
                    season_id,
                    source_title,
                    quality.quality_type.value,
                    1 if quality.proper else 0,
                    int(size),
                    release_group,
                    record.date.isoformat(),
                ),
            )
            self._conn.commit()
        record.id = int(cursor.lastrowid)
        return record

    def all_blocklist(self) -> list[BlocklistRecord]:
        with self._lock:
            cursor = self._conn.execute(
                """
                SELECT id, owner_id, season_id, source_title, quality, proper, size, release_group, date
                FROM blocklist ORDER BY id
                """
            )
            rows = cursor.fetchall()
        return [
            BlocklistRecord(
                id=r[0],
                owner_id=r[1],
                season_id=r[2],
                source_title=r[3],
                quality=_quality(r[4], r[5]),
                size=int(r[6] or 0),
                release_group=r[7],
                date=datetime.fromisoformat(r[8]),
            )
            for r in rows
        ]

    # Custom formats

    def save_format(self, custom_format: CustomFormat) -> CustomFormat:
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO custom_formats(name, specifications)
                VALUES(?, ?)
                ON CONFLICT(name) DO UPDATE SET specifications=excluded.specifications
                """,
                (custom_format.name, custom_format.specifications_json()),
            )
            self._conn.commit()
            row = self._conn.execute(
                "SELECT id FROM custom_formats WHERE name = ?",
                (custom_format.name,),
            ).fetchone()
        return custom_format.model_copy(update={"id": int(row[0])})

    def all_formats(self) -> list[CustomFormat]:
        with self._lock:
            cursor = self._conn.execute("SELECT id, name, specifications FROM custom_formats ORDER BY id")
            rows = cursor.fetchall()
        return [CustomFormat.from_row(row[0], row[1], row[2]) for row in rows]

    def delete_format(self, name: str) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM custom_formats WHERE name = ?", (name,))
            self._conn.commit()

    def _fetch_entry(self, sql: str, params: tuple[Any, ...]) -> Optional[CatalogEntry]:
        with self._lock:
            cursor = self._conn.execute(sql, params)
            row = cursor.fetchone()
        return _entry(row) if row else None


def _quality(value: str, proper: int) -> Quality:
    return Quality(QualityType.from_value(value), bool(proper))


def _owner(row: tuple) -> Owner:
    synced = datetime.fromisoformat(row[3]) if row[3] else None
    return Owner(id=row[0], title=row[1], path=Path(row[2]), last_disk_sync=synced)


def _entry(row: tuple) -> CatalogEntry:
    return CatalogEntry(
        id=row[0],
        owner_id=row[1],
        season_number=row[2],
        episode_number=row[3],
        title=row[4],
        air_date=date.fromisoformat(row[5]) if row[5] else None,
        media_file_id=row[6],
    )


def _media_file(row: tuple) -> MediaFile:
    return MediaFile(
        id=row[0],
        owner_id=row[1],
        path=row[2],
        size=int(row[3]),
        quality=_quality(row[4], row[5]),
        date_added=datetime.fromisoformat(row[6]),
        scene_name=row[7],
        release_group=row[8],
    )


def _history(row: tuple) -> HistoryRecord:
    try:
        data = json.loads(row[6] or "{}")
    except json.JSONDecodeError:
        data = {}
    return HistoryRecord(
        id=row[0],
        owner_id=row[1],
        season_id=row[2],
        source_title=row[3],
        quality=_quality(row[4], row[5]),
        data={str(k): str(v) for k, v in data.items()},
        date=datetime.fromisoformat(row[7]),
    )
