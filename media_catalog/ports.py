from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Iterable, Optional, Protocol, TYPE_CHECKING

from .models import CatalogEntry, MediaFile, Owner, Season

if TYPE_CHECKING:
    from .custom_formats.formats import CustomFormat


class DiskProvider(Protocol):
    def list_files(self, root: Path, recursive: bool = True) -> Iterable[Path]: ...

    def file_exists(self, path: Path | str) -> bool: ...

    def size_of(self, path: Path | str) -> int: ...


class MediaFileStore(Protocol):
    def media_file_exists(self, normalized_path: str) -> bool: ...

    def add_media_file(self, media_file: MediaFile) -> int: ...

    def update_media_file(self, media_file: MediaFile) -> None: ...

    def delete_media_file(self, media_file_id: int) -> None: ...

    def all_media_files(self) -> list[MediaFile]: ...

    def get_media_file(self, media_file_id: int) -> Optional[MediaFile]: ...

    def get_owner_media_files(self, owner_id: int) -> list[MediaFile]: ...


class CatalogLookup(Protocol):
    def get_entry_by_date(self, owner_id: int, air_date: date) -> Optional[CatalogEntry]: ...

    def get_entry_by_number(
        self, owner_id: int, season_number: int, episode_number: int
    ) -> Optional[CatalogEntry]: ...

    def get_entries(self, owner_id: int) -> list[CatalogEntry]: ...

    def get_seasons(self, owner_id: int) -> list[Season]: ...

    def get_owner(self, owner_id: int) -> Optional[Owner]: ...

    def update_entry(self, entry: CatalogEntry) -> None: ...

    def clear_media_file_links(self, media_file_id: int) -> int: ...

    def update_owner(self, owner: Owner) -> None: ...


class FormatDefinitions(Protocol):
    def all_formats(self) -> list["CustomFormat"]: ...
