from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional


class QualityType(str, Enum):
    UNKNOWN = "unknown"
    SDTV = "sdtv"
    DVD = "dvd"
    HDTV = "hdtv"
    WEBDL = "webdl"
    BLURAY720P = "bluray720p"
    BLURAY1080P = "bluray1080p"

    @classmethod
    def from_value(cls, value: object) -> "QualityType":
        if isinstance(value, QualityType):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True, slots=True)
class Quality:
    quality_type: QualityType = QualityType.UNKNOWN
    proper: bool = False

    def __str__(self) -> str:
        suffix = " proper" if self.proper else ""
        return f"{self.quality_type.value}{suffix}"


@dataclass(slots=True)
class ParsedReleaseInfo:
    """Structured release identity recovered from a path or a release title.

    Exactly one identity mode is populated: ``season_number`` with a non-empty
    ``episode_numbers`` list, or ``air_date``.
    """

    series_title: str
    release_title: str
    season_number: Optional[int] = None
    episode_numbers: List[int] = field(default_factory=list)
    air_date: Optional[date] = None
    quality: Quality = field(default_factory=Quality)
    release_group: Optional[str] = None
    extra_info: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_daily(self) -> bool:
        return self.air_date is not None

    def __str__(self) -> str:
        if self.air_date is not None:
            return f"{self.series_title} - {self.air_date.isoformat()} {self.quality}"
        episodes = "-".join(f"{num:02d}" for num in self.episode_numbers)
        return f"{self.series_title} - S{self.season_number or 0:02d}E{episodes} {self.quality}"


@dataclass(slots=True)
class Owner:
    id: int
    title: str
    path: Path
    last_disk_sync: Optional[datetime] = None


@dataclass(slots=True)
class Season:
    id: int
    owner_id: int
    season_number: int
    monitored: bool = True


@dataclass(slots=True)
class CatalogEntry:
    id: int
    owner_id: int
    season_number: int
    episode_number: int
    title: Optional[str] = None
    air_date: Optional[date] = None
    # Weak reference by id; the row may have been deleted since.
    media_file_id: Optional[int] = None


@dataclass(slots=True)
class MediaFile:
    owner_id: int
    path: str
    size: int
    quality: Quality = field(default_factory=Quality)
    date_added: datetime = field(default_factory=datetime.now)
    scene_name: Optional[str] = None
    release_group: Optional[str] = None
    id: Optional[int] = None

    @property
    def proper(self) -> bool:
        return self.quality.proper


@dataclass(slots=True)
class HistoryRecord:
    id: int
    owner_id: int
    season_id: int
    source_title: str
    quality: Quality = field(default_factory=Quality)
    data: Dict[str, str] = field(default_factory=dict)
    date: datetime = field(default_factory=datetime.now)


@dataclass(slots=True)
class BlocklistRecord:
    id: int
    owner_id: int
    season_id: Optional[int]
    source_title: str
    quality: Quality = field(default_factory=Quality)
    size: int = 0
    release_group: Optional[str] = None
    date: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True, slots=True)
class ImportFailure:
    path: Path
    error: str


@dataclass(slots=True)
class ScanResult:
    owner_id: int
    files: List[MediaFile] = field(default_factory=list)
    failures: List[ImportFailure] = field(default_factory=list)
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return not self.failures
