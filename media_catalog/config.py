from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .custom_formats.formats import CustomFormat

SAMPLE_SIZE_THRESHOLD = 40_000_000


class LibrarySettings(BaseModel):
    include_extensions: List[str] = Field(default_factory=lambda: [".mkv", ".avi", ".wmv", ".mp4"])
    sample_size_threshold: int = SAMPLE_SIZE_THRESHOLD
    follow_symlinks: bool = False

    @field_validator("include_extensions", mode="before")
    @classmethod
    def _normalize_extensions(cls, values: List[str]) -> List[str]:
        normalized = []
        for value in values:
            ext = str(value).strip().lower()
            if not ext:
                continue
            normalized.append(ext if ext.startswith(".") else f".{ext}")
        return normalized


class DatabaseSettings(BaseModel):
    path: Path = Path("./data/catalog.sqlite3")

    @field_validator("path", mode="before")
    @classmethod
    def _expand_path(cls, value: str | Path) -> Path:
        return Path(value).expanduser().resolve()


class Settings(BaseModel):
    library: LibrarySettings = LibrarySettings()
    database: DatabaseSettings = DatabaseSettings()
    custom_formats: List[CustomFormat] = Field(default_factory=list)

    @classmethod
    def load(cls, path: Path) -> "Settings":
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
        return cls.model_validate(raw or {})


def find_config(explicit_path: Optional[Path]) -> Path:
    if explicit_path:
        return explicit_path
    cwd = Path.cwd()
    for candidate in (cwd / "config.yaml", cwd / "config.yml"):
        if candidate.exists():
            return candidate
    raise FileNotFoundError("Could not find config.yaml - pass --config explicitly.")
