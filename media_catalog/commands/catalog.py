from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Optional

from ..app import MediaCatalogApp


def add_series(app: MediaCatalogApp, title: str, path: Path) -> int:
    owner = app.store.add_owner(title, path.expanduser().resolve())
    print(f"Added series {owner.id}: {owner.title} ({owner.path})")
    return owner.id


def add_episode(
    app: MediaCatalogApp,
    owner_id: int,
    season_number: int,
    episode_number: int,
    *,
    title: Optional[str] = None,
    air_date: Optional[str] = None,
) -> int:
    if app.store.get_owner(owner_id) is None:
        raise SystemExit(f"No series with id {owner_id}")
    aired = date.fromisoformat(air_date) if air_date else None
    app.store.add_season(owner_id, season_number)
    entry = app.store.add_entry(owner_id, season_number, episode_number, title=title, air_date=aired)
    print(f"Added episode {entry.id}: S{season_number:02d}E{episode_number:02d}")
    return entry.id
