from __future__ import annotations

import logging
from typing import List

from .models import CatalogEntry, ParsedReleaseInfo
from .ports import CatalogLookup

logger = logging.getLogger(__name__)


class CatalogResolver:
    """Maps parsed release identity onto an owner's existing catalog entries."""

    def __init__(self, catalog: CatalogLookup) -> None:
        self.catalog = catalog

    def resolve(self, owner_id: int, info: ParsedReleaseInfo) -> List[CatalogEntry]:
        if info.air_date is not None:
            entry = self.catalog.get_entry_by_date(owner_id, info.air_date)
            if entry is None:
                logger.warning("Unable to find episode airing %s for %s", info.air_date.isoformat(), info)
                return []
            return [entry]

        entries: List[CatalogEntry] = []
        seen: set[int] = set()
        for episode_number in info.episode_numbers:
            entry = self.catalog.get_entry_by_number(owner_id, info.season_number or 0, episode_number)
            if entry is None:
                logger.warning(
                    "Unable to find S%02dE%02d for %s",
                    info.season_number or 0,
                    episode_number,
                    info,
                )
                continue
            if entry.id in seen:
                continue
            seen.add(entry.id)
            entries.append(entry)
        return entries
