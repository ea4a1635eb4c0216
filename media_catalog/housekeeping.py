from __future__ import annotations

import logging
from typing import Iterable, Protocol

from .store import CatalogStore

logger = logging.getLogger(__name__)


class HousekeepingTask(Protocol):
    name: str

    def clean(self) -> None: ...


class OrphanHousekeeper:
    """Deletes history rows whose owner or season no longer exists."""

    name = "orphaned-history"

    def __init__(self, store: CatalogStore) -> None:
        self.store = store

    def clean(self) -> None:
        removed = self._cleanup_orphaned_by_owner()
        removed += self._cleanup_orphaned_by_season()
        logger.debug("Removed %d orphaned history rows", removed)

    def _cleanup_orphaned_by_owner(self) -> int:
        return self.store.execute(
            """
            DELETE FROM history
            WHERE id IN (
                SELECT history.id FROM history
                LEFT OUTER JOIN owners ON history.owner_id = owners.id
                WHERE owners.id IS NULL
            )
            """
        )

    def _cleanup_orphaned_by_season(self) -> int:
        return self.store.execute(
            """
            DELETE FROM history
            WHERE id IN (
                SELECT history.id FROM history
                LEFT OUTER JOIN seasons ON history.season_id = seasons.id
                WHERE seasons.id IS NULL
            )
            """
        )


def run_housekeeping(tasks: Iterable[HousekeepingTask]) -> None:
    for task in tasks:
        logger.info("Running housekeeping task %s", task.name)
        task.clean()
