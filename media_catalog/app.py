from __future__ import annotations

import logging
from dataclasses import dataclass

from .config import Settings
from .custom_formats import CustomFormatCalculator
from .disk import LocalDiskProvider
from .housekeeping import OrphanHousekeeper
from .importer import ImportReconciler
from .resolver import CatalogResolver
from .store import CatalogStore

logger = logging.getLogger(__name__)


@dataclass
class MediaCatalogApp:
    settings: Settings
    store: CatalogStore
    disk: LocalDiskProvider
    importer: ImportReconciler
    formats: CustomFormatCalculator
    housekeeper: OrphanHousekeeper

    @classmethod
    def create(cls, settings: Settings) -> "MediaCatalogApp":
        store = CatalogStore(settings.database.path)
        disk = LocalDiskProvider(follow_symlinks=settings.library.follow_symlinks)
        importer = ImportReconciler(
            settings.library,
            disk=disk,
            files=store,
            catalog=store,
            resolver=CatalogResolver(store),
        )
        app = cls(
            settings=settings,
            store=store,
            disk=disk,
            importer=importer,
            formats=CustomFormatCalculator(store, store),
            housekeeper=OrphanHousekeeper(store),
        )
        app.sync_formats()
        return app

    def sync_formats(self) -> None:
        """Upsert the custom formats defined in the config file into the store."""
        for custom_format in self.settings.custom_formats:
            self.store.save_format(custom_format)
        if self.settings.custom_formats:
            logger.debug("Synced %d custom format(s) from config", len(self.settings.custom_formats))

    def close(self) -> None:
        self.store.close()
