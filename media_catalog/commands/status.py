from __future__ import annotations

from ..app import MediaCatalogApp


def run(app: MediaCatalogApp) -> None:
    owners = app.store.all_owners()
    if not owners:
        print("No series in the catalog.")
        return
    for owner in owners:
        total, with_file = app.importer.episode_file_counts(owner.id)
        synced = owner.last_disk_sync.strftime("%Y-%m-%d %H:%M") if owner.last_disk_sync else "never"
        print(f"{owner.id:>4}  {owner.title}: {with_file}/{total} episodes on disk (last scan: {synced})")
