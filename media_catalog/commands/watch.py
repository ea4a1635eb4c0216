from __future__ import annotations

import logging
import queue

from watchdog.observers import Observer

from ..app import MediaCatalogApp
from ..watchdog_handler import WatchHandler

logger = logging.getLogger(__name__)


def run(app: MediaCatalogApp, *, poll_interval: float = 1.0) -> None:
    owners = [owner for owner in app.store.all_owners() if owner.path.is_dir()]
    if not owners:
        raise SystemExit("No series folders to watch")
    scan_queue: "queue.Queue[int]" = queue.Queue()
    handler = WatchHandler(scan_queue, app.settings.library.include_extensions, owners)
    observer = Observer()
    for owner in owners:
        observer.schedule(handler, str(owner.path), recursive=True)
    observer.start()
    logger.info("Watching %d series folder(s)", len(owners))
    try:
        while True:
            try:
                first = scan_queue.get(timeout=poll_interval)
            except queue.Empty:
                continue
            pending = {first}
            while True:
                try:
                    pending.add(scan_queue.get_nowait())
                except queue.Empty:
                    break
            # One consumer, so scans of the same series never overlap.
            for owner_id in sorted(pending):
                owner = app.store.get_owner(owner_id)
                if owner is None:
                    continue
                app.importer.scan(owner)
    except KeyboardInterrupt:
        logger.info("Stopping watcher")
    finally:
        observer.stop()
        observer.join()
