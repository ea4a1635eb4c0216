from __future__ import annotations

import logging
import queue
from pathlib import Path
from typing import Iterable

from watchdog.events import FileSystemEvent, FileSystemEventHandler

from .models import Owner

logger = logging.getLogger(__name__)


class WatchHandler(FileSystemEventHandler):
    """Queues a rescan of the owner whose root folder received a media file."""

    def __init__(
        self,
        scan_queue: "queue.Queue[int]",
        exts: Iterable[str],
        owners: Iterable[Owner],
    ) -> None:
        super().__init__()
        self.queue = scan_queue
        self.exts = {ext.lower() for ext in exts}
        self.owners = list(owners)

    def on_created(self, event: FileSystemEvent) -> None:
        self._maybe_enqueue(event.src_path, event.is_directory)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._maybe_enqueue(event.dest_path, event.is_directory)

    def _maybe_enqueue(self, src: str | bytes, is_directory: bool) -> None:
        if is_directory or not src:
            return
        if isinstance(src, bytes):
            src = src.decode("utf-8", errors="replace")
        path = Path(src)
        if path.suffix.lower() not in self.exts:
            return
        owner = self.owner_for(path)
        if owner is None:
            logger.debug("No owner for %s", path)
            return
        logger.debug("Queued rescan of %s for %s", owner.title, path)
        self.queue.put_nowait(owner.id)

    def owner_for(self, path: Path) -> Owner | None:
        best: Owner | None = None
        for owner in self.owners:
            root = Path(owner.path)
            if path == root or root in path.parents:
                if best is None or len(root.parts) > len(Path(best.path).parts):
                    best = owner
        return best
