from __future__ import annotations

import errno
import logging
import os
from pathlib import Path
from typing import Iterator, Optional

logger = logging.getLogger(__name__)


def path_exists(path: Path) -> Optional[bool]:
    try:
        path.stat()
        return True
    except FileNotFoundError:
        return False
    except OSError as exc:
        if exc.errno != errno.ENAMETOOLONG:
            raise
        parent = path.parent
        try:
            with os.scandir(parent) as it:
                for entry in it:
                    if entry.name == path.name:
                        return True
        except FileNotFoundError:
            return None
        return False


class LocalDiskProvider:
    """Filesystem access for the importer, backed by the local disk."""

    def __init__(self, follow_symlinks: bool = False) -> None:
        self.follow_symlinks = follow_symlinks

    def list_files(self, root: Path, recursive: bool = True) -> Iterator[Path]:
        root = Path(root)
        if not root.is_dir():
            logger.warning("Root folder %s does not exist", root)
            return
        if not recursive:
            for entry in sorted(root.iterdir()):
                if entry.is_file():
                    yield entry
            return
        for dirpath, dirnames, filenames in os.walk(root, followlinks=self.follow_symlinks):
            dirnames.sort()
            directory = Path(dirpath)
            for name in sorted(filenames):
                yield directory / name

    def file_exists(self, path: Path | str) -> bool:
        return bool(path_exists(Path(path)))

    def size_of(self, path: Path | str) -> int:
        return Path(path).stat().st_size
