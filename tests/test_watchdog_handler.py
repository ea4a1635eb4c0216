import queue
import unittest
from pathlib import Path

from media_catalog.models import Owner
from media_catalog.watchdog_handler import WatchHandler


class _Event:
    def __init__(self, src_path, *, dest_path=None, is_directory: bool = False) -> None:
        self.src_path = src_path
        self.dest_path = dest_path
        self.is_directory = is_directory


class TestWatchdogHandler(unittest.TestCase):
    def setUp(self) -> None:
        self.queue: queue.Queue[int] = queue.Queue()
        self.handler = WatchHandler(
            self.queue,
            exts=[".mkv", ".AVI"],
            owners=[
                Owner(id=1, title="Show", path=Path("/tv/Show")),
                Owner(id=2, title="Show Extras", path=Path("/tv/Show/Extras")),
                Owner(id=3, title="Other", path=Path("/tv/Other")),
            ],
        )

    def test_bytes_src_path_is_decoded(self) -> None:
        self.handler.on_created(_Event(b"/tv/Other/Other.S01E01.mkv"))  # type: ignore[arg-type]
        self.assertEqual(self.queue.get_nowait(), 3)

    def test_non_media_files_and_directories_are_ignored(self) -> None:
        self.handler.on_created(_Event("/tv/Show/Show.S01E01.nfo"))  # type: ignore[arg-type]
        self.handler.on_created(_Event("/tv/Show/Season 1.mkv", is_directory=True))  # type: ignore[arg-type]
        self.handler.on_created(_Event("/downloads/Show.S01E01.mkv"))  # type: ignore[arg-type]
        self.assertTrue(self.queue.empty())

    def test_extension_match_is_case_insensitive(self) -> None:
        self.handler.on_created(_Event("/tv/Show/Show.S01E01.avi"))  # type: ignore[arg-type]
        self.assertEqual(self.queue.get_nowait(), 1)

    def test_deepest_owner_wins(self) -> None:
        self.handler.on_created(_Event("/tv/Show/Extras/Show.S00E01.mkv"))  # type: ignore[arg-type]
        self.assertEqual(self.queue.get_nowait(), 2)

    def test_move_uses_destination(self) -> None:
        self.handler.on_moved(
            _Event("/downloads/tmp.part", dest_path="/tv/Show/Show.S01E02.mkv")  # type: ignore[arg-type]
        )
        self.assertEqual(self.queue.get_nowait(), 1)


if __name__ == "__main__":
    unittest.main()
