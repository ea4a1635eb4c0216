import contextlib
import io
import tempfile
import unittest
from pathlib import Path

from media_catalog.app import MediaCatalogApp
from media_catalog.commands import cleanup as cmd_cleanup
from media_catalog.commands import formats as cmd_formats
from media_catalog.commands import scan as cmd_scan
from media_catalog.config import DatabaseSettings, LibrarySettings, Settings
from media_catalog.custom_formats import CustomFormat, QualitySpecification, ReleaseGroupSpecification
from media_catalog.housekeeping import run_housekeeping


class TestFullIntegration(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.tmp = Path(tmp.name)
        self.root = self.tmp / "tv" / "Show"
        (self.root / "Season 1").mkdir(parents=True)
        settings = Settings(
            library=LibrarySettings(sample_size_threshold=10),
            database=DatabaseSettings(path=self.tmp / "catalog.sqlite3"),
            custom_formats=[
                CustomFormat(
                    name="HD LOL",
                    specifications=[
                        QualitySpecification(qualities=["hdtv"]),
                        ReleaseGroupSpecification(pattern="^LOL$"),
                    ],
                )
            ],
        )
        self.app = MediaCatalogApp.create(settings)
        self.addCleanup(self.app.close)
        self.owner = self.app.store.add_owner("Show", self.root)
        self.season = self.app.store.add_season(self.owner.id, 1)
        self.first = self.app.store.add_entry(self.owner.id, 1, 1)
        self.second = self.app.store.add_entry(self.owner.id, 1, 2)

    def _write(self, rel: str, size: int = 64) -> Path:
        path = self.root / rel
        path.write_bytes(b"x" * size)
        return path

    def test_scan_cleanup_and_housekeeping(self) -> None:
        self._write("Season 1/Show.S01E01.720p.HDTV.x264-LOL.mkv")
        gone = self._write("Season 1/Show.S01E02.720p.HDTV.x264-LOL.mkv")
        self._write("Season 1/Show.S01E02.sample.mkv", size=5)
        self._write("Season 1/Show.S01E01.nfo")

        with contextlib.redirect_stdout(io.StringIO()):
            results = cmd_scan.run(self.app)
        self.assertEqual(len(results), 1)
        self.assertTrue(results[0].ok)
        self.assertEqual(len(results[0].files), 2)

        media_file = self.app.importer.linked_file(self.app.store.get_entry(self.first.id))
        self.assertEqual([f.name for f in self.app.formats.for_file(media_file)], ["HD LOL"])

        gone.unlink()
        with contextlib.redirect_stdout(io.StringIO()):
            self.assertEqual(cmd_cleanup.run(self.app, dry_run=True), 1)
            self.assertEqual(len(self.app.store.all_media_files()), 2)
            self.assertEqual(cmd_cleanup.run(self.app), 1)
        self.assertIsNone(self.app.store.get_entry(self.second.id).media_file_id)

        self.app.store.add_history(self.owner.id, self.season.id, "Show.S01E02.720p.HDTV.x264-LOL")
        self.app.store.add_history(self.owner.id, self.season.id + 100, "Show.S01E02.720p.HDTV.x264-LOL")
        run_housekeeping([self.app.housekeeper])
        self.assertEqual(len(self.app.store.all_history()), 1)

    def test_formats_command_falls_back_to_raw_title(self) -> None:
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            matched = cmd_formats.run(self.app, "Show.S01E03.720p.HDTV.x264-LOL", verbose=True)
            unmatched = cmd_formats.run(self.app, "holiday video")
        self.assertEqual(matched, ["HD LOL"])
        self.assertEqual(unmatched, [])
        self.assertIn("[release_group] ReleaseGroupSpecification: yes", out.getvalue())
        self.assertIn("matching on the raw title", out.getvalue())


if __name__ == "__main__":
    unittest.main()
