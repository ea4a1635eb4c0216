import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from pydantic import ValidationError

from media_catalog.custom_formats import (
    CustomFormat,
    CustomFormatCalculator,
    ProperSpecification,
    QualitySpecification,
    ReleaseGroupSpecification,
    ReleaseTitleSpecification,
    SizeSpecification,
    format_matches,
    group_matches,
    match,
)
from media_catalog.custom_formats import matcher
from media_catalog.meta_keys import FILENAME, HISTORY_RELEASE_GROUP, HISTORY_SIZE, SIZE
from media_catalog.models import MediaFile, ParsedReleaseInfo, Quality, QualityType
from media_catalog.store import CatalogStore

GB = 1024**3


def _info(**kwargs) -> ParsedReleaseInfo:
    defaults = {
        "series_title": "Show",
        "release_title": "Show.S01E01.720p.HDTV.x264-LOL",
        "season_number": 1,
        "episode_numbers": [1],
        "quality": Quality(QualityType.HDTV),
        "release_group": "LOL",
    }
    defaults.update(kwargs)
    return ParsedReleaseInfo(**defaults)


class TestSpecifications(unittest.TestCase):
    def test_size_bounds(self) -> None:
        spec = SizeSpecification(min_gb=1, max_gb=2)
        self.assertTrue(spec.is_satisfied_by(_info(extra_info={SIZE: int(1.5 * GB)})))
        self.assertTrue(spec.is_satisfied_by(_info(extra_info={SIZE: 2 * GB})))
        self.assertFalse(spec.is_satisfied_by(_info(extra_info={SIZE: 1 * GB})))
        self.assertFalse(spec.is_satisfied_by(_info(extra_info={SIZE: 3 * GB})))
        self.assertFalse(spec.is_satisfied_by(_info()))

    def test_size_without_upper_bound(self) -> None:
        spec = SizeSpecification(min_gb=0.5)
        self.assertTrue(spec.is_satisfied_by(_info(extra_info={SIZE: 50 * GB})))

    def test_release_group_pattern_is_case_insensitive(self) -> None:
        spec = ReleaseGroupSpecification(pattern="^lol$")
        self.assertTrue(spec.is_satisfied_by(_info()))
        self.assertFalse(spec.is_satisfied_by(_info(release_group=None)))

    def test_negate_inverts_single_rule(self) -> None:
        spec = ReleaseTitleSpecification(pattern=r"\bx265\b", negate=True)
        self.assertTrue(spec.is_satisfied_by(_info()))
        self.assertFalse(spec.is_satisfied_by(_info(release_title="Show.S01E01.x265")))

    def test_quality_and_proper(self) -> None:
        self.assertTrue(QualitySpecification(qualities=["hdtv", "webdl"]).is_satisfied_by(_info()))
        self.assertFalse(QualitySpecification(qualities=[QualityType.DVD]).is_satisfied_by(_info()))
        proper = _info(quality=Quality(QualityType.HDTV, proper=True))
        self.assertTrue(ProperSpecification().is_satisfied_by(proper))
        self.assertFalse(ProperSpecification().is_satisfied_by(_info()))

    def test_invalid_pattern_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            ReleaseTitleSpecification(pattern="(unclosed")

    def test_specifications_load_by_kind(self) -> None:
        custom_format = CustomFormat.model_validate(
            {
                "name": "Small HD",
                "specifications": [
                    {"kind": "size", "max_gb": 1.5},
                    {"kind": "quality", "qualities": ["hdtv"]},
                ],
            }
        )
        self.assertIsInstance(custom_format.specifications[0], SizeSpecification)
        self.assertIsInstance(custom_format.specifications[1], QualitySpecification)


class TestMatch(unittest.TestCase):
    def setUp(self) -> None:
        self.title = ReleaseTitleSpecification(pattern="720p")
        self.group = ReleaseGroupSpecification(pattern="^LOL$")
        self.custom_format = CustomFormat(name="HD LOL", specifications=[self.title, self.group])

    def test_all_specifications_must_hold(self) -> None:
        self.assertEqual(match(_info(), [self.custom_format]), [self.custom_format])
        self.assertEqual(match(_info(release_group="DIMENSION"), [self.custom_format]), [])
        self.assertEqual(match(_info(release_title="Show.S01E01.HDTV-LOL"), [self.custom_format]), [])

    def test_same_kind_specifications_are_still_anded(self) -> None:
        both = CustomFormat(
            name="Two titles",
            specifications=[
                ReleaseTitleSpecification(pattern="720p"),
                ReleaseTitleSpecification(pattern="1080p"),
            ],
        )
        self.assertFalse(format_matches(both, _info()))

    def test_preserves_input_order(self) -> None:
        first = CustomFormat(name="First", specifications=[self.group])
        second = CustomFormat(name="Second", specifications=[self.title])
        unmatched = CustomFormat(name="Never", specifications=[ReleaseGroupSpecification(pattern="NOPE")])
        result = match(_info(), [second, unmatched, first])
        self.assertEqual([f.name for f in result], ["Second", "First"])

    def test_group_matches_is_diagnostic_only(self) -> None:
        info = _info(release_group="OTHER")
        groups = group_matches(info, self.custom_format)
        self.assertEqual(groups["release_title"], {"ReleaseTitleSpecification": True})
        self.assertEqual(groups["release_group"], {"ReleaseGroupSpecification": False})
        self.assertFalse(format_matches(self.custom_format, info))


class TestCustomFormatCalculator(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.store = CatalogStore(Path(tmp.name) / "catalog.sqlite3")
        self.addCleanup(self.store.close)
        self.owner = self.store.add_owner("Show", Path("/tv/Show"))
        self.season = self.store.add_season(self.owner.id, 1)
        self.store.save_format(
            CustomFormat(name="LOL", specifications=[ReleaseGroupSpecification(pattern="^LOL$")])
        )
        self.store.save_format(
            CustomFormat(name="Big", specifications=[SizeSpecification(min_gb=1)])
        )
        self.calculator = CustomFormatCalculator(self.store, self.store)

    def _captured_info(self, call) -> ParsedReleaseInfo:
        with patch.object(matcher, "match", wraps=matcher.match) as spy:
            call()
        return spy.call_args[0][0]

    def test_formats_are_read_on_every_call(self) -> None:
        self.assertEqual([f.name for f in self.calculator.for_release(_info())], ["LOL"])
        self.store.save_format(CustomFormat(name="Any HDTV", specifications=[QualitySpecification(qualities=["hdtv"])]))
        self.assertEqual([f.name for f in self.calculator.for_release(_info())], ["LOL", "Any HDTV"])

    def test_file_prefers_scene_name(self) -> None:
        media_file = MediaFile(
            id=1,
            owner_id=self.owner.id,
            path="/tv/Show/obfuscated.mkv",
            size=2 * GB,
            quality=Quality(QualityType.WEBDL),
            scene_name="Show.S01E01.720p.WEB-DL-LOL",
            release_group="LOL",
        )
        info = self._captured_info(lambda: self.calculator.for_file(media_file))
        self.assertEqual(info.series_title, "Show")
        self.assertEqual(info.release_title, "Show.S01E01.720p.WEB-DL-LOL")
        self.assertEqual(info.extra_info, {SIZE: 2 * GB, FILENAME: "obfuscated.mkv"})
        self.assertEqual(
            [f.name for f in self.calculator.for_file(media_file)],
            ["LOL", "Big"],
        )

    def test_file_without_scene_name_uses_base_name(self) -> None:
        media_file = MediaFile(owner_id=self.owner.id, path="/tv/Show/Show.S01E01.720p.mkv", size=10)
        info = self._captured_info(lambda: self.calculator.for_file(media_file))
        self.assertEqual(info.release_title, "Show.S01E01.720p")
        self.assertEqual(info.extra_info[FILENAME], "Show.S01E01.720p.mkv")

    def test_blocklist_uses_parsed_title(self) -> None:
        record = self.store.add_blocklist(
            self.owner.id,
            self.season.id,
            "Show.S01E01.720p.HDTV.x264-LOL",
            quality=Quality(QualityType.WEBDL),
            size=3 * GB,
        )
        info = self._captured_info(lambda: self.calculator.for_blocklist(record))
        self.assertEqual(info.release_group, "LOL")
        self.assertEqual(info.quality.quality_type, QualityType.HDTV)
        self.assertEqual(info.extra_info, {SIZE: 3 * GB})
        self.assertEqual([f.name for f in self.calculator.for_blocklist(record)], ["LOL", "Big"])

    def test_blocklist_falls_back_to_record(self) -> None:
        record = self.store.add_blocklist(
            self.owner.id,
            self.season.id,
            "Totally Unknown Release",
            quality=Quality(QualityType.DVD),
            release_group="LOL",
        )
        info = self._captured_info(lambda: self.calculator.for_blocklist(record))
        self.assertEqual(info.release_title, "Totally Unknown Release")
        self.assertEqual(info.quality.quality_type, QualityType.DVD)
        self.assertEqual(info.release_group, "LOL")

    def test_history_with_unparsable_title_and_bad_size(self) -> None:
        record = self.store.add_history(
            self.owner.id,
            self.season.id,
            "some unparsable thing",
            data={"size": "abc"},
        )
        info = self._captured_info(lambda: self.calculator.for_history(record))
        self.assertEqual(info.release_title, "some unparsable thing")
        self.assertEqual(info.extra_info, {SIZE: 0})
        self.assertEqual(self.calculator.for_history(record), [])

    def test_history_size_is_read_from_data(self) -> None:
        record = self.store.add_history(
            self.owner.id,
            self.season.id,
            "Show.S01E02.HDTV.x264-GRP",
            data={"size": str(5 * GB)},
        )
        self.assertEqual([f.name for f in self.calculator.for_history(record)], ["Big"])

    def test_history_release_group_comes_from_data(self) -> None:
        record = self.store.add_history(
            self.owner.id,
            self.season.id,
            "Show S01E02 HDTV",
            data={HISTORY_RELEASE_GROUP: "LOL", HISTORY_SIZE: "1_000"},
        )
        info = self._captured_info(lambda: self.calculator.for_history(record))
        self.assertEqual(info.release_group, "LOL")
        self.assertEqual(info.extra_info, {SIZE: 0})

    def test_history_size_accepts_only_plain_integers(self) -> None:
        self.assertEqual(matcher._parse_size(" 1500 "), 1500)
        self.assertEqual(matcher._parse_size("-3"), -3)
        self.assertEqual(matcher._parse_size("1_000"), 0)
        self.assertEqual(matcher._parse_size("1.5"), 0)
        self.assertEqual(matcher._parse_size(None), 0)

    def test_orphaned_record_still_matches(self) -> None:
        record = self.store.add_history(9999, self.season.id, "Show.S01E02.HDTV.x264-LOL")
        info = self._captured_info(lambda: self.calculator.for_history(record))
        self.assertEqual(info.series_title, "Show")
        self.assertEqual([f.name for f in self.calculator.for_history(record)], ["LOL"])


if __name__ == "__main__":
    unittest.main()
