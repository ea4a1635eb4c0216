from __future__ import annotations

import logging
import os
import re
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from .. import parser
from ..meta_keys import FILENAME, HISTORY_RELEASE_GROUP, HISTORY_SIZE, SIZE
from ..models import BlocklistRecord, HistoryRecord, MediaFile, ParsedReleaseInfo, Quality, QualityType
from ..ports import CatalogLookup, FormatDefinitions
from .formats import CustomFormat

logger = logging.getLogger(__name__)

_INTEGER = re.compile(r"[+-]?[0-9]+")


def format_matches(custom_format: CustomFormat, info: ParsedReleaseInfo) -> bool:
    return all(spec.is_satisfied_by(info) for spec in custom_format.specifications)


def match(info: ParsedReleaseInfo, formats: Iterable[CustomFormat]) -> List[CustomFormat]:
    """Return the formats whose specifications all hold for ``info``, in input order."""
    return [custom_format for custom_format in formats if format_matches(custom_format, info)]


def group_matches(info: ParsedReleaseInfo, custom_format: CustomFormat) -> Dict[str, Dict[str, bool]]:
    """Per-kind breakdown of specification outcomes, for diagnostics only."""
    groups: Dict[str, Dict[str, bool]] = defaultdict(dict)
    for spec in custom_format.specifications:
        groups[spec.kind][spec.label()] = spec.is_satisfied_by(info)
    return dict(groups)


class CustomFormatCalculator:
    """Evaluates the defined custom formats against releases, files and records.

    Formats are re-read from ``formats`` on every call so edits take effect
    without a restart.
    """

    def __init__(self, formats: FormatDefinitions, catalog: CatalogLookup) -> None:
        self.formats = formats
        self.catalog = catalog

    def for_release(self, info: ParsedReleaseInfo) -> List[CustomFormat]:
        matched = match(info, self.formats.all_formats())
        logger.debug("%s matched custom formats %s", info.release_title, [f.name for f in matched])
        return matched

    def for_file(self, media_file: MediaFile) -> List[CustomFormat]:
        filename = os.path.basename(media_file.path) if media_file.path else ""
        release_title = media_file.scene_name or _display_title(filename)
        info = ParsedReleaseInfo(
            series_title=self._owner_title(media_file.owner_id),
            release_title=release_title,
            quality=media_file.quality,
            release_group=media_file.release_group,
            extra_info={SIZE: media_file.size, FILENAME: filename},
        )
        return self.for_release(info)

    def for_blocklist(self, record: BlocklistRecord) -> List[CustomFormat]:
        info = self._from_source_title(
            record.owner_id,
            record.source_title,
            record.quality,
            record.release_group,
            record.size,
        )
        return self.for_release(info)

    def for_history(self, record: HistoryRecord) -> List[CustomFormat]:
        info = self._from_source_title(
            record.owner_id,
            record.source_title,
            record.quality,
            record.data.get(HISTORY_RELEASE_GROUP),
            _parse_size(record.data.get(HISTORY_SIZE)),
        )
        return self.for_release(info)

    def _from_source_title(
        self,
        owner_id: int,
        source_title: str,
        quality: Quality,
        release_group: Optional[str],
        size: int,
    ) -> ParsedReleaseInfo:
        parsed = parser.parse(source_title)
        if parsed is None:
            logger.debug("Falling back to raw source title for %s", source_title)
            return ParsedReleaseInfo(
                series_title=self._owner_title(owner_id),
                release_title=source_title,
                quality=quality,
                release_group=release_group,
                extra_info={SIZE: size},
            )
        if parsed.quality.quality_type is not QualityType.UNKNOWN:
            quality = parsed.quality
        return ParsedReleaseInfo(
            series_title=self._owner_title(owner_id) or parsed.series_title,
            release_title=parsed.release_title,
            season_number=parsed.season_number,
            episode_numbers=list(parsed.episode_numbers),
            air_date=parsed.air_date,
            quality=quality,
            release_group=parsed.release_group or release_group,
            extra_info={SIZE: size},
        )

    def _owner_title(self, owner_id: int) -> str:
        owner = self.catalog.get_owner(owner_id)
        if owner is None:
            logger.debug("Owner %s no longer exists", owner_id)
            return ""
        return owner.title


def _display_title(filename: str) -> str:
    root, ext = os.path.splitext(filename)
    return root if ext.lower() in parser.VIDEO_EXTENSIONS else filename


def _parse_size(value: object) -> int:
    if value is None:
        return 0
    text = str(value).strip()
    if not _INTEGER.fullmatch(text):
        return 0
    return int(text)
