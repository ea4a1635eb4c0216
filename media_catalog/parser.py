from __future__ import annotations

import logging
import os
import re
from datetime import date
from pathlib import Path
from typing import Optional

from .models import ParsedReleaseInfo, Quality, QualityType

logger = logging.getLogger(__name__)

_SEP = r"[\s._\-\[(]"

# S02E05, S02E05E06, S02E05-E06, S02E05-06
SEASON_EPISODE_PATTERN = re.compile(
    rf"(?:^|{_SEP})S(?P<season>\d{{1,2}})[\s._-]?E(?P<first>\d{{1,3}})"
    r"(?P<rest>(?:(?:[\s._-]?E|-)\d{1,3}(?![\dp]))*)(?![\dp])",
    re.IGNORECASE,
)
# 2x05, 2x05-06, 2x05x06
CROSS_EPISODE_PATTERN = re.compile(
    rf"(?:^|{_SEP})(?P<season>\d{{1,2}})x(?P<first>\d{{2,3}})"
    r"(?P<rest>(?:[-x]\d{2,3}(?![\dp]))*)(?![\dp])",
    re.IGNORECASE,
)
# 2023-05-01, 2023.05.01, 2023_05_01, 2023 05 01
AIR_DATE_PATTERN = re.compile(
    rf"(?:^|{_SEP})(?P<year>(?:19|20)\d{{2}})(?P<sep>[\s._-])(?P<month>\d{{2}})(?P=sep)(?P<day>\d{{2}})(?!\d)"
)
_EPISODE_TOKEN = re.compile(r"(?P<dash>-)?[\s._]?E?(?P<num>\d{1,3})", re.IGNORECASE)
_CROSS_TOKEN = re.compile(r"(?P<sep>[-x])(?P<num>\d{2,3})", re.IGNORECASE)
RELEASE_GROUP_PATTERN = re.compile(r"-(?P<group>[a-z0-9]+)$", re.IGNORECASE)
PROPER_PATTERN = re.compile(r"\b(?:proper|repack)\b", re.IGNORECASE)

VIDEO_EXTENSIONS = frozenset(
    {".mkv", ".avi", ".wmv", ".mp4", ".m4v", ".mov", ".mpg", ".mpeg", ".ts", ".divx"}
)
# Tokens that look like a trailing release group but belong to a quality tag.
_NOT_GROUPS = frozenset({"dl", "rip", "web", "hd", "sd"})
# Episode, resolution and codec tokens that can follow a dash.
_NOT_GROUP_PATTERN = re.compile(r"^(?:S\d{1,2}E\d{1,3}|E\d{1,3}|\d{3,4}[pi]|[xh]\.?26[45])$", re.IGNORECASE)


def parse(path_or_title: str) -> Optional[ParsedReleaseInfo]:
    """Recover release identity from a file path or a release title.

    The file name is tried first, then the name of the containing folder.
    Returns ``None`` when no episode or air-date token is found.
    """
    if not path_or_title or not path_or_title.strip():
        return None
    parts = [part for part in re.split(r"[\\/]", path_or_title.strip()) if part]
    if not parts:
        return None
    name = _strip_extension(parts[-1])
    candidates = [name]
    if len(parts) >= 2:
        candidates.append(parts[-2])
    for candidate in candidates:
        info = _parse_title(candidate)
        if info is not None:
            if info.quality.quality_type is QualityType.UNKNOWN and candidate != name:
                info.quality = parse_quality(f"{candidate} {name}")
            return info
    logger.debug("Unable to parse %s", path_or_title)
    return None


def parse_quality(title: str) -> Quality:
    normalized = re.sub(r"[._]", " ", title).lower()
    proper = bool(PROPER_PATTERN.search(normalized))

    def has(*tokens: str) -> bool:
        return any(re.search(rf"(?<![a-z0-9]){re.escape(t)}(?![a-z0-9])", normalized) for t in tokens)

    if has("bluray", "blu-ray", "bdrip", "brrip"):
        if has("1080p", "1080i"):
            return Quality(QualityType.BLURAY1080P, proper)
        return Quality(QualityType.BLURAY720P, proper)
    if has("web-dl", "webdl", "web dl", "webrip"):
        return Quality(QualityType.WEBDL, proper)
    if has("dvdrip", "dvd", "dvdr"):
        return Quality(QualityType.DVD, proper)
    if has("720p", "1080p", "x264", "h264", "h 264"):
        return Quality(QualityType.HDTV, proper)
    if has("hdtv", "pdtv", "sdtv", "dsr", "xvid", "divx"):
        return Quality(QualityType.SDTV, proper)
    return Quality(QualityType.UNKNOWN, proper)


def parse_release_group(title: str) -> Optional[str]:
    match = RELEASE_GROUP_PATTERN.search(title.strip())
    if not match:
        return None
    group = match.group("group")
    if group.isdigit() or group.lower() in _NOT_GROUPS or _NOT_GROUP_PATTERN.match(group):
        return None
    return group


def normalize_path(path: str | Path) -> str:
    """Canonical, platform-independent form of ``path`` used as the dedup key.

    Case is only folded where the platform's filesystem is case-insensitive.
    Symlinks are left untouched so the key does not depend on link targets.
    """
    text = os.path.abspath(os.path.expanduser(str(path)))
    text = os.path.normcase(os.path.normpath(text))
    text = text.replace("\\", "/")
    if len(text) > 1:
        text = text.rstrip("/") or "/"
    return text


def _parse_title(title: str) -> Optional[ParsedReleaseInfo]:
    match = SEASON_EPISODE_PATTERN.search(title)
    tokens = _EPISODE_TOKEN
    if match is None:
        match = CROSS_EPISODE_PATTERN.search(title)
        tokens = _CROSS_TOKEN
    if match is not None:
        episodes = _episode_numbers(int(match.group("first")), match.group("rest"), tokens)
        return ParsedReleaseInfo(
            series_title=_clean_title(title[: match.start()]),
            release_title=title,
            season_number=int(match.group("season")),
            episode_numbers=episodes,
            quality=parse_quality(title),
            release_group=parse_release_group(title),
        )

    for date_match in AIR_DATE_PATTERN.finditer(title):
        try:
            air_date = date(
                int(date_match.group("year")),
                int(date_match.group("month")),
                int(date_match.group("day")),
            )
        except ValueError:
            continue
        return ParsedReleaseInfo(
            series_title=_clean_title(title[: date_match.start()]),
            release_title=title,
            air_date=air_date,
            quality=parse_quality(title),
            release_group=parse_release_group(title),
        )
    return None


def _episode_numbers(first: int, rest: str, tokens: re.Pattern[str]) -> list[int]:
    numbers = [first]
    for token in tokens.finditer(rest or ""):
        num = int(token.group("num"))
        previous = numbers[-1]
        is_range = token.groupdict().get("dash") or token.groupdict().get("sep") == "-"
        if is_range and num > previous + 1:
            numbers.extend(range(previous + 1, num + 1))
        else:
            numbers.append(num)
    seen: set[int] = set()
    ordered: list[int] = []
    for num in numbers:
        if num in seen:
            continue
        seen.add(num)
        ordered.append(num)
    return ordered


def _strip_extension(name: str) -> str:
    root, ext = os.path.splitext(name)
    if ext.lower() in VIDEO_EXTENSIONS:
        return root
    return name


def _clean_title(value: str) -> str:
    cleaned = re.sub(r"[._]", " ", value)
    cleaned = re.sub(r"\s+", " ", cleaned)
    return cleaned.strip(" -[(")
