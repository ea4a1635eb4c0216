from __future__ import annotations

from .. import parser
from ..app import MediaCatalogApp
from ..custom_formats import group_matches
from ..models import ParsedReleaseInfo


def run(app: MediaCatalogApp, title: str, *, verbose: bool = False) -> list[str]:
    info = parser.parse(title)
    if info is None:
        print(f"Could not identify an episode in {title!r}; matching on the raw title.")
        info = ParsedReleaseInfo(series_title="", release_title=title, quality=parser.parse_quality(title))
    else:
        print(f"Parsed: {info}")
    matched = app.formats.for_release(info)
    if not matched:
        print("No custom formats matched.")
    for custom_format in matched:
        print(f"Matched: {custom_format.name}")
    if verbose:
        for custom_format in app.store.all_formats():
            print(f"{custom_format.name}:")
            for kind, outcomes in group_matches(info, custom_format).items():
                for label, ok in outcomes.items():
                    print(f"  [{kind}] {label}: {'yes' if ok else 'no'}")
    return [custom_format.name for custom_format in matched]
