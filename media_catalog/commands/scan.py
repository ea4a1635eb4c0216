from __future__ import annotations

import logging
from typing import Optional

from ..app import MediaCatalogApp
from ..models import ScanResult

logger = logging.getLogger(__name__)


def run(app: MediaCatalogApp, *, owner_id: Optional[int] = None) -> list[ScanResult]:
    if owner_id is not None:
        owner = app.store.get_owner(owner_id)
        if owner is None:
            raise SystemExit(f"No series with id {owner_id}")
        owners = [owner]
    else:
        owners = app.store.all_owners()
    results: list[ScanResult] = []
    for owner in owners:
        result = app.importer.scan(owner)
        results.append(result)
        print(f"{owner.title}: imported {len(result.files)} file(s), {len(result.failures)} failure(s)")
        for failure in result.failures:
            print(f" - {failure.path}: {failure.error}")
    return results
