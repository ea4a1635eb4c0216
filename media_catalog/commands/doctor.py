from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from ..app import MediaCatalogApp
from .output import error, ok as ok_line, warning


@dataclass(slots=True)
class DoctorReport:
    ok: bool
    checks: list[str]


def run(app: MediaCatalogApp) -> DoctorReport:
    checks: list[str] = []
    ok = True

    try:
        owners = app.store.all_owners()
    except sqlite3.Error as exc:
        return DoctorReport(ok=False, checks=[error("Database", str(exc))])
    checks.append(ok_line("Database", str(app.settings.database.path)))

    missing = [str(owner.path) for owner in owners if not owner.path.is_dir()]
    if missing:
        ok = False
        checks.append(error("Series folders", f"missing: {', '.join(missing)}"))
    elif owners:
        checks.append(ok_line("Series folders", f"{len(owners)} folder(s)"))
    else:
        checks.append(warning("Series folders", "no series in the catalog"))

    exts = app.settings.library.include_extensions
    if exts:
        checks.append(ok_line("Media extensions", " ".join(exts)))
    else:
        ok = False
        checks.append(error("Media extensions", "none configured"))

    formats = app.store.all_formats()
    empty = [f.name for f in formats if not f.specifications]
    if empty:
        checks.append(warning("Custom formats", f"no specifications: {', '.join(empty)}"))
    else:
        checks.append(ok_line("Custom formats", f"{len(formats)} defined"))

    return DoctorReport(ok=ok, checks=checks)
