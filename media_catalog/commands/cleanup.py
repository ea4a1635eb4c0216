from __future__ import annotations

from ..app import MediaCatalogApp


def run(app: MediaCatalogApp, *, dry_run: bool = False) -> int:
    files = app.store.all_media_files()
    if dry_run:
        missing = [f for f in files if not app.disk.file_exists(f.path)]
        for media_file in missing:
            print(f"[dry-run] Would remove {media_file.path}")
        print(f"Cleanup complete (dry-run): {len(missing)} of {len(files)} files are missing on disk.")
        return len(missing)
    removed = app.importer.cleanup(files)
    for media_file in removed:
        print(f"Removed {media_file.path}")
    print(f"Cleanup complete: removed {len(removed)} of {len(files)} files no longer on disk.")
    return len(removed)
