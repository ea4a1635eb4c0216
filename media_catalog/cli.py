from __future__ import annotations

import argparse
import logging
from pathlib import Path

from .app import MediaCatalogApp
from .commands import catalog as cmd_catalog
from .commands import cleanup as cmd_cleanup
from .commands import doctor as cmd_doctor
from .commands import formats as cmd_formats
from .commands import scan as cmd_scan
from .commands import status as cmd_status
from .commands import watch as cmd_watch
from .config import Settings, find_config
from .housekeeping import run_housekeeping

LOG_FORMAT = "%(levelname).1s | %(name)s | %(message)s"

C_RESET = "\033[0m"
LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",  # Cyan
    logging.INFO: "\033[37m",  # Light gray
    logging.WARNING: "\033[33m",  # Yellow
    logging.ERROR: "\033[31m",  # Red
    logging.CRITICAL: "\033[35m",  # Magenta
}


class ShortPathFormatter(logging.Formatter):
    def __init__(self, fmt: str, roots: list[Path]) -> None:
        super().__init__(fmt)
        self.roots = [str(root) for root in roots if root]

    def _shorten(self, message: str) -> str:
        for root in self.roots:
            if not message:
                break
            message = message.replace(f"{root}/", "")
        return message

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        return self._shorten(message)


class ColorFormatter(ShortPathFormatter):
    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        if not color:
            return message
        return f"{color}{message}{C_RESET}"


class WarningBufferHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.WARNING)
        self.records: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
        except Exception:  # pragma: no cover
            msg = record.getMessage()
        self.records.append(msg)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="TV library catalog")
    parser.add_argument("--config", type=Path, help="Path to config.yaml")
    parser.add_argument("--log-level", default="INFO", help="Python logging level")

    subparsers = parser.add_subparsers(dest="command", required=True)
    scan_parser = subparsers.add_parser("scan", help="Scan series folders and import new episode files")
    scan_parser.add_argument("--series", type=int, default=None, help="Only scan this series id")
    cleanup_parser = subparsers.add_parser(
        "cleanup", help="Remove catalogued files that no longer exist on disk"
    )
    cleanup_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only report files that would be removed",
    )
    subparsers.add_parser("housekeeping", help="Delete history rows for removed series or seasons")
    formats_parser = subparsers.add_parser(
        "formats", help="Show which custom formats a release title matches"
    )
    formats_parser.add_argument("title", help="Release title or file path")
    formats_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show the outcome of every specification",
    )
    subparsers.add_parser("status", help="Show episode file counts per series")
    subparsers.add_parser("doctor", help="Run basic config/database checks")
    subparsers.add_parser("watch", help="Rescan series folders when media files appear")
    series_parser = subparsers.add_parser("add-series", help="Add a series to the catalog")
    series_parser.add_argument("title")
    series_parser.add_argument("path", type=Path)
    episode_parser = subparsers.add_parser("add-episode", help="Add an episode to a series")
    episode_parser.add_argument("series", type=int)
    episode_parser.add_argument("season", type=int)
    episode_parser.add_argument("episode", type=int)
    episode_parser.add_argument("--title", default=None)
    episode_parser.add_argument("--air-date", default=None, help="YYYY-MM-DD")
    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    config_path = find_config(args.config)
    settings = Settings.load(config_path)
    log_level = getattr(logging, args.log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(log_level)

    app = MediaCatalogApp.create(settings)
    display_roots = [owner.path.parent for owner in app.store.all_owners()]

    color_handler = logging.StreamHandler()
    color_handler.setFormatter(ColorFormatter(LOG_FORMAT, display_roots))
    root_logger.addHandler(color_handler)

    warn_buffer = WarningBufferHandler()
    warn_buffer.setFormatter(ShortPathFormatter(LOG_FORMAT, display_roots))
    root_logger.addHandler(warn_buffer)

    warn_log_path = Path.cwd() / "media-catalog-warnings.log"
    file_handler = logging.FileHandler(warn_log_path, mode="w", encoding="utf-8")
    file_handler.setLevel(logging.WARNING)
    file_handler.setFormatter(ShortPathFormatter(LOG_FORMAT, display_roots))
    root_logger.addHandler(file_handler)

    logging.getLogger("watchdog").setLevel(logging.WARNING)

    try:
        match args.command:
            case "scan":
                results = cmd_scan.run(app, owner_id=args.series)
                if any(not result.ok for result in results):
                    raise SystemExit(1)
            case "cleanup":
                cmd_cleanup.run(app, dry_run=getattr(args, "dry_run", False))
            case "housekeeping":
                run_housekeeping([app.housekeeper])
            case "formats":
                cmd_formats.run(app, args.title, verbose=getattr(args, "verbose", False))
            case "status":
                cmd_status.run(app)
            case "doctor":
                report = cmd_doctor.run(app)
                for line in report.checks:
                    print(line)
                if not report.ok:
                    raise SystemExit(1)
            case "watch":
                cmd_watch.run(app)
            case "add-series":
                cmd_catalog.add_series(app, args.title, args.path)
            case "add-episode":
                cmd_catalog.add_episode(
                    app,
                    args.series,
                    args.season,
                    args.episode,
                    title=args.title,
                    air_date=args.air_date,
                )
            case _:
                parser.error("Unknown command")
    finally:
        app.close()
        if warn_buffer.records:
            print("\n\033[33mWarnings/Errors summary:\033[0m")
            for line in warn_buffer.records:
                print(f" - {line}")
            print(f"\nFull warning log: {warn_log_path}")


if __name__ == "__main__":
    main()
