import argparse
import asyncio
import json
import sys
from pathlib import Path

from coverscraper.catalog import load_catalog
from coverscraper.config import Settings
from coverscraper.errors import CoverScraperError
from coverscraper.logging_config import get_logger, set_level
from coverscraper.pipeline import RunReport, acquire_covers, log_summary

logger = get_logger(__name__)


def parse_args(argv=None, settings: Settings | None = None):
    defaults = settings or Settings.from_env()
    p = argparse.ArgumentParser(description="Fetch missing book cover images from web search providers")
    p.add_argument("--catalog", required=True, help="JSON catalog of {id, title, author} records")
    p.add_argument("--out-dir", default=defaults.out_dir, help="Folder holding {id}.{ext} cover files")
    p.add_argument("--headless", dest="headless", action="store_true", default=defaults.headless,
                   help="Run headless browser (default)")
    p.add_argument("--headed", dest="headless", action="store_false", help="Show the browser window")
    p.add_argument("--storage-state", type=str, default=defaults.storage_state,
                   help="Playwright storage_state json loaded into each session")
    p.add_argument("--min-delay-ms", type=int, default=defaults.min_delay_ms,
                   help="Lower bound of the pause between entries")
    p.add_argument("--max-delay-ms", type=int, default=defaults.max_delay_ms,
                   help="Upper bound (exclusive) of the pause between entries")
    p.add_argument("--report-json", type=str, default=None, help="Write the run report to this path")
    p.add_argument("--log-level", type=str.upper, default=None,
                   choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], help="Console log level")
    args = p.parse_args(argv)

    args.settings = Settings(
        out_dir=args.out_dir,
        headless=args.headless,
        storage_state=args.storage_state,
        nav_timeout_ms=defaults.nav_timeout_ms,
        wait_timeout_ms=defaults.wait_timeout_ms,
        min_delay_ms=args.min_delay_ms,
        max_delay_ms=args.max_delay_ms,
        min_image_size=defaults.min_image_size,
        download_timeout_s=defaults.download_timeout_s,
    )
    return args


def write_report(report: RunReport, path: str) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(report.to_dict(), f, ensure_ascii=False, indent=2)
    logger.info("Report written to %s", path)


async def main(argv=None) -> int:
    args = parse_args(argv)
    if args.log_level:
        set_level(args.log_level)

    try:
        entries = load_catalog(args.catalog)
        logger.info("Loaded %d entries from %s", len(entries), args.catalog)
        report = await acquire_covers(entries, args.out_dir, settings=args.settings)
    except CoverScraperError as exc:
        logger.error("Fatal error: %s", exc)
        return 1
    except Exception:
        logger.exception("Fatal error")
        return 1

    log_summary(report)
    if args.report_json:
        write_report(report, args.report_json)

    print(f"[OK] {len(report.satisfied)} satisfied, {len(report.failed)} failed → {args.out_dir}")
    return 0


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
