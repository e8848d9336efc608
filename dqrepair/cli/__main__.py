from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from dqrepair.config.loader import DEFAULT_CONFIG_PATH, AppConfig, ConfigError, apply_env_overrides, load_config
from dqrepair.logging.init import log_summary, setup_logging
from dqrepair.services.orchestrator import ProcessingError, process_feed
from dqrepair.services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- Load .env (path overrides) and the YAML config
- Read the feed, ingest, repair, write the corrections
- Print the SUMMARY line and exit with the contract exit code
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_PARTIAL = 2  # run completed but some rows were rejected


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv; failures only warn."""
    try:
        if path.exists():
            load_dotenv(dotenv_path=path, override=override)
    except OSError as e:  # pragma: no cover
        print(f"WARNING: failed to load .env via python-dotenv: {e}")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Record-level data-quality repair")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML run configuration")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print the feed header & first rows then exit")
    return p.parse_args(argv)


def _inspect_data(cfg: AppConfig) -> int:
    from dqrepair.feed.reader import FeedHeaderError, FeedReadError, read_feed

    try:
        feed = read_feed(Path(cfg.source_file), cfg.separator)
    except (FeedReadError, FeedHeaderError) as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    print(f"FEED: {feed.path.name} rows={feed.row_count} malformed={feed.malformed_count}")
    print(f"  header={list(feed.column_names.names)} canonical_order={feed.column_names.is_canonical()}")
    print(feed.to_frame(limit=5).to_string())
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみシステム引数を読む (テストで [] を渡すため)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    try:
        cfg = apply_env_overrides(load_config(args.config))
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.debug:
        for h in logger.handlers:
            h.setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
        logger.debug("debug mode enabled")

    if args.inspect_data:
        return _inspect_data(cfg)

    logger.info(f"Repairing records from: {cfg.source_file}")
    try:
        result = process_feed(cfg)
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL

    log_summary(render_summary_line(result).removeprefix("SUMMARY "))

    if result.has_rejections:
        return EXIT_PARTIAL
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
