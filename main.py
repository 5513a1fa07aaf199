"""CLI entrypoint: search, fetch, collect and compress RedNote evidence."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
import sys

from config import get_settings
from processing import AdaptiveCompressor, CompressionOptions
from utils.exceptions import EvidenceAgentError
from utils.logger import setup_logger


def _print(payload) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


async def _search(args, settings) -> dict:
    from scrapers import BrowserSession, RedNoteSearchScraper

    async with BrowserSession(settings.browser) as session:
        scraper = RedNoteSearchScraper(session, settings.browser)
        result = await scraper.search(
            args.keyword,
            limit=args.limit,
            sort_mode=args.sort,
            min_engagement=args.min_likes,
        )
    return result.model_dump(mode="json")


async def _fetch(args, settings) -> dict:
    from pipeline import build_executor
    from scrapers import BrowserSession

    async with BrowserSession(settings.browser) as session:
        executor = build_executor(session, settings)
        batch = await executor.fetch_batch(args.urls, include_images=not args.no_images)
    return batch.model_dump(mode="json", exclude={"notes": {"__all__": {"images": {"__all__": {"data"}}}}})


async def _collect(args, settings) -> dict:
    from pipeline import collect_article

    retrieval = settings.retrieval.model_copy(
        update={
            key: value
            for key, value in {
                "initial_limit": args.initial_limit,
                "max_limit": args.max_limit,
                "increment": args.increment,
            }.items()
            if value is not None
        }
    )
    settings = settings.model_copy(update={"retrieval": retrieval})
    report = await collect_article(
        args.question,
        args.keyword,
        args.topic,
        settings=settings,
        output_dir=args.output_dir,
        analyze_images=args.vlm,
    )
    outcome = report.outcome
    return {
        "status": outcome.status.value,
        "iterations": outcome.state.iteration,
        "final_limit": outcome.state.current_limit,
        "notes": len(outcome.notes),
        "failed": [error.model_dump() for error in outcome.batch.errors],
        "article": str(report.article_path) if report.article_path else None,
    }


def _compress(args, settings) -> dict:
    source = Path(args.path).expanduser()
    compressor = AdaptiveCompressor.from_settings(settings.compression)
    overrides = {"quality": args.quality, "format": args.format}
    if args.max_size:
        overrides.update(max_width=args.max_size, max_height=args.max_size)
    options = compressor.options.merged(**overrides)
    target = args.target_kb * 1024 if args.target_kb else None

    result = compressor.compress(source.read_bytes(), target_bytes=target, options=options)
    out = None
    if args.out:
        out = Path(args.out).expanduser()
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_bytes(result.compressed)
    meta = result.metadata
    return {
        "source": str(source),
        "output": str(out) if out else None,
        "original_size": meta.original_size,
        "compressed_size": meta.compressed_size,
        "compression_ratio": meta.compression_ratio,
        "width": meta.width,
        "height": meta.height,
        "format": meta.format,
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="RedNote evidence collector CLI")
    parser.add_argument("--log-level", default=None)
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search")
    search.add_argument("--keyword", required=True)
    search.add_argument("--limit", type=int, default=10)
    search.add_argument("--sort", choices=["general", "popular", "latest"], default="general")
    search.add_argument("--min-likes", type=int, default=0)

    fetch = sub.add_parser("fetch")
    fetch.add_argument("urls", nargs="+")
    fetch.add_argument("--no-images", action="store_true")

    collect = sub.add_parser("collect")
    collect.add_argument("--question", required=True)
    collect.add_argument("--keyword", required=True)
    collect.add_argument("--topic", default=None)
    collect.add_argument("--initial-limit", type=int, default=None)
    collect.add_argument("--max-limit", type=int, default=None)
    collect.add_argument("--increment", type=int, default=None)
    collect.add_argument("--vlm", action="store_true")
    collect.add_argument("--output-dir", default=None)

    compress = sub.add_parser("compress")
    compress.add_argument("path")
    compress.add_argument("--target-kb", type=int, default=None)
    compress.add_argument("--quality", type=int, default=None)
    compress.add_argument("--max-size", type=int, default=None)
    compress.add_argument("--format", choices=["jpeg", "webp"], default=None)
    compress.add_argument("--out", default=None)

    args = parser.parse_args()
    settings = get_settings()
    level_name = str(args.log_level or settings.general.log_level).upper()
    setup_logger("", level=getattr(logging, level_name, logging.INFO), log_file=settings.general.log_file)

    try:
        if args.command == "search":
            _print(asyncio.run(_search(args, settings)))
        elif args.command == "fetch":
            _print(asyncio.run(_fetch(args, settings)))
        elif args.command == "collect":
            _print(asyncio.run(_collect(args, settings)))
        elif args.command == "compress":
            _print(_compress(args, settings))
    except (EvidenceAgentError, OSError) as exc:
        _print({"error": str(exc)})
        sys.exit(1)


if __name__ == "__main__":
    main()
