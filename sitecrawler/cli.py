"""
Command line entry point
Each stage reads and writes the saved working set, so runs can be resumed
"""

import argparse
import asyncio
import json
import logging
import signal
import sys
from collections import Counter
from pathlib import Path
from typing import List, Optional

from .classifier import LocalClassifier
from .config import DOMAIN_BATCH_DELAY, DOMAIN_BATCH_SIZE, EXPORT_FILE, PROCESSING_BATCH_SIZE, STATE_FILE
from .domain_analyzer import analyze_domains, parse_domains
from .export import export_items, merge_categories, resolve_redirects, write_export
from .models import CrawledItem, ProcessStep, Progress
from .pipeline import SiteCrawlerPipeline, StopFlag
from .storage import load_items, save_items
from .taxonomy import TaxonomyError, default_tables, load_tables

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
    )


def print_summary(items: List[CrawledItem]):
    """Stage counts and category breakdown of a working set"""
    print(f"\nWorking set summary:")
    print(f"  Total items: {len(items)}")
    for step in ProcessStep:
        done = sum(1 for i in items if i.has_step(step))
        print(f"  {step.value}: {done}")
    print(f"  With errors: {sum(1 for i in items if i.error)}")

    categories = Counter()
    for item in items:
        for cat in item.suggested_categories or []:
            categories[cat.name] += 1
    if categories:
        print(f"  Categories:")
        for name, count in categories.most_common():
            print(f"    {name}: {count}")


def _install_stop_handler(stop_flag: StopFlag):
    """First Ctrl+C lets the current batch finish, the working set is still saved"""
    loop = asyncio.get_running_loop()

    def _stop():
        logger.warning("Stop requested, finishing current batch...")
        stop_flag.set()

    try:
        loop.add_signal_handler(signal.SIGINT, _stop)
    except (NotImplementedError, RuntimeError):
        pass


def _build_classifier(taxonomy_path: Optional[str]) -> LocalClassifier:
    if taxonomy_path:
        return LocalClassifier(*load_tables(taxonomy_path))
    return LocalClassifier(*default_tables())


def _progress_printer(progress: Progress):
    logger.info(f"[{progress.percent:5.1f}%] {progress.text}")


async def _run_pipeline_command(args) -> int:
    stop_flag = StopFlag()
    _install_stop_handler(stop_flag)

    items = [] if args.command == "crawl" else load_items(args.state)
    pipeline = SiteCrawlerPipeline(
        classifier=_build_classifier(getattr(args, "taxonomy", None)),
        items=items,
        batch_size=getattr(args, "batch_size", PROCESSING_BATCH_SIZE),
        on_progress=_progress_printer,
        stop_flag=stop_flag,
    )

    if args.command == "crawl":
        result = await pipeline.crawl(args.url, args.max)
        if not result.success:
            print(f"Crawl failed: {result.message}", file=sys.stderr)
            return 1
    elif args.command == "enrich":
        await pipeline.enrich()
    elif args.command == "categorize":
        await pipeline.categorize()
    elif args.command == "run":
        if args.url:
            result = await pipeline.crawl(args.url, args.max)
            if not result.success:
                print(f"Crawl failed: {result.message}", file=sys.stderr)
                return 1
        if not stop_flag.is_set:
            await pipeline.enrich()
        if not stop_flag.is_set:
            await pipeline.categorize()

    save_items(pipeline.items, args.state)
    print_summary(pipeline.items)
    return 0


async def _run_analyze_command(args) -> int:
    stop_flag = StopFlag()
    _install_stop_handler(stop_flag)

    domains = parse_domains(Path(args.file).read_text(encoding="utf-8"))
    if not domains:
        print("No domains to analyze.")
        return 0

    results = await analyze_domains(
        domains,
        batch_size=args.batch_size,
        batch_delay=args.delay,
        stop_flag=stop_flag,
        on_progress=_progress_printer,
    )

    for r in results:
        print(f"{r.domain:<40} {r.status:>3} {r.status_text:<20} {r.title}")

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            json.dump([r.to_dict() for r in results], f, indent=2, ensure_ascii=False)
        logger.info(f"Saved {len(results)} results to {args.output}")
    return 0


def _read_json(path):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _write_json(data, path):
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def _add_batch_size(p: argparse.ArgumentParser, default: int):
    p.add_argument('--batch-size', type=int, default=default, help=f'Items per batch (default {default})')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="site-categorizer",
        description="Crawl a link directory, enrich sites with metadata and categorize them locally",
    )
    parser.add_argument('--state', default=STATE_FILE, help='Working set file')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')

    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('crawl', help='Step 1: crawl category pages (replaces the working set)')
    p.add_argument('url', help='Directory front page URL')
    p.add_argument('--max', type=int, default=10, help='Maximum category pages to crawl')

    p = sub.add_parser('enrich', help='Step 2: fetch metadata for pending items')
    _add_batch_size(p, PROCESSING_BATCH_SIZE)

    p = sub.add_parser('categorize', help='Step 3: categorize pending items locally')
    p.add_argument('--taxonomy', help='YAML file with categories and keywords')
    _add_batch_size(p, PROCESSING_BATCH_SIZE)

    p = sub.add_parser('run', help='Run every step, resuming the saved working set without a URL')
    p.add_argument('url', nargs='?', help='Directory front page URL')
    p.add_argument('--max', type=int, default=10, help='Maximum category pages to crawl')
    p.add_argument('--taxonomy', help='YAML file with categories and keywords')
    _add_batch_size(p, PROCESSING_BATCH_SIZE)

    p = sub.add_parser('export', help='Write categorized items as import JSON')
    p.add_argument('output', nargs='?', default=EXPORT_FILE, help='Output file path')

    p = sub.add_parser('analyze', help='Check HTTP status and title of domains listed in a file')
    p.add_argument('file', help='File with one domain per line')
    p.add_argument('--delay', type=float, default=DOMAIN_BATCH_DELAY, help='Seconds between batches')
    _add_batch_size(p, DOMAIN_BATCH_SIZE)
    p.add_argument('--output', help='Save results as JSON')

    p = sub.add_parser('merge', help='Copy categories onto records matched by title')
    p.add_argument('with_description', help='JSON with descriptions')
    p.add_argument('with_categories', help='JSON with categories')
    p.add_argument('output', help='Output file path')

    p = sub.add_parser('resolve', help='Resolve short links in exported JSON')
    p.add_argument('input', help='Input JSON')
    p.add_argument('output', help='Output file path')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if getattr(args, "batch_size", 1) <= 0:
        parser.error("--batch-size must be greater than 0")

    try:
        if args.command in ('crawl', 'enrich', 'categorize', 'run'):
            return asyncio.run(_run_pipeline_command(args))

        if args.command == 'analyze':
            return asyncio.run(_run_analyze_command(args))

        if args.command == 'export':
            items = load_items(args.state)
            if not export_items(items):
                print("Nothing to export: no items have been categorized yet.", file=sys.stderr)
                return 1
            write_export(items, args.output)
            return 0

        if args.command == 'merge':
            merged, matched = merge_categories(_read_json(args.with_description), _read_json(args.with_categories))
            _write_json(merged, args.output)
            print(f"Merge complete. Matched and merged categories for {matched} of {len(merged)} items.")
            return 0

        if args.command == 'resolve':
            records, resolved = resolve_redirects(_read_json(args.input))
            _write_json(records, args.output)
            print(f"Process complete. Successfully resolved {resolved} URLs.")
            return 0
    except TaxonomyError as e:
        print(f"Invalid category tables: {e}", file=sys.stderr)
        return 2
    except (ValueError, json.JSONDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    return 1


if __name__ == '__main__':
    sys.exit(main())
