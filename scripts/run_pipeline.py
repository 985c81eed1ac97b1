#!/usr/bin/env python3
"""
Site Crawler Entry Point
Crawls a link directory, enriches and categorizes the sites, and saves the
working set plus the final export JSON
"""

import asyncio
import logging
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sitecrawler.cli import print_summary
from sitecrawler.config import EXPORT_FILE, PROCESSING_BATCH_SIZE, STATE_FILE
from sitecrawler.export import write_export
from sitecrawler.pipeline import SiteCrawlerPipeline
from sitecrawler.storage import load_items, save_items

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)


def main():
    """Main entry point"""
    import argparse

    parser = argparse.ArgumentParser(description='Crawl, enrich and categorize a link directory')
    parser.add_argument('url', nargs='?', help='Directory front page (omit to resume the saved working set)')
    parser.add_argument('--max', type=int, default=10, help='Maximum category pages to crawl')
    parser.add_argument('--state', default=STATE_FILE, help='Working set file')
    parser.add_argument('--output', default=EXPORT_FILE, help='Export file path')
    parser.add_argument('--batch-size', type=int, default=PROCESSING_BATCH_SIZE, help='Items per batch')

    args = parser.parse_args()

    items = [] if args.url else load_items(args.state)
    if not args.url and not items:
        print("Nothing to resume. Pass a URL to start a new crawl.")
        sys.exit(1)

    pipeline = SiteCrawlerPipeline(items=items, batch_size=args.batch_size)
    items = asyncio.run(pipeline.run(args.url, args.max))

    save_items(items, args.state)
    exported = write_export(items, args.output)

    print_summary(items)
    print(f"  Exported: {exported}")


if __name__ == '__main__':
    main()
