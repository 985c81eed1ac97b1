#!/usr/bin/env python3
"""
Merge categories from a categorized export into a JSON file with descriptions.
Records are matched by title; unmatched records get an empty category list.
"""

import json
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sitecrawler.export import merge_categories


def main():
    """Main entry point"""
    import argparse

    parser = argparse.ArgumentParser(description='Merge categories into a JSON export by title')
    parser.add_argument('with_description', help='JSON array with descriptions')
    parser.add_argument('with_categories', help='JSON array with categories')
    parser.add_argument('--output', default='merged.json', help='Output file path')

    args = parser.parse_args()

    with open(args.with_description, 'r', encoding='utf-8') as f:
        with_description = json.load(f)
    with open(args.with_categories, 'r', encoding='utf-8') as f:
        with_categories = json.load(f)

    try:
        merged, matched = merge_categories(with_description, with_categories)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    with open(args.output, 'w', encoding='utf-8') as f:
        json.dump(merged, f, indent=2, ensure_ascii=False)

    print(f"\nMerge Summary:")
    print(f"  Total records: {len(merged)}")
    print(f"  Matched: {matched}")
    print(f"  Unmatched: {len(merged) - matched}")


if __name__ == '__main__':
    main()
