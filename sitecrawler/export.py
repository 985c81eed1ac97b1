"""
Export and JSON utilities
Flattens categorized items for import elsewhere, merges category files,
and resolves short links left in exported records
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import requests

from .config import REDIRECT_HOSTS, REQUEST_TIMEOUT, USER_AGENT
from .metadata import is_redirect_link
from .models import CrawledItem

logger = logging.getLogger(__name__)


def to_export_record(item: CrawledItem) -> dict:
    return {
        "url": item.url_site or item.url,
        "title": item.title,
        "src_img": item.favicon_url or "",
        "img_alt": item.img_alt or "",
        "description": item.description or "",
        "keywords": item.keywords or "",
        "categories": [c.id for c in item.suggested_categories or []],
    }


def export_items(items: List[CrawledItem]) -> List[dict]:
    """Export records for items that received at least one category"""
    return [to_export_record(i) for i in items if i.suggested_categories]


def write_export(items: List[CrawledItem], output_path) -> int:
    records = export_items(items)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(records, f, indent=2, ensure_ascii=False)
    logger.info(f"Exported {len(records)} of {len(items)} items to {output_path}")
    return len(records)


def merge_categories(with_description: List[dict], with_categories: List[dict]) -> Tuple[List[dict], int]:
    """Copy ``categories`` onto records with a matching (trimmed) title.

    Every returned record has a ``categories`` list.
    """
    if not isinstance(with_description, list):
        raise ValueError("Original JSON must be an array.")
    if not isinstance(with_categories, list):
        raise ValueError("Categorized JSON must be an array.")

    categories_by_title: Dict[str, list] = {}
    for record in with_categories:
        title = record.get("title")
        if title and record.get("categories") is not None:
            categories_by_title[title.strip()] = record["categories"]

    merged = []
    matched = 0
    for record in with_description:
        title = (record.get("title") or "").strip()
        if title and title in categories_by_title:
            matched += 1
            merged.append({**record, "categories": categories_by_title[title]})
        else:
            merged.append({**record, "categories": record.get("categories") or []})

    logger.info(f"Merged categories for {matched} of {len(with_description)} items")
    return merged, matched


def resolve_redirects(
    records: List[dict],
    hosts: Sequence[str] = REDIRECT_HOSTS,
    session: Optional[requests.Session] = None,
    timeout: float = REQUEST_TIMEOUT,
) -> Tuple[List[dict], int]:
    """Replace short-link ``url`` values with their redirect target"""
    if not isinstance(records, list):
        raise ValueError("Invalid JSON format: Input must be an array of objects.")

    session = session or requests.Session()
    session.headers["User-Agent"] = USER_AGENT

    resolved_count = 0
    resolved = []
    for record in records:
        url = record.get("url")
        if not isinstance(url, str) or not is_redirect_link(url, hosts):
            resolved.append(record)
            continue
        try:
            response = session.get(url, timeout=timeout, allow_redirects=True)
            if response.url != url:
                resolved_count += 1
            resolved.append({**record, "url": response.url})
        except requests.RequestException as e:
            logger.warning(f"Could not resolve {url}: {e}")
            resolved.append({**record, "url_resolution_error": f"Resolution failed: {e}"})

    logger.info(f"Resolved {resolved_count} short links")
    return resolved, resolved_count
