"""
Working set storage
Keeps crawled items between command runs so every stage can be resumed
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List

from .models import CrawledItem

logger = logging.getLogger(__name__)


def load_items(path) -> List[CrawledItem]:
    path = Path(path)
    if not path.exists():
        logger.info(f"No saved working set at {path}, starting empty")
        return []

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    # Accept a bare list as well as the save envelope
    records = data.get("items", []) if isinstance(data, dict) else data
    items = [CrawledItem.from_dict(r) for r in records]
    logger.info(f"Loaded {len(items)} items from {path}")
    return items


def save_items(items: List[CrawledItem], path, name: str = "Site Crawler Working Set"):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    output = {
        "name": name,
        "saved_at": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "total_count": len(items),
        "items": [i.to_dict() for i in items],
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(output, f, indent=2, ensure_ascii=False)
    logger.info(f"Saved {len(items)} items to {path}")
