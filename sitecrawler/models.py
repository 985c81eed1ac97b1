"""Shared data types for the crawl -> metadata -> categorize pipeline."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional, Set


class ProcessStep(str, Enum):
    """Stage markers recorded on an item once a pipeline stage completes."""

    CRAWLED = "crawled"
    METADATA = "metadata"
    CATEGORIZED = "categorized"


STEP_ORDER = [ProcessStep.CRAWLED, ProcessStep.METADATA, ProcessStep.CATEGORIZED]


@dataclass(frozen=True)
class SuggestedCategory:
    id: int
    name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name}


@dataclass
class CrawledItem:
    """One site listed on a crawled category page.

    Mutated only through copies: step functions receive items, return
    updated copies, and the orchestrator merges them back by ``key``.
    """

    url: str
    title: str
    url_site: Optional[str] = None
    img_url: Optional[str] = None
    img_alt: Optional[str] = None
    description: Optional[str] = None
    keywords: Optional[str] = None
    favicon_url: Optional[str] = None
    content: Optional[str] = None
    suggested_categories: Optional[List[SuggestedCategory]] = None
    error: Optional[str] = None
    processed_steps: Set[ProcessStep] = field(default_factory=set)
    category_info: Optional[Dict[str, str]] = None

    @property
    def key(self) -> str:
        return f"{self.url}-{self.title}"

    def has_step(self, step: ProcessStep) -> bool:
        return ProcessStep(step) in self.processed_steps

    def mark(self, step: ProcessStep) -> None:
        self.processed_steps.add(ProcessStep(step))

    def copy(self) -> "CrawledItem":
        return copy.deepcopy(self)

    def merge(self, updated: "CrawledItem") -> "CrawledItem":
        """Return a new item with ``updated`` laid over this one.

        Fields left as None on ``updated`` keep their current value, except
        ``error`` which always reflects the latest step. Stage markers are
        unioned so they only ever grow.
        """
        merged = self.copy()
        for f in fields(self):
            if f.name == "processed_steps":
                continue
            value = getattr(updated, f.name)
            if f.name == "error" or value is not None:
                setattr(merged, f.name, copy.deepcopy(value))
        merged.processed_steps = set(self.processed_steps) | set(updated.processed_steps)
        return merged

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "url": self.url,
            "url_site": self.url_site or "",
            "title": self.title,
            "img_url": self.img_url or "",
            "img_alt": self.img_alt or "",
        }
        if self.description is not None:
            data["description"] = self.description
        if self.keywords is not None:
            data["keywords"] = self.keywords
        if self.favicon_url is not None:
            data["faviconUrl"] = self.favicon_url
        if self.content is not None:
            data["content"] = self.content
        if self.suggested_categories is not None:
            data["suggestedCategories"] = [c.to_dict() for c in self.suggested_categories]
        if self.error is not None:
            data["error"] = self.error
        data["processedSteps"] = [s.value for s in STEP_ORDER if s in self.processed_steps]
        if self.category_info is not None:
            data["categoryInfo"] = dict(self.category_info)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CrawledItem":
        suggested = data.get("suggestedCategories", data.get("suggested_categories"))
        steps = data.get("processedSteps", data.get("processed_steps")) or []
        return cls(
            url=data.get("url") or "",
            title=data.get("title") or "",
            url_site=data.get("url_site"),
            img_url=data.get("img_url"),
            img_alt=data.get("img_alt"),
            description=data.get("description"),
            keywords=data.get("keywords"),
            favicon_url=data.get("faviconUrl", data.get("favicon_url")),
            content=data.get("content"),
            suggested_categories=(
                [SuggestedCategory(int(c["id"]), c.get("name", "")) for c in suggested]
                if suggested is not None else None
            ),
            error=data.get("error"),
            processed_steps={ProcessStep(s) for s in steps},
            category_info=data.get("categoryInfo", data.get("category_info")),
        )


@dataclass
class CrawledCategory:
    """A crawled listing page and the sites found on it."""

    cate_url: str
    cate_name: str
    children: List[CrawledItem] = field(default_factory=list)


def flatten_categories(categories: List[CrawledCategory]) -> List[CrawledItem]:
    items = []
    for cat in categories:
        for child in cat.children:
            item = child.copy()
            item.category_info = {"name": cat.cate_name, "url": cat.cate_url}
            items.append(item)
    return items


@dataclass
class StepResult:
    """Outcome of a batch step, a crawl, or any other action."""

    success: bool
    data: Optional[List[Any]] = None
    message: str = ""


@dataclass(frozen=True)
class Progress:
    processed: int
    total: int
    text: str

    @property
    def percent(self) -> float:
        if self.total <= 0:
            return 100.0
        return self.processed / self.total * 100.0
