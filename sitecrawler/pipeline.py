"""
Batch orchestration
Runs a step function over the items that still need it, in fixed-size
batches, merging results back into the working set by item key
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Iterator, List, Optional, Sequence

from .classifier import LocalClassifier, make_categorize_step
from .config import PROCESSING_BATCH_SIZE
from .metadata import MetadataEnricher
from .models import CrawledItem, ProcessStep, Progress, StepResult, flatten_categories
from .site_crawler import SiteCrawler

logger = logging.getLogger(__name__)

StepFn = Callable[[List[CrawledItem]], Awaitable[StepResult]]
ProgressCallback = Callable[[Progress], None]
ErrorCallback = Callable[[int, str], None]

STEP_LABELS = {
    ProcessStep.CRAWLED: "Step 1: Crawl",
    ProcessStep.METADATA: "Step 2: Metadata",
    ProcessStep.CATEGORIZED: "Step 3: Categorize Locally",
}


class StopFlag:
    """Cooperative cancellation flag, checked between batches"""

    def __init__(self):
        self._stopped = False

    def set(self):
        self._stopped = True

    def clear(self):
        self._stopped = False

    @property
    def is_set(self) -> bool:
        return self._stopped


def can_categorize(item: CrawledItem) -> bool:
    return item.has_step(ProcessStep.METADATA) and not item.has_step(ProcessStep.CATEGORIZED)


def needs_step(item: CrawledItem, step: ProcessStep) -> bool:
    """Whether ``item`` is eligible for ``step`` on this run"""
    step = ProcessStep(step)
    if step == ProcessStep.CATEGORIZED:
        return can_categorize(item)
    return not item.has_step(step)


def iter_batches(seq: Sequence, size: int) -> Iterator[list]:
    if size <= 0:
        raise ValueError(f"batch size must be positive, got {size}")
    for i in range(0, len(seq), size):
        yield list(seq[i:i + size])


def merge_results(current: Dict[str, CrawledItem], updates: List[CrawledItem]) -> Dict[str, CrawledItem]:
    """New key -> item mapping with ``updates`` merged over ``current``"""
    merged = dict(current)
    for item in updates:
        existing = merged.get(item.key)
        merged[item.key] = existing.merge(item) if existing is not None else item.copy()
    return merged


@dataclass
class RunReport:
    items: List[CrawledItem]
    total: int = 0
    processed: int = 0
    failed_batches: List[int] = field(default_factory=list)
    stopped: bool = False

    @property
    def ok(self) -> bool:
        return not self.failed_batches and not self.stopped


class BatchOrchestrator:
    """Drive one pipeline stage over a working set"""

    def __init__(
        self,
        step: ProcessStep,
        step_fn: StepFn,
        batch_size: int = PROCESSING_BATCH_SIZE,
        batch_delay: float = 0.0,
        label: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        stop_flag: Optional[StopFlag] = None,
    ):
        if batch_size <= 0:
            raise ValueError(f"batch size must be positive, got {batch_size}")
        self.step = ProcessStep(step)
        self.step_fn = step_fn
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.label = label or STEP_LABELS[self.step]
        self.on_progress = on_progress or self._log_progress
        self.on_error = on_error or self._log_error
        self.stop_flag = stop_flag if stop_flag is not None else StopFlag()

    @staticmethod
    def _log_progress(progress: Progress):
        logger.info(f"{progress.text} ({progress.processed}/{progress.total})")

    @staticmethod
    def _log_error(batch_number: int, message: str):
        logger.error(f"Batch {batch_number} error: {message}")

    def select(self, items: List[CrawledItem]) -> List[CrawledItem]:
        return [item for item in items if needs_step(item, self.step)]

    async def run(self, items: List[CrawledItem]) -> RunReport:
        pending = self.select(items)
        total = len(pending)
        results = {item.key: item for item in items}
        report = RunReport(items=list(results.values()), total=total)

        if total == 0:
            logger.info(f"{self.label}: nothing to process")
            self.on_progress(Progress(0, 0, f"{self.label} - Finished."))
            return report

        total_batches = (total + self.batch_size - 1) // self.batch_size
        processed = 0

        for batch_number, batch in enumerate(iter_batches(pending, self.batch_size), 1):
            if batch_number > 1 and self.batch_delay > 0:
                await asyncio.sleep(self.batch_delay)
            if self.stop_flag.is_set:
                logger.info(f"{self.label}: stopped before batch {batch_number}")
                report.stopped = True
                break

            self.on_progress(Progress(
                processed, total,
                f"{self.label} - Processing batch {batch_number} of {total_batches}...",
            ))

            try:
                result = await self.step_fn(batch)
            except Exception as e:
                logger.exception(f"Unexpected error during batch {batch_number}")
                result = StepResult(False, None, str(e) or e.__class__.__name__)

            if result.success and result.data is not None:
                results = merge_results(results, result.data)
            else:
                report.failed_batches.append(batch_number)
                self.on_error(batch_number, result.message or "Batch failed")

            processed += len(batch)
            report.items = list(results.values())
            report.processed = processed
            self.on_progress(Progress(processed, total, f"{self.label} - Processing batch {batch_number} of {total_batches}..."))

        final = "Stopped." if report.stopped else "Finished."
        self.on_progress(Progress(processed, total, f"{self.label} - {final}"))
        logger.info(
            f"{self.label}: {processed}/{total} items in {total_batches} batches, "
            f"{len(report.failed_batches)} failed"
        )
        return report


async def process_in_batches(
    items: List[CrawledItem],
    step_fn: StepFn,
    batch_size: int = PROCESSING_BATCH_SIZE,
    step: ProcessStep = ProcessStep.CATEGORIZED,
    **kwargs,
) -> RunReport:
    orchestrator = BatchOrchestrator(step, step_fn, batch_size=batch_size, **kwargs)
    return await orchestrator.run(items)


class SiteCrawlerPipeline:
    """Crawl, enrich and categorize a working set, one resumable stage at a time"""

    def __init__(
        self,
        crawler=None,
        enricher=None,
        classifier=None,
        items: Optional[List[CrawledItem]] = None,
        batch_size: int = PROCESSING_BATCH_SIZE,
        on_progress: Optional[ProgressCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        stop_flag: Optional[StopFlag] = None,
    ):
        self.crawler = crawler or SiteCrawler()
        self.enricher = enricher or MetadataEnricher()
        self.classifier = classifier or LocalClassifier.default()
        self.items: List[CrawledItem] = list(items or [])
        self.batch_size = batch_size
        self.on_progress = on_progress
        self.on_error = on_error
        self.stop_flag = stop_flag if stop_flag is not None else StopFlag()

    async def crawl(self, base_link: str, max_cards: int) -> StepResult:
        """Replace the working set with a fresh crawl"""
        result = await self.crawler.crawl(base_link, max_cards)
        if result.success and result.data:
            self.items = flatten_categories(result.data)
            logger.info(f"Crawl complete: found {len(self.items)} total items")
        else:
            logger.error(f"Crawl failed: {result.message}")
        return result

    async def _run_stage(self, step: ProcessStep, step_fn: StepFn) -> RunReport:
        orchestrator = BatchOrchestrator(
            step,
            step_fn,
            batch_size=self.batch_size,
            on_progress=self.on_progress,
            on_error=self.on_error,
            stop_flag=self.stop_flag,
        )
        report = await orchestrator.run(self.items)
        self.items = report.items
        return report

    async def enrich(self) -> RunReport:
        return await self._run_stage(ProcessStep.METADATA, self.enricher.enrich_batch)

    async def categorize(self) -> RunReport:
        return await self._run_stage(ProcessStep.CATEGORIZED, make_categorize_step(self.classifier))

    async def run(self, base_link: Optional[str] = None, max_cards: int = 10) -> List[CrawledItem]:
        """Run every stage; with no ``base_link`` resume the current working set"""
        if base_link:
            result = await self.crawl(base_link, max_cards)
            if not result.success:
                return self.items
        if not self.stop_flag.is_set:
            await self.enrich()
        if not self.stop_flag.is_set:
            await self.categorize()
        return self.items
