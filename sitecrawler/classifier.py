"""
Local keyword classifier
Maps crawled item text to taxonomy categories without network or AI calls
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .config import ERROR_MESSAGE_LIMIT, NO_MATCH_ERROR
from .models import CrawledItem, ProcessStep, StepResult, SuggestedCategory
from .taxonomy import KeywordDictionary, Taxonomy, default_tables

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassificationResult:
    categories: List[SuggestedCategory]
    error: Optional[str] = None

    @property
    def category_ids(self) -> List[int]:
        return [c.id for c in self.categories]


def search_text(item: CrawledItem) -> str:
    """Lowercased title, description and keywords joined by spaces"""
    parts = [item.title, item.description, item.keywords]
    return " ".join(p or "" for p in parts).lower()


class LocalClassifier:
    """Keyword matching with ancestor propagation"""

    def __init__(self, taxonomy: Taxonomy, keywords: KeywordDictionary):
        self.taxonomy = taxonomy
        self.keywords = keywords

    @classmethod
    def default(cls) -> "LocalClassifier":
        return cls(*default_tables())

    def match(self, text: str) -> List[int]:
        """Category ids with at least one keyword found in ``text``.

        Plain substring test, so short keywords also hit inside longer
        words ("ai" in "rain").
        """
        text = (text or "").lower()
        matched = []
        for category_id, keywords in self.keywords.items():
            if any(kw in text for kw in keywords):
                matched.append(category_id)
        return matched

    def expand(self, category_ids: Iterable[int]) -> List[int]:
        """Add every ancestor of the given ids, direct matches first"""
        final = dict.fromkeys(category_ids)
        for category_id in list(final):
            for parent in self.taxonomy.ancestors(category_id):
                final.setdefault(parent)
        return list(final)

    def classify(self, item: CrawledItem) -> ClassificationResult:
        ids = self.expand(self.match(search_text(item)))

        categories = []
        for category_id in ids:
            node = self.taxonomy.get(category_id)
            if node is None:
                logger.debug(f"Dropping unknown category id {category_id}")
                continue
            categories.append(SuggestedCategory(node.id, node.name))

        if not categories:
            return ClassificationResult(categories, NO_MATCH_ERROR)
        return ClassificationResult(categories)

    def apply(self, item: CrawledItem) -> CrawledItem:
        """Categorized copy of ``item``; failures end up in ``error``"""
        result = item.copy()
        try:
            outcome = self.classify(result)
            result.suggested_categories = outcome.categories
            result.error = outcome.error
        except Exception as e:
            logger.error(f"Error categorizing {item.title!r} locally: {e}")
            result.error = f"Local categorization failed: {str(e)[:ERROR_MESSAGE_LIMIT]}"
        result.mark(ProcessStep.CATEGORIZED)
        return result


def classify(item: CrawledItem, dictionary: KeywordDictionary, taxonomy: Taxonomy) -> ClassificationResult:
    return LocalClassifier(taxonomy, dictionary).classify(item)


async def categorize_batch(items: List[CrawledItem], classifier: Optional[LocalClassifier] = None) -> StepResult:
    """Batch step for the ``categorized`` stage"""
    classifier = classifier or LocalClassifier.default()

    processed = []
    for item in items:
        if item.has_step(ProcessStep.CATEGORIZED):
            processed.append(item.copy())
        else:
            processed.append(classifier.apply(item))

    has_errors = any(i.error for i in processed)
    message = "Local categorization finished with some errors." if has_errors else "Local categorization complete."
    return StepResult(True, processed, message)


def make_categorize_step(classifier: LocalClassifier):
    """Bind a classifier into a step function for the orchestrator"""

    async def step(items: List[CrawledItem]) -> StepResult:
        return await categorize_batch(items, classifier)

    return step
