# Site Crawler & Local Categorizer
# Crawls a link directory, enriches listed sites with metadata and categorizes them by keyword

from .classifier import LocalClassifier, categorize_batch, classify
from .metadata import MetadataEnricher
from .models import CrawledItem, ProcessStep, StepResult, SuggestedCategory
from .pipeline import BatchOrchestrator, SiteCrawlerPipeline, StopFlag, process_in_batches
from .site_crawler import SiteCrawler
from .taxonomy import KeywordDictionary, Taxonomy, default_tables, load_tables

__all__ = [
    'BatchOrchestrator',
    'CrawledItem',
    'KeywordDictionary',
    'LocalClassifier',
    'MetadataEnricher',
    'ProcessStep',
    'SiteCrawler',
    'SiteCrawlerPipeline',
    'StepResult',
    'StopFlag',
    'SuggestedCategory',
    'Taxonomy',
    'categorize_batch',
    'classify',
    'default_tables',
    'load_tables',
    'process_in_batches',
]
