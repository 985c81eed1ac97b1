"""
Metadata enrichment
Fetches each crawled site's own page for description, keywords and favicon
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence
from urllib.parse import urljoin, urlparse

import aiohttp
from bs4 import BeautifulSoup

from .config import ERROR_MESSAGE_LIMIT, REDIRECT_HOSTS, REQUEST_TIMEOUT
from .fetch import Page, fetch_page, open_session
from .models import CrawledItem, ProcessStep, StepResult

logger = logging.getLogger(__name__)


@dataclass
class PageMetadata:
    description: Optional[str]
    keywords: str
    favicon_url: str


def _meta_content(soup: BeautifulSoup, name: str) -> Optional[str]:
    tag = soup.find("meta", attrs={"name": name})
    if tag and tag.get("content"):
        return tag["content"].strip()
    return None


def _favicon_href(soup: BeautifulSoup) -> Optional[str]:
    for link in soup.find_all("link", href=True):
        rel = link.get("rel") or []
        if isinstance(rel, str):
            rel = rel.split()
        rel = [r.lower() for r in rel]
        if rel == ["icon"] or rel == ["shortcut", "icon"]:
            return link["href"]
    return None


def extract_metadata(html: str, base_url: str) -> PageMetadata:
    """Description, keywords and absolute favicon URL of a page"""
    soup = BeautifulSoup(html or "", "html.parser")
    href = _favicon_href(soup)
    favicon = urljoin(base_url, href) if href else urljoin(base_url, "/favicon.ico")
    return PageMetadata(
        description=_meta_content(soup, "description"),
        keywords=_meta_content(soup, "keywords") or "",
        favicon_url=favicon,
    )


def is_redirect_link(url: str, hosts: Sequence[str] = REDIRECT_HOSTS) -> bool:
    netloc = urlparse(url or "").netloc.lower()
    return any(host in netloc for host in hosts)


class MetadataEnricher:
    """Batch step for the ``metadata`` stage"""

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = REQUEST_TIMEOUT,
        redirect_hosts: Sequence[str] = REDIRECT_HOSTS,
    ):
        self.session = session
        self.timeout = timeout
        self.redirect_hosts = tuple(redirect_hosts)

    async def _fetch(self, session: aiohttp.ClientSession, url: str, read_body: bool = True) -> Page:
        return await fetch_page(session, url, timeout=self.timeout, read_body=read_body)

    async def enrich_item(self, session: aiohttp.ClientSession, item: CrawledItem) -> CrawledItem:
        """Enriched copy of ``item``; failures are recorded on the copy"""
        result = item.copy()
        if result.has_step(ProcessStep.METADATA):
            return result

        try:
            target = result.url_site
            if target and is_redirect_link(target, self.redirect_hosts):
                redirect = await self._fetch(session, target, read_body=False)
                target = redirect.final_url
                result.url_site = target

            if not target:
                raise ValueError("No valid original link (url_site) to process for metadata.")

            page = await self._fetch(session, target)
            if not page.ok:
                raise ValueError(f"Failed to fetch original link. Status: {page.status}")

            meta = extract_metadata(page.text or "", page.final_url or target)
            result.keywords = meta.keywords
            result.description = meta.description or result.description
            result.favicon_url = meta.favicon_url
            result.error = None
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            message = str(e) or e.__class__.__name__
            logger.warning(f"Error processing metadata for original URL {item.url_site}: {message}")
            result.error = f"Metadata processing failed: {message[:ERROR_MESSAGE_LIMIT]}"

        result.mark(ProcessStep.METADATA)
        return result

    async def _enrich(self, session: aiohttp.ClientSession, items: List[CrawledItem]) -> List[CrawledItem]:
        results = await asyncio.gather(
            *(self.enrich_item(session, item) for item in items),
            return_exceptions=True,
        )

        enriched = []
        for item, r in zip(items, results):
            if isinstance(r, BaseException):
                failed = item.copy()
                failed.error = f"Processing failed: {str(r) or 'Unknown error'}"
                failed.mark(ProcessStep.METADATA)
                enriched.append(failed)
            else:
                enriched.append(r)
        return enriched

    async def enrich_batch(self, items: List[CrawledItem]) -> StepResult:
        if self.session is not None:
            enriched = await self._enrich(self.session, items)
        else:
            async with open_session() as session:
                enriched = await self._enrich(session, items)

        has_errors = any(i.error for i in enriched)
        message = "Metadata processing finished with some errors." if has_errors else "Metadata processing complete."
        return StepResult(True, enriched, message)
