"""
Site Crawler
Collects category pages from a link directory and the sites listed on each
"""

import asyncio
import logging
from typing import List, Optional, Tuple
from urllib.parse import urljoin

import aiohttp
from bs4 import BeautifulSoup

from .config import (
    CATEGORY_LINK_SELECTOR,
    REQUEST_TIMEOUT,
    SITE_LINK_SELECTOR,
    SITE_REVIEW_SELECTOR,
    SITE_WRAPPER_SELECTOR,
)
from .fetch import Page, fetch_page, open_session
from .models import CrawledCategory, CrawledItem, ProcessStep, StepResult

logger = logging.getLogger(__name__)


def parse_category_links(html: str, base_url: str = "") -> List[Tuple[str, str]]:
    """(url, title) of every category link on the directory front page"""
    soup = BeautifulSoup(html, "html.parser")
    links = []
    for a in soup.select(CATEGORY_LINK_SELECTOR):
        href = a.get("href")
        if href:
            links.append((urljoin(base_url, href), a.get_text(strip=True)))
    return links


def parse_category_page(html: str, base_url: str = "") -> List[CrawledItem]:
    """Sites listed on one category page"""
    soup = BeautifulSoup(html, "html.parser")
    children = []

    for wrapper in soup.select(SITE_WRAPPER_SELECTOR):
        review = wrapper.select_one(SITE_REVIEW_SELECTOR)
        content = review.decode_contents().strip() if review is not None else ""
        description = review.get_text(" ", strip=True) if review is not None else ""

        for a in wrapper.select(SITE_LINK_SELECTOR):
            href = a.get("href") or ""
            if not href:
                continue
            children.append(CrawledItem(
                url=urljoin(base_url, href),
                url_site=a.get("data-site-link") or "",
                title=a.get_text(strip=True),
                content=content,
                description=description,
                processed_steps={ProcessStep.CRAWLED},
            ))

    return children


class SiteCrawler:
    """Crawl a link directory: front page -> category pages -> listed sites"""

    def __init__(self, session: Optional[aiohttp.ClientSession] = None, timeout: float = REQUEST_TIMEOUT):
        self.session = session
        self.timeout = timeout

    async def _fetch(self, session: aiohttp.ClientSession, url: str) -> Page:
        return await fetch_page(session, url, timeout=self.timeout)

    async def _crawl_category(self, session: aiohttp.ClientSession, url: str, title: str) -> Optional[CrawledCategory]:
        try:
            page = await self._fetch(session, url)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Error processing category link {url}: {e}")
            return None

        if not page.ok:
            logger.warning(f"Could not fetch category page {url}. Status: {page.status}")
            return None

        children = parse_category_page(page.text or "", page.final_url)
        if not children:
            logger.warning(f"No sites found on category page {url}")
            return None

        logger.info(f"Category {title!r}: {len(children)} sites")
        return CrawledCategory(cate_url=url, cate_name=title, children=children)

    async def _crawl(self, session: aiohttp.ClientSession, base_link: str, max_cards: int) -> StepResult:
        try:
            page = await self._fetch(session, base_link)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Global crawl error for {base_link}: {e}")
            return StepResult(False, None, str(e) or "An unknown error occurred during crawl.")

        if not page.ok:
            return StepResult(False, None, f"Failed to load main page. Status: {page.status}")

        links = parse_category_links(page.text or "", page.final_url)
        if not links:
            return StepResult(
                False, None,
                f"No category links found on the main page. The selector `{CATEGORY_LINK_SELECTOR}` might be wrong.",
            )

        logger.info(f"Found {len(links)} category links, crawling {min(len(links), max_cards)}")
        tasks = [self._crawl_category(session, url, title) for url, title in links[:max_cards]]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        categories = []
        for (url, _), r in zip(links, results):
            if isinstance(r, BaseException):
                logger.error(f"Error processing category link {url}: {r}")
            elif r is not None:
                categories.append(r)

        if not categories:
            return StepResult(False, None, "Could not scrape any app information from the category pages.")

        return StepResult(True, categories, f"Crawl successful. Found apps in {len(categories)} categories.")

    async def crawl(self, base_link: str, max_cards: int) -> StepResult:
        """Crawl up to ``max_cards`` category pages of ``base_link``"""
        if not base_link:
            return StepResult(False, None, "Please enter a URL to crawl.")
        if max_cards <= 0:
            return StepResult(False, None, "Please enter a number of cards greater than 0.")

        if self.session is not None:
            return await self._crawl(self.session, base_link, max_cards)
        async with open_session() as session:
            return await self._crawl(session, base_link, max_cards)
