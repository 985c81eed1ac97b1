"""
Domain analyzer
Checks a list of domains for HTTP status and page title, in rate-limited batches
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

import aiohttp

from .config import DOMAIN_BATCH_DELAY, DOMAIN_BATCH_SIZE, DOMAIN_TIMEOUT
from .fetch import fetch_page, open_session
from .models import Progress
from .pipeline import StopFlag, iter_batches

logger = logging.getLogger(__name__)

TITLE_RE = re.compile(r"<title[^>]*>([^<]*)</title>", re.IGNORECASE)


@dataclass
class DomainAnalysis:
    domain: str
    status: int
    status_text: str
    title: str

    def to_dict(self) -> dict:
        return {
            "domain": self.domain,
            "status": self.status,
            "statusText": self.status_text,
            "title": self.title,
        }


def parse_domains(text: str) -> List[str]:
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


def extract_title(html: str) -> str:
    match = TITLE_RE.search(html or "")
    return match.group(1).strip() if match else "No title tag found"


async def analyze_domain(session: aiohttp.ClientSession, domain: str, timeout: float = DOMAIN_TIMEOUT) -> DomainAnalysis:
    url = domain
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"

    try:
        page = await fetch_page(session, url, timeout=timeout)
    except asyncio.TimeoutError:
        return DomainAnalysis(domain, 0, "Timeout Error", f"Request timed out after {timeout:.0f} seconds.")
    except aiohttp.ClientConnectorError as e:
        return DomainAnalysis(domain, 0, "Fetch Error", f"Error: {e.os_error.strerror or e}")
    except aiohttp.ClientError as e:
        logger.debug(f"Fetch error for {domain}: {e}")
        return DomainAnalysis(domain, 0, "Fetch Error", "Could not reach domain.")

    if not page.ok:
        return DomainAnalysis(domain, page.status, page.reason, f"Error: {page.reason}")

    title = extract_title(page.text or "") if page.is_html else "N/A"
    return DomainAnalysis(domain, page.status, page.reason, title)


async def analyze_domains(
    domains: Union[str, List[str]],
    batch_size: int = DOMAIN_BATCH_SIZE,
    batch_delay: float = DOMAIN_BATCH_DELAY,
    stop_flag: Optional[StopFlag] = None,
    on_progress: Optional[Callable[[Progress], None]] = None,
    session: Optional[aiohttp.ClientSession] = None,
    analyze: Callable = analyze_domain,
) -> List[DomainAnalysis]:
    """Analyze domains batch by batch, pausing ``batch_delay`` seconds between batches"""
    if isinstance(domains, str):
        domains = parse_domains(domains)
    stop_flag = stop_flag if stop_flag is not None else StopFlag()
    if batch_size <= 0:
        raise ValueError(f"batch size must be positive, got {batch_size}")
    if not domains:
        return []

    results: List[DomainAnalysis] = []
    total_batches = (len(domains) + batch_size - 1) // batch_size

    async def _run(session: aiohttp.ClientSession):
        for batch_number, batch in enumerate(iter_batches(domains, batch_size), 1):
            if batch_number > 1 and batch_delay > 0:
                await asyncio.sleep(batch_delay)
            if stop_flag.is_set:
                logger.info("Analysis stopped by user.")
                break

            logger.info(f"Analyzing batch {batch_number} of {total_batches}...")
            settled = await asyncio.gather(*(analyze(session, d) for d in batch), return_exceptions=True)
            for domain, r in zip(batch, settled):
                if isinstance(r, BaseException):
                    results.append(DomainAnalysis(domain, 0, "Unhandled Error", str(r) or "An unknown error occurred during analysis."))
                else:
                    results.append(r)

            if on_progress:
                on_progress(Progress(len(results), len(domains), f"Analyzing batch {batch_number} of {total_batches}..."))

    if session is not None:
        await _run(session)
    else:
        async with open_session() as own_session:
            await _run(own_session)

    return results
