"""
Async HTTP helpers shared by the crawler, metadata enricher and domain analyzer
"""

from dataclasses import dataclass
from typing import Optional

import aiohttp

from .config import REQUEST_TIMEOUT, USER_AGENT

DEFAULT_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}


@dataclass
class Page:
    url: str
    final_url: str
    status: int
    reason: str = ""
    content_type: str = ""
    text: Optional[str] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def is_html(self) -> bool:
        return "text/html" in (self.content_type or "")


def open_session(**kwargs) -> aiohttp.ClientSession:
    headers = dict(DEFAULT_HEADERS)
    headers.update(kwargs.pop("headers", {}) or {})
    return aiohttp.ClientSession(headers=headers, **kwargs)


async def fetch_page(
    session: aiohttp.ClientSession,
    url: str,
    timeout: float = REQUEST_TIMEOUT,
    read_body: bool = True,
) -> Page:
    """GET ``url`` following redirects.

    Network errors and timeouts propagate; callers decide how to record them.
    """
    async with session.get(
        url,
        allow_redirects=True,
        timeout=aiohttp.ClientTimeout(total=timeout),
    ) as resp:
        text = None
        if read_body:
            text = await resp.text(errors="replace")
        return Page(
            url=url,
            final_url=str(resp.url),
            status=resp.status,
            reason=resp.reason or "",
            content_type=resp.headers.get("Content-Type", ""),
            text=text,
        )
