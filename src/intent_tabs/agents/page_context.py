"""
Execution-context injection for tab pages.

A PageContextInjector evaluates a pure extraction function against one tab's
page. In the browser this is script injection; here the page's HTML is either
supplied by the extension or fetched over HTTP. The function runs in a worker
thread so a caller's timeout can always interrupt the wait for it.
"""

import asyncio
import ipaddress
from abc import ABC, abstractmethod
from typing import Callable, Optional, TypeVar

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from intent_tabs.agents.models import TabHandle
from intent_tabs.config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

PageFunction = Callable[[str], T]

DEFAULT_MAX_PAGE_BYTES = 2_000_000
DEFAULT_MAX_REDIRECTS = 5


class PageContextError(Exception):
    """The page context for a tab could not be reached."""


def ensure_public_url(url: str) -> httpx.URL:
    """
    Refuse URLs that point at this machine or a private network.

    Only literal addresses and localhost names are checked; hostnames are
    not resolved.

    Raises:
        PageContextError: If the URL is not http(s) or targets a non-public host
    """
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise PageContextError(f"Invalid URL: {url}") from e

    if parsed.scheme not in ("http", "https"):
        raise PageContextError(f"Unsupported URL scheme: {url}")

    host = parsed.host.lower()
    if not host or host == "localhost" or host.endswith(".localhost"):
        raise PageContextError(f"Refusing to fetch local URL: {url}")

    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return parsed
    if not address.is_global:
        raise PageContextError(f"Refusing to fetch non-public address: {url}")
    return parsed


async def _read_capped(response: httpx.Response, max_bytes: int) -> str:
    """Read at most ``max_bytes`` of a streamed body and decode it."""
    body = bytearray()
    async for chunk in response.aiter_bytes():
        body.extend(chunk)
        if len(body) >= max_bytes:
            logger.debug(f"Truncated {response.url} at {max_bytes} bytes")
            del body[max_bytes:]
            break

    encoding = response.charset_encoding or "utf-8"
    try:
        return body.decode(encoding, errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")


class PageContextInjector(ABC):
    """Abstract base for page-context injection primitives."""

    @abstractmethod
    async def execute(self, tab: TabHandle, func: PageFunction) -> T:
        """
        Evaluate ``func`` in the context of a tab's page.

        Args:
            tab: The tab whose page to evaluate against
            func: Pure function taking the page HTML

        Returns:
            Whatever ``func`` returns

        Raises:
            PageContextError: If the page cannot be reached
        """
        pass


class HttpPageContextInjector(PageContextInjector):
    """Fetches the tab's URL and evaluates the function over the HTML."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        max_bytes: int = DEFAULT_MAX_PAGE_BYTES,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
    ):
        """
        Initialize the injector.

        Args:
            client: Shared async HTTP client (owned by the caller)
            max_bytes: Most bytes of a page body that are read
            max_redirects: Most redirects followed per fetch
        """
        self.client = client
        self.max_bytes = max_bytes
        self.max_redirects = max_redirects

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=0.5),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def fetch_html(self, url: str) -> str:
        """
        Fetch a page, following redirects between public hosts only.

        Only HTML responses are accepted and the body is read up to
        ``max_bytes``.
        """
        target = ensure_public_url(url)
        for _ in range(self.max_redirects + 1):
            async with self.client.stream("GET", target, follow_redirects=False) as response:
                if response.is_redirect:
                    location = response.headers.get("location", "")
                    target = ensure_public_url(str(response.url.join(location)))
                    continue

                response.raise_for_status()
                content_type = response.headers.get("content-type", "")
                if content_type and "html" not in content_type.lower():
                    raise PageContextError(f"Not an HTML page ({content_type}): {url}")
                return await _read_capped(response, self.max_bytes)

        raise PageContextError(f"Too many redirects: {url}")

    async def execute(self, tab: TabHandle, func: PageFunction) -> T:
        if not tab.url:
            raise PageContextError(f"Tab {tab.id} has no URL")
        html = await self.fetch_html(tab.url)
        return await asyncio.to_thread(func, html)


class StaticPageContextInjector(PageContextInjector):
    """Evaluates against HTML captured by the extension, keyed by tab id."""

    def __init__(
        self,
        pages: dict[int, str],
        fallback: Optional[PageContextInjector] = None,
    ):
        """
        Initialize the injector.

        Args:
            pages: Mapping of tab id to captured page HTML
            fallback: Injector used for tabs without captured HTML
        """
        self.pages = pages
        self.fallback = fallback

    async def execute(self, tab: TabHandle, func: PageFunction) -> T:
        html = self.pages.get(tab.id)
        if html is not None:
            return await asyncio.to_thread(func, html)
        if self.fallback is not None:
            return await self.fallback.execute(tab, func)
        raise PageContextError(f"No page content available for tab {tab.id}")
