"""URL metadata service - title and description for bookmark pre-fill."""

import html
import logging
import re
from typing import Optional
from urllib.parse import urlparse

import httpx

from config import get_settings
from exceptions import ExternalServiceError
from services.redis_store import RedisStore

logger = logging.getLogger(__name__)
settings = get_settings()

TITLE_RE = re.compile(r"<title[^>]*>([^<]*)</title>", re.IGNORECASE)
META_TAG_RE = re.compile(r"<meta\b[^>]*>", re.IGNORECASE)
ATTR_RE = re.compile(r"""([a-zA-Z:_-]+)\s*=\s*(?:"([^"]*)"|'([^']*)')""")


def validate_url(url: Optional[str]) -> str:
    """Return a normalized http(s) URL or raise ValueError."""
    if not url:
        raise ValueError("URL parameter is required")
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https"):
        raise ValueError("Invalid URL protocol")
    if not parsed.netloc:
        raise ValueError("Invalid URL")
    return parsed.geturl()


def _meta_tags(page: str) -> dict[str, str]:
    """Map each meta tag's ``name``/``property`` to its content (first wins)."""
    tags: dict[str, str] = {}
    for tag in META_TAG_RE.findall(page):
        attrs = {
            m.group(1).lower(): m.group(2) if m.group(2) is not None else m.group(3)
            for m in ATTR_RE.finditer(tag)
        }
        key = (attrs.get("property") or attrs.get("name") or "").lower()
        if key and "content" in attrs and key not in tags:
            tags[key] = html.unescape(attrs["content"]).strip()
    return tags


def extract_metadata(page: str) -> dict:
    """Pull title and description from an HTML page.

    Open Graph values win over ``<title>`` and the plain meta description.
    """
    title_match = TITLE_RE.search(page)
    title = html.unescape(title_match.group(1)).strip() if title_match else ""
    tags = _meta_tags(page)

    return {
        "title": tags.get("og:title") or title,
        "description": tags.get("og:description") or tags.get("description", ""),
    }


async def fetch_url_metadata(
    url: str,
    client: Optional[httpx.AsyncClient] = None,
    use_cache: bool = True,
) -> dict:
    """Fetch a page and return ``{title, description, url}``.

    Raises ValueError for an invalid URL and ExternalServiceError when the
    page cannot be fetched.
    """
    url = validate_url(url)

    if use_cache:
        cached = await RedisStore.get_metadata(url)
        if cached is not None:
            return cached

    async def _fetch(c: httpx.AsyncClient) -> httpx.Response:
        return await c.get(
            url,
            headers={"User-Agent": settings.metadata_user_agent},
            follow_redirects=True,
        )

    try:
        if client:
            response = await _fetch(client)
        else:
            async with httpx.AsyncClient(timeout=settings.metadata_fetch_timeout) as c:
                response = await _fetch(c)
    except httpx.HTTPError as e:
        logger.warning(f"Failed to fetch metadata from {url}: {e}")
        raise ExternalServiceError("Failed to fetch metadata from URL") from e

    if not response.is_success:
        logger.info(f"Metadata fetch for {url} returned {response.status_code}")
        raise ExternalServiceError("Failed to fetch URL", response.status_code)

    metadata = {**extract_metadata(response.text), "url": url}
    if use_cache:
        await RedisStore.save_metadata(url, metadata)
    return metadata
