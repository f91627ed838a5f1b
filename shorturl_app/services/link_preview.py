"""
Link previews for social media crawlers.

Crawlers (Facebook, Twitter, Slack, ...) fetch a short URL to build a preview
card but do not follow redirects for that purpose. For them the redirect
endpoint serves a small HTML page carrying the target's Open Graph metadata,
plus a meta refresh and script redirect for anything that renders it.

Scraping is best effort: one GET with a short timeout and a capped body,
regex extraction, and defaults for anything missing.
"""

import asyncio
import html
import json
import logging
import re
import time
from dataclasses import dataclass, replace
from typing import Optional
from urllib.parse import urljoin

import requests

logger = logging.getLogger(__name__)


DEFAULT_TITLE = "短網址服務"
DEFAULT_DESCRIPTION = "點擊查看完整內容"
DEFAULT_TYPE = "website"


@dataclass(frozen=True)
class OGMetadata:
    title: str = DEFAULT_TITLE
    description: str = DEFAULT_DESCRIPTION
    image: str = ""
    type: str = DEFAULT_TYPE
    site_name: str = ""


def _og(prop: str) -> str:
    return rf"""property=["']og:{prop}["']\s+content=["']([^"']+)["']"""


# Tried in order; the first pattern that matches wins
TITLE_PATTERNS = (_og("title"), r"<title>([^<]+)</title>")
DESCRIPTION_PATTERNS = (
    _og("description"),
    r"""name=["']description["']\s+content=["']([^"']+)["']""",
)
IMAGE_PATTERNS = (_og("image"),)
TYPE_PATTERNS = (_og("type"),)
SITE_NAME_PATTERNS = (_og("site_name"),)


def _first_match(document: str, patterns) -> Optional[str]:
    for pattern in patterns:
        match = re.search(pattern, document, re.IGNORECASE)
        if match:
            value = match.group(1).strip()
            if value:
                return value
    return None


def extract_og_metadata(document: str, target_url: str) -> OGMetadata:
    """
    Pull Open Graph fields out of an HTML document.

    Relative og:image URLs are resolved against target_url.
    """
    metadata = OGMetadata()

    title = _first_match(document, TITLE_PATTERNS)
    if title:
        metadata = replace(metadata, title=html.unescape(title))

    description = _first_match(document, DESCRIPTION_PATTERNS)
    if description:
        metadata = replace(metadata, description=html.unescape(description))

    image = _first_match(document, IMAGE_PATTERNS)
    if image:
        metadata = replace(metadata, image=urljoin(target_url, html.unescape(image)))

    og_type = _first_match(document, TYPE_PATTERNS)
    if og_type:
        metadata = replace(metadata, type=og_type)

    site_name = _first_match(document, SITE_NAME_PATTERNS)
    if site_name:
        metadata = replace(metadata, site_name=html.unescape(site_name))

    return metadata


class PreviewFetcher:
    """Fetches a target page and extracts its Open Graph metadata"""

    def __init__(self, timeout: float = 3.0, max_bytes: int = 1024 * 1024):
        self.timeout = timeout
        self.max_bytes = max_bytes

    def _download(self, target_url: str) -> Optional[str]:
        # requests applies timeout per socket read, not to the whole download
        deadline = time.monotonic() + self.timeout
        try:
            with requests.get(target_url, timeout=self.timeout, stream=True) as response:
                if response.status_code != 200:
                    logger.warning(
                        "Error fetching OG metadata from %s: status %s",
                        target_url, response.status_code,
                    )
                    return None

                body = b""
                for chunk in response.iter_content(chunk_size=16 * 1024):
                    if time.monotonic() > deadline:
                        logger.warning(
                            "Error fetching OG metadata from %s: exceeded %ss", target_url, self.timeout,
                        )
                        return None
                    body += chunk
                    if len(body) >= self.max_bytes:
                        break
                body = body[:self.max_bytes]

                content_type = response.headers.get("Content-Type", "").lower()
                encoding = response.encoding if "charset" in content_type else None
        except requests.RequestException as e:
            logger.warning("Error fetching OG metadata from %s: %s", target_url, e)
            return None

        try:
            return body.decode(encoding or "utf-8", errors="replace")
        except LookupError:
            return body.decode("utf-8", errors="replace")

    def fetch(self, target_url: str) -> OGMetadata:
        """Blocking fetch; returns defaults on any failure"""
        document = self._download(target_url)
        if document is None:
            return OGMetadata()
        return extract_og_metadata(document, target_url)

    async def fetch_metadata(self, target_url: str) -> OGMetadata:
        """Non-blocking wrapper around fetch(), capped at timeout seconds overall"""
        try:
            return await asyncio.wait_for(asyncio.to_thread(self.fetch, target_url), self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Fetching OG metadata from %s timed out after %ss", target_url, self.timeout)
            return OGMetadata()


PREVIEW_TEMPLATE = """<!DOCTYPE html>
<html lang="zh-TW">
<head>
\t<meta charset="UTF-8">
\t<meta name="viewport" content="width=device-width, initial-scale=1.0">

\t<!-- Open Graph / Facebook -->
\t<meta property="og:type" content="{type}">
\t<meta property="og:url" content="{short_url}">
\t<meta property="og:title" content="{title}">
\t<meta property="og:description" content="{description}">
\t<meta property="og:image" content="{image}">
{site_name_tag}
\t<!-- Twitter -->
\t<meta property="twitter:card" content="summary_large_image">
\t<meta property="twitter:url" content="{short_url}">
\t<meta property="twitter:title" content="{title}">
\t<meta property="twitter:description" content="{description}">
\t<meta property="twitter:image" content="{image}">

\t<meta name="description" content="{description}">
\t<title>{title}</title>

\t<meta http-equiv="refresh" content="0;url={original_url}">
\t<script>window.location.href={original_url_js};</script>
</head>
<body>
\t<p>正在跳轉到 <a href="{original_url}">{original_url}</a>...</p>
</body>
</html>"""


def render_preview_html(
    metadata: OGMetadata,
    short_url: str,
    original_url: str,
    base_url: str,
) -> str:
    """
    Build the crawler-facing HTML page.

    Falls back to {base_url}/og-image.png when the target has no image.
    Every interpolated value is escaped.
    """
    image = metadata.image or f"{base_url.rstrip('/')}/og-image.png"

    site_name_tag = ""
    if metadata.site_name:
        site_name_tag = f'\t<meta property="og:site_name" content="{html.escape(metadata.site_name)}">\n'

    # json.dumps gives a JS string literal; "</" must not close the script tag
    original_url_js = json.dumps(original_url).replace("</", "<\\/")

    return PREVIEW_TEMPLATE.format(
        type=html.escape(metadata.type),
        short_url=html.escape(short_url),
        title=html.escape(metadata.title),
        description=html.escape(metadata.description),
        image=html.escape(image),
        site_name_tag=site_name_tag,
        original_url=html.escape(original_url),
        original_url_js=original_url_js,
    )
