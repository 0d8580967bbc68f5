from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from crawler.url_utils import percent_encode

LASTMOD_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


@dataclass(frozen=True)
class SitemapUrl:
    """
    One <url> element, already in wire form.
    loc: percent-encoded location; lastmod: RFC 3339 UTC timestamp or None.
    """
    loc: str
    lastmod: Optional[str] = None


def format_lastmod(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(LASTMOD_FORMAT)


def build_sitemap_url(location: str, last_modified: Optional[datetime] = None) -> SitemapUrl:
    return SitemapUrl(loc=percent_encode(location), lastmod=format_lastmod(last_modified))
