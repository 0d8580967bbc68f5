"""
Sitemap protocol output: entry model and XML serialisation.
"""

from sitemap.models import SitemapUrl, build_sitemap_url
from sitemap.writer import SitemapWriter, SitemapWriteError, SITEMAP_NS

__all__ = ["SitemapUrl", "build_sitemap_url", "SitemapWriter", "SitemapWriteError", "SITEMAP_NS"]
