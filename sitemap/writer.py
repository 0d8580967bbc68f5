"""
Sitemap XML serialisation.
Writes a sitemaps.org 0.9 urlset, two-space indented, to any text stream.
"""

import xml.etree.ElementTree as ET
from typing import Iterable, TextIO

from sitemap.models import SitemapUrl

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>\n'


class SitemapWriteError(Exception):
    """Raised when the sitemap cannot be written to its destination."""
    pass


def build_urlset(urls: Iterable[SitemapUrl]) -> ET.Element:
    root = ET.Element("urlset", xmlns=SITEMAP_NS)
    for url in urls:
        url_node = ET.SubElement(root, "url")
        loc_node = ET.SubElement(url_node, "loc")
        loc_node.text = url.loc
        if url.lastmod:
            lastmod_node = ET.SubElement(url_node, "lastmod")
            lastmod_node.text = url.lastmod
    return root


def render(urls: Iterable[SitemapUrl]) -> str:
    root = build_urlset(urls)
    ET.indent(root, space="  ")
    return XML_HEADER + ET.tostring(root, encoding="unicode")


class SitemapWriter:
    def __init__(self, dest: TextIO, logger=None):
        self.dest = dest
        self.logger = logger

    def write(self, urls: Iterable[SitemapUrl]) -> int:
        """Serialise urls in the given order. Returns the number of <url> elements written."""
        urls = list(urls)
        document = render(urls)
        try:
            self.dest.write(document)
            self.dest.flush()
        except (OSError, ValueError) as e:
            raise SitemapWriteError(f"Failed to write sitemap: {e}") from e
        if self.logger:
            self.logger.info(f"Sitemap written with {len(urls)} urls")
        return len(urls)
