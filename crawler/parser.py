"""
Link extraction from HTML for the crawler.
Resolves anchors against the page address (or an in-page <base>) and
returns normalized network addresses in order of first appearance.
"""

from urllib.parse import urljoin

from bs4 import BeautifulSoup

from crawler.url_utils import normalize_address, is_network_address


class LinkExtractor:
    def __init__(self, logger=None):
        self.logger = logger

    def extract(self, page_address, body):
        """
        Returns the absolute, fragment-free http(s) addresses linked from body.
        A page that cannot be parsed yields an empty list; this never raises.
        """
        try:
            soup = BeautifulSoup(body, "html.parser")
            tags = soup.find_all(["base", "a"])
        except Exception as e:
            if self.logger:
                self.logger.debug(f"Unparseable markup at {page_address}: {e}")
            return []

        base = page_address
        seen = set()
        links = []
        for tag in tags:
            href = (tag.get("href") or "").strip()
            if not href:
                continue
            try:
                resolved = urljoin(base, href)
            except ValueError:
                continue

            if tag.name == "base":
                base = resolved
                continue

            if not is_network_address(resolved):
                continue
            address = normalize_address(resolved)
            if address in seen:
                continue
            seen.add(address)
            links.append(address)

        if self.logger:
            self.logger.debug(f"Extracted {len(links)} links from {page_address}")
        return links
