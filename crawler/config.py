"""
Configuration for the sitemap crawler.
Defaults can be overridden from the environment (or a .env file);
command-line flags override both.
"""

import json
import os
from dataclasses import dataclass, asdict
from typing import Optional

from dotenv import load_dotenv

from crawler import __version__
from crawler.core import LOG_LEVELS
from crawler.url_utils import parse_duration, is_network_address

load_dotenv()

CMD_NAME = "siteGenerator"

LOG_LEVEL = os.getenv("SITEMAP_LOG_LEVEL", "info")

# Allowable timeout for each URL reading
REQUEST_TIMEOUT = parse_duration(os.getenv("SITEMAP_TIMEOUT", "5s"))

# Max attempts (including the first) for each URL reading
MAX_RETRIES = int(os.getenv("SITEMAP_MAX_RETRIES", 3))

# Max redirect hops when the server responds with a redirect
MAX_REDIRECTS = int(os.getenv("SITEMAP_MAX_REDIRECTS", 10))

# Number of parallel workers navigating through the site
PARALLEL_WORKERS = int(os.getenv("SITEMAP_PARALLEL", 5))

# Max depth of link navigation from the start URL
MAX_DEPTH = int(os.getenv("SITEMAP_MAX_DEPTH", 2))

OUTPUT_FILE = os.getenv("SITEMAP_OUTPUT_FILE", "sitemap.xml")

USER_AGENT = os.getenv("SITEMAP_USER_AGENT", f"SitemapGenerator/{__version__}")


class ConfigError(ValueError):
    """Raised when options are unusable; fatal before any crawling begins."""
    pass


@dataclass
class CrawlerOptions:
    show_version: bool = False
    log_level: str = LOG_LEVEL
    timeout: float = REQUEST_TIMEOUT
    max_retries: int = MAX_RETRIES
    max_redirects: int = MAX_REDIRECTS
    parallel: int = PARALLEL_WORKERS
    max_depth: int = MAX_DEPTH
    output_file: str = OUTPUT_FILE
    start_url: Optional[str] = None
    log_file: Optional[str] = None
    user_agent: str = USER_AGENT

    def validate(self) -> None:
        """Raise ConfigError on the first unusable value."""
        if (self.log_level or "").lower() not in LOG_LEVELS:
            raise ConfigError(f"Invalid log level {self.log_level!r}, expected one of: {', '.join(LOG_LEVELS)}")
        if self.max_retries <= 0:
            raise ConfigError("MaxRetries should be number greater than zero")
        if self.parallel <= 0:
            raise ConfigError("Parallel workers count should be number greater than zero")
        if self.max_redirects < 0:
            raise ConfigError("MaxRedirects should not be negative")
        if self.max_depth < 0:
            raise ConfigError("MaxDepth should not be negative")
        if self.timeout <= 0:
            raise ConfigError("Timeout should be a positive duration")
        if self.show_version:
            return
        if not self.start_url:
            raise ConfigError(f"Start URL missed. Should be a command argument: {CMD_NAME} <start-url>")
        if not is_network_address(self.start_url):
            raise ConfigError(f"Start URL must be an absolute http(s) URL: {self.start_url}")

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict())
