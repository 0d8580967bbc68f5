from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class PageMetadata:
    """
    Result of the fetcher's existence probe.
    is_page: the resource is declared as text/html and is worth expanding.
    last_modified: parsed Last-Modified header, None when absent or unparseable.
    """
    is_page: bool = False
    last_modified: Optional[datetime] = None


@dataclass(frozen=True)
class Discovered:
    """
    One candidate produced by a page scan, before the visited-set gate.
    Depth is fixed here, at discovery time.
    """
    address: str
    depth: int
    is_page: bool = False
    last_modified: Optional[datetime] = None
