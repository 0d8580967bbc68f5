from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class CrawlTask:
    """
    Data model for one unit of pool work.
    Invariants: address was inserted into the visited store before the task was created;
    depth is the depth at which the address was first discovered.
    """
    address: str
    depth: int


@dataclass(frozen=True)
class VisitedEntry:
    """
    Data model for one crawl result.
    Invariants: address is the Primary Key; created once, never mutated or removed.
    """
    address: str
    last_modified: Optional[datetime] = None
    depth: int = 0
