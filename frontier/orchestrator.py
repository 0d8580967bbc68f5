import threading
from typing import List, Optional

from crawler.fetcher import FetchError, is_timeout, is_too_many_redirects
from crawler.models import Discovered, PageMetadata
from crawler.url_utils import normalize_address
from crawler.worker import WorkerPool
from frontier.models import CrawlTask, VisitedEntry
from frontier.storage import VisitedStore, VisitedSet
from sitemap.models import build_sitemap_url


class Crawler:
    """
    Breadth-first, depth-bounded site discovery with exactly-once expansion per address.

    FLOW: Seed is recorded and scanned on the caller's thread -> Worker pool starts with scan-and-dispatch
    as its handler -> Seed discoveries are dispatched -> wait_finalize() -> Visited entries are returned.

    Dispatch is a two-step gate evaluated in order: atomic insert into the visited store (first writer
    wins), then eligibility (HTML page and depth < max_depth). Only the insert winner may submit a task.
    """

    def __init__(self, fetcher, extractor, logger, max_depth: int = 2, workers: int = 5,
                 store: Optional[VisitedStore] = None, pool: Optional[WorkerPool] = None, metrics=None):
        self.fetcher = fetcher
        self.extractor = extractor
        self.logger = logger
        self.max_depth = max_depth
        self.workers = workers
        self.metrics = metrics
        self.store = store if store is not None else VisitedSet()
        self.pool = pool if pool is not None else WorkerPool(logger, metrics=metrics)

    def _log(self):
        name = threading.current_thread().name
        if name == "MainThread":
            return self.logger
        return self.logger.with_context(name)

    def _count(self, name):
        if self.metrics is not None:
            self.metrics.increment(name)

    def traverse(self, seed: str) -> List[VisitedEntry]:
        seed_address = normalize_address(seed)
        self.logger.info(f"Crawl started at {seed_address} (max depth {self.max_depth}, {self.workers} workers)")

        try:
            seed_meta = self.fetcher.probe(seed_address)
        except FetchError as e:
            self._count("probe_failures")
            self.logger.warning(f"Probe failed for seed {seed_address}: {e}")
            seed_meta = PageMetadata()

        # Recorded before the scan so a link cycling back to the seed cannot pass the gate.
        self.store.create_if_absent(VisitedEntry(seed_address, seed_meta.last_modified, 0))
        discovered = self.scan(seed_address, 0)

        self.pool.start(self.workers, self.handle)
        for item in discovered:
            self.dispatch(item)
        failures = self.pool.wait_finalize()
        if failures:
            self.logger.warning(f"{len(failures)} tasks failed with unexpected errors")

        entries = self.store.entries()
        self.logger.info(f"Crawl finished: {len(entries)} unique addresses")
        return entries

    def handle(self, task: CrawlTask) -> None:
        """Pool handler: scan one task's page and dispatch everything it links to."""
        for item in self.scan(task.address, task.depth):
            self.dispatch(item)

    def scan(self, address: str, depth: int) -> List[Discovered]:
        log = self._log()
        try:
            body = self.fetcher.fetch(address)
        except FetchError as e:
            self._count("fetch_failures")
            if is_timeout(e) or is_too_many_redirects(e):
                log.warning(f"Skipping {address}: {e}")
            else:
                log.error(f"Failed to read {address}: {e}")
            return []
        self._count("pages_scanned")

        candidates = self.extractor.extract(address, body)
        log.debug(f"Scanned {address} at depth {depth}: {len(candidates)} candidates")

        discovered = []
        for candidate in candidates:
            # Pre-check only; dispatch() still holds the authoritative gate.
            if candidate in self.store:
                self._count("duplicates")
                continue
            try:
                meta = self.fetcher.probe(candidate)
            except FetchError as e:
                self._count("probe_failures")
                log.warning(f"Probe failed for {candidate}: {e}")
                continue
            discovered.append(Discovered(
                address=candidate,
                depth=depth + 1,
                is_page=meta.is_page,
                last_modified=meta.last_modified,
            ))
        return discovered

    def dispatch(self, item: Discovered) -> bool:
        """Returns True when a task was submitted for item."""
        entry = VisitedEntry(item.address, item.last_modified, item.depth)
        if not self.store.create_if_absent(entry):
            self._count("duplicates")
            return False
        self._count("accepted")

        if not item.is_page:
            self._count("skipped_not_html")
            return False
        if item.depth >= self.max_depth:
            self._count("skipped_depth")
            return False

        self._log().debug(f"Queueing {item.address} at depth {item.depth}")
        self.pool.submit(CrawlTask(item.address, item.depth))
        return True

    def write_sitemap(self, entries: List[VisitedEntry], writer) -> int:
        urls = [
            build_sitemap_url(entry.address, entry.last_modified)
            for entry in sorted(entries, key=lambda e: e.address)
        ]
        return writer.write(urls)
