"""
Centralized metrics tracking for a crawl run.
Counters are shared by every worker thread, so all writes go through one lock.
"""

import os
import time
from collections import defaultdict
from datetime import timedelta
from threading import Lock

import psutil
from tabulate import tabulate


class CrawlMetrics:
    """
    Thread-safe counters for fetches, probes, dispatch decisions and per-worker work.
    Memory is sampled with psutil so the final summary can report peak usage.
    """

    def __init__(self, process=None):
        self.lock = Lock()
        self.start_time = time.time()
        self.counters = defaultdict(int)
        self.worker_stats = defaultdict(lambda: {"tasks": 0, "failed": 0, "inline": 0})
        self._process = process or psutil.Process(os.getpid())
        self.initial_memory_mb = self.get_current_memory_usage()
        self.peak_memory_mb = self.initial_memory_mb

    def get_current_memory_usage(self):
        """Resident memory of this process in MB."""
        try:
            return self._process.memory_info().rss / 1024 / 1024
        except psutil.Error:
            return 0.0

    def increment(self, name, amount=1):
        with self.lock:
            self.counters[name] += amount

    def get(self, name):
        with self.lock:
            return self.counters.get(name, 0)

    def record_task(self, worker_name, *, failed=False, inline=False):
        mem = self.get_current_memory_usage()
        with self.lock:
            ws = self.worker_stats[worker_name]
            ws["tasks"] += 1
            if failed:
                ws["failed"] += 1
            if inline:
                ws["inline"] += 1
            self.peak_memory_mb = max(self.peak_memory_mb, mem)

    def summary(self):
        elapsed = time.time() - self.start_time
        final_mem = self.get_current_memory_usage()
        with self.lock:
            self.peak_memory_mb = max(self.peak_memory_mb, final_mem)
            return {
                "elapsed_seconds": elapsed,
                "counters": dict(self.counters),
                "workers": {name: dict(ws) for name, ws in self.worker_stats.items()},
                "initial_memory_mb": self.initial_memory_mb,
                "final_memory_mb": final_mem,
                "peak_memory_mb": self.peak_memory_mb,
            }

    def log_summary(self, logger, visited_count=None):
        s = self.summary()
        c = s["counters"]
        logger.info("=" * 60)
        logger.info("CRAWL SUMMARY")
        logger.info("=" * 60)
        logger.info(f"Duration:            {timedelta(seconds=int(s['elapsed_seconds']))}")
        if visited_count is not None:
            logger.info(f"URLs in sitemap:     {visited_count}")
        logger.info(f"Pages scanned:       {c.get('pages_scanned', 0)}")
        logger.info(f"Links accepted:      {c.get('accepted', 0)} "
                    f"(duplicates {c.get('duplicates', 0)}, "
                    f"too deep {c.get('skipped_depth', 0)}, "
                    f"not html {c.get('skipped_not_html', 0)})")
        logger.info(f"Fetch failures:      {c.get('fetch_failures', 0)}")
        logger.info(f"Probe failures:      {c.get('probe_failures', 0)}")
        logger.info(f"HTTP requests:       {c.get('requests', 0)} "
                    f"(retries {c.get('retries', 0)}, timeouts {c.get('timeouts', 0)}, "
                    f"redirect limit {c.get('redirect_limit', 0)})")
        logger.info(f"Memory:              initial {s['initial_memory_mb']:.2f} MB, "
                    f"peak {s['peak_memory_mb']:.2f} MB, final {s['final_memory_mb']:.2f} MB")

        worker_rows = [
            [name, ws["tasks"], ws["failed"], ws["inline"]]
            for name, ws in sorted(s["workers"].items())
        ]
        if worker_rows:
            table = tabulate(worker_rows, headers=["Worker", "Tasks", "Failed", "Inline"], tablefmt="simple")
            for line in table.splitlines():
                logger.info(line)
        return s
