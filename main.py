import argparse
import sys

from crawler import __version__
from crawler.config import (
    CMD_NAME, LOG_LEVEL, REQUEST_TIMEOUT, MAX_RETRIES, MAX_REDIRECTS,
    PARALLEL_WORKERS, MAX_DEPTH, OUTPUT_FILE, USER_AGENT,
    ConfigError, CrawlerOptions,
)
from crawler.core import LOG_LEVELS, build_logger
from crawler.fetcher import Fetcher
from crawler.metrics import CrawlMetrics
from crawler.parser import LinkExtractor
from crawler.url_utils import parse_duration
from crawler.worker import WorkerPool, PoolError
from frontier.orchestrator import Crawler
from frontier.storage import VisitedSet
from sitemap.writer import SitemapWriter, SitemapWriteError


def _duration(value):
    try:
        return parse_duration(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser():
    parser = argparse.ArgumentParser(
        prog=CMD_NAME,
        description="Crawl a website from a start URL and write a sitemap.xml of the pages found.",
    )
    parser.add_argument("start_url", nargs="?", help="Address the crawl starts from")
    parser.add_argument("-v", "--version", action="store_true", dest="show_version", help="Print the version and exit")
    parser.add_argument("--log-level", default=LOG_LEVEL, help=f"Log level: {', '.join(LOG_LEVELS)}")
    parser.add_argument("--timeout", type=_duration, default=REQUEST_TIMEOUT,
                        help="Allowable timeout for each URL reading, e.g. 5s, 500ms")
    parser.add_argument("--max-retries", type=int, default=MAX_RETRIES,
                        help="Max attempts for each URL reading")
    parser.add_argument("--max-redirects", type=int, default=MAX_REDIRECTS,
                        help="Max redirect hops for each URL reading")
    parser.add_argument("--parallel", type=int, default=PARALLEL_WORKERS,
                        help="Number of parallel workers navigating through the site")
    parser.add_argument("--max-depth", type=int, default=MAX_DEPTH,
                        help="Max depth of link navigation from the start URL")
    parser.add_argument("--output-file", default=OUTPUT_FILE, help="Output sitemap file path")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")
    parser.add_argument("--user-agent", default=USER_AGENT, help="User-Agent header sent with every request")
    return parser


def parse_options(argv=None) -> CrawlerOptions:
    args = build_parser().parse_args(argv)
    return CrawlerOptions(
        show_version=args.show_version,
        log_level=args.log_level,
        timeout=args.timeout,
        max_retries=args.max_retries,
        max_redirects=args.max_redirects,
        parallel=args.parallel,
        max_depth=args.max_depth,
        output_file=args.output_file,
        start_url=args.start_url,
        log_file=args.log_file,
        user_agent=args.user_agent,
    )


def main(argv=None) -> int:
    options = parse_options(argv)

    try:
        logger = build_logger(options.log_level, log_file=options.log_file)
    except ValueError:
        # Still need a logger to report the bad level through
        logger = build_logger("info", log_file=options.log_file)

    try:
        options.validate()
    except ConfigError as e:
        logger.fatal(str(e))
    logger.info(f"Started with options {options.to_json()}")

    if options.show_version:
        print(f"version is {__version__}")
        return 0

    try:
        output = open(options.output_file, "w", encoding="utf-8")
    except OSError as e:
        logger.fatal(f"Can not open output file {options.output_file}: {e}")

    metrics = CrawlMetrics()
    with output, Fetcher(
        logger,
        timeout=options.timeout,
        max_retries=options.max_retries,
        max_redirects=options.max_redirects,
        user_agent=options.user_agent,
        metrics=metrics,
    ) as fetcher:
        crawler = Crawler(
            fetcher,
            LinkExtractor(logger),
            logger,
            max_depth=options.max_depth,
            workers=options.parallel,
            store=VisitedSet(),
            pool=WorkerPool(logger, metrics=metrics),
            metrics=metrics,
        )
        try:
            entries = crawler.traverse(options.start_url)
        except PoolError as e:
            logger.fatal(f"Worker pool failed: {e}")

        try:
            crawler.write_sitemap(entries, SitemapWriter(output, logger))
        except SitemapWriteError as e:
            logger.fatal(str(e))

    metrics.log_summary(logger, visited_count=len(entries))
    logger.info(f"Sitemap saved to {options.output_file}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
