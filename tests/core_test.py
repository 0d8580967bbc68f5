import io
import logging
import sys
import unittest

from crawler.core import CompanyFormatter, CrawlerLogger, build_logger, parse_log_level, setup_logger


class TestLogging(unittest.TestCase):
    def test_parse_log_level(self):
        self.assertEqual(parse_log_level("warn"), logging.WARNING)
        self.assertEqual(parse_log_level("DEBUG"), logging.DEBUG)
        with self.assertRaises(ValueError):
            parse_log_level("trace")

    def test_format_carries_context(self):
        stream = io.StringIO()
        logger = build_logger("info", name="test_context_logger", stream=stream)
        logger.with_context("worker-3").info("hello")
        line = stream.getvalue().strip()
        self.assertTrue(line.startswith("[ "))
        self.assertTrue(line.endswith(": INFO : worker-3 : hello"))

    def test_level_gating(self):
        stream = io.StringIO()
        logger = build_logger("warn", name="test_gating_logger", stream=stream)
        logger.info("hidden")
        logger.debug("hidden")
        logger.warn("shown")
        logger.error("also shown")
        output = stream.getvalue()
        self.assertNotIn("hidden", output)
        self.assertIn(": WARNING : root : shown", output)
        self.assertIn(": ERROR : root : also shown", output)

    def test_fatal_exits_with_status_one(self):
        stream = io.StringIO()
        logger = build_logger("error", name="test_fatal_logger", stream=stream)
        with self.assertRaises(SystemExit) as cm:
            logger.fatal("cannot continue")
        self.assertEqual(cm.exception.code, 1)
        self.assertIn(": CRITICAL : root : cannot continue", stream.getvalue())

    def test_setup_is_idempotent(self):
        setup_logger("test_idempotent_logger", stream=io.StringIO())
        logger = setup_logger("test_idempotent_logger", stream=io.StringIO())
        self.assertEqual(len(logger.handlers), 1)

    def test_formatter_includes_traceback(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", None, sys.exc_info())
        record.context = "worker-1"
        text = CompanyFormatter().format(record)
        self.assertIn("worker-1 : failed", text)
        self.assertIn("RuntimeError: boom", text)

    def test_timestamp_is_utc(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "epoch", None, None)
        record.created = 0
        text = CompanyFormatter().format(record)
        self.assertTrue(text.startswith("[ Thu Jan 01 12:00:00 AM UTC 1970 ]"), text)

    def test_with_context_shares_logger(self):
        base = CrawlerLogger(logging.getLogger("test_shared"))
        child = base.with_context("worker-9")
        self.assertIs(child.logger, base.logger)
        self.assertEqual(child.context, "worker-9")
        self.assertEqual(base.context, "root")


if __name__ == "__main__":
    unittest.main()
