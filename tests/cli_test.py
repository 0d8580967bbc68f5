"""
End-to-end runs of the command-line entry point.
"""

import io
import os
import tempfile
import unittest
from unittest.mock import patch

import main
from crawler import __version__
from http_fixtures import SiteServer, Route, page

LAST_MODIFIED = "Wed, 11 May 2022 12:48:18 GMT"


class TestCommandLine(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.output = os.path.join(self.tmp.name, "sitemap.xml")
        self.stderr = patch("sys.stderr", new_callable=io.StringIO)
        self.stderr.start()

    def tearDown(self):
        self.stderr.stop()
        self.tmp.cleanup()

    def test_version(self):
        with patch("sys.stdout", new_callable=io.StringIO) as stdout:
            self.assertEqual(main.main(["-v", "--log-level", "error"]), 0)
        self.assertIn(f"version is {__version__}", stdout.getvalue())

    def test_missing_start_url_is_fatal(self):
        with self.assertRaises(SystemExit) as cm:
            main.main(["--output-file", self.output])
        self.assertEqual(cm.exception.code, 1)
        self.assertFalse(os.path.exists(self.output))

    def test_non_positive_retries_is_fatal(self):
        with self.assertRaises(SystemExit) as cm:
            main.main(["http://127.0.0.1:9/", "--max-retries", "0", "--output-file", self.output])
        self.assertEqual(cm.exception.code, 1)

    def test_unknown_log_level_is_fatal(self):
        with self.assertRaises(SystemExit) as cm:
            main.main(["http://127.0.0.1:9/", "--log-level", "loud", "--output-file", self.output])
        self.assertEqual(cm.exception.code, 1)

    def test_unwritable_output_is_fatal(self):
        missing_dir = os.path.join(self.tmp.name, "missing", "sitemap.xml")
        with patch("main.Crawler") as crawler_cls:
            with self.assertRaises(SystemExit) as cm:
                main.main(["http://127.0.0.1:9/", "--output-file", missing_dir, "--log-level", "error"])
        self.assertEqual(cm.exception.code, 1)
        crawler_cls.assert_not_called()

    def test_invalid_timeout_rejected_by_parser(self):
        with self.assertRaises(SystemExit) as cm:
            main.parse_options(["http://127.0.0.1:9/", "--timeout", "soon"])
        self.assertEqual(cm.exception.code, 2)

    def test_parse_options(self):
        options = main.parse_options([
            "https://site.example/", "--timeout", "250ms", "--max-retries", "4",
            "--max-redirects", "2", "--parallel", "8", "--max-depth", "3", "--output-file", "out.xml",
        ])
        self.assertEqual(options.start_url, "https://site.example/")
        self.assertAlmostEqual(options.timeout, 0.25)
        self.assertEqual((options.max_retries, options.max_redirects), (4, 2))
        self.assertEqual((options.parallel, options.max_depth), (8, 3))
        self.assertEqual(options.output_file, "out.xml")
        self.assertFalse(options.show_version)

    def test_crawl_writes_sitemap(self):
        routes = {
            "/": page("/faq", "/protocol", "/", "/doc.pdf"),
            "/faq": page("/deep"),
            "/protocol": page("/", headers={"Last-Modified": LAST_MODIFIED}),
            "/doc.pdf": Route(body=b"%PDF", content_type="application/pdf"),
            "/deep": page(),
        }
        with SiteServer(routes) as site:
            code = main.main([
                site.url("/"), "--max-depth", "1", "--parallel", "2", "--timeout", "2s",
                "--output-file", self.output, "--log-level", "error",
            ])
            base = site.base_url

        self.assertEqual(code, 0)
        with open(self.output, encoding="utf-8") as f:
            xml = f.read()
        self.assertTrue(xml.startswith('<?xml version="1.0" encoding="UTF-8"?>\n<urlset'))
        for path in ("/", "/faq", "/protocol", "/doc.pdf"):
            self.assertIn(f"<loc>{base}{path}</loc>", xml)
        self.assertNotIn("/deep", xml)
        self.assertEqual(xml.count("<url>"), 4)
        self.assertEqual(xml.count("<lastmod>2022-05-11T12:48:18Z</lastmod>"), 1)
        self.assertEqual(site.hits["/faq"], 1)


if __name__ == "__main__":
    unittest.main()
