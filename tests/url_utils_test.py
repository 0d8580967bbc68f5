import unittest

from crawler.url_utils import (
    is_network_address, normalize_address, parse_duration, percent_encode, strip_fragment,
)


class TestAddresses(unittest.TestCase):
    def test_normalize(self):
        self.assertEqual(normalize_address("HTTPS://Site.Example"), "https://site.example/")
        self.assertEqual(normalize_address("http://site.example/A/b?x=1#frag"), "http://site.example/A/b?x=1")
        self.assertEqual(normalize_address(""), "")

    def test_strip_fragment(self):
        self.assertEqual(strip_fragment("http://site.example/a#b"), "http://site.example/a")

    def test_is_network_address(self):
        self.assertTrue(is_network_address("http://site.example"))
        self.assertTrue(is_network_address("HTTPS://site.example/x"))
        self.assertFalse(is_network_address("mailto:me@site.example"))
        self.assertFalse(is_network_address("/relative"))
        self.assertFalse(is_network_address("http:///nohost"))

    def test_percent_encode_non_ascii_only(self):
        self.assertEqual(
            percent_encode("https://site.example/ä?a=1&b=2#x"),
            "https://site.example/%C3%A4?a=1&b=2#x",
        )


class TestParseDuration(unittest.TestCase):
    def test_go_style(self):
        self.assertEqual(parse_duration("5s"), 5.0)
        self.assertAlmostEqual(parse_duration("200ms"), 0.2)
        self.assertEqual(parse_duration("1m30s"), 90.0)
        self.assertEqual(parse_duration("1h"), 3600.0)

    def test_bare_numbers(self):
        self.assertEqual(parse_duration("2.5"), 2.5)
        self.assertEqual(parse_duration(3), 3.0)

    def test_invalid(self):
        for value in ("", "5 seconds", "s5", "10x"):
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    parse_duration(value)


if __name__ == "__main__":
    unittest.main()
