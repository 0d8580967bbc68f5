import threading
import unittest
from datetime import datetime, timezone

from frontier.models import VisitedEntry
from frontier.storage import VisitedSet


class TestVisitedSet(unittest.TestCase):
    def test_first_writer_wins(self):
        visited = VisitedSet()
        first = VisitedEntry("http://site.example/a", datetime(2022, 5, 11, tzinfo=timezone.utc), depth=1)
        second = VisitedEntry("http://site.example/a", None, depth=3)

        self.assertTrue(visited.create_if_absent(first))
        self.assertFalse(visited.create_if_absent(second))
        self.assertEqual(visited.get("http://site.example/a"), first)
        self.assertEqual(len(visited), 1)
        self.assertIn("http://site.example/a", visited)
        self.assertNotIn("http://site.example/b", visited)
        self.assertIsNone(visited.get("http://site.example/b"))

    def test_concurrent_inserts_have_exactly_one_winner(self):
        visited = VisitedSet()
        winners = []
        lock = threading.Lock()
        barrier = threading.Barrier(16)

        def race(n):
            barrier.wait()
            for i in range(50):
                if visited.create_if_absent(VisitedEntry(f"http://site.example/{i}", depth=n)):
                    with lock:
                        winners.append(i)

        threads = [threading.Thread(target=race, args=(n,)) for n in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(sorted(winners), list(range(50)))
        self.assertEqual(len(visited), 50)
        self.assertEqual(len({e.address for e in visited.entries()}), 50)

    def test_entries_is_a_snapshot(self):
        visited = VisitedSet()
        visited.create_if_absent(VisitedEntry("http://site.example/"))
        snapshot = visited.entries()
        visited.create_if_absent(VisitedEntry("http://site.example/x"))
        self.assertEqual(len(snapshot), 1)


if __name__ == "__main__":
    unittest.main()
