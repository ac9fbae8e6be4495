import datetime
import unittest
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "newsimpact" / "src"
sys.path.insert(0, str(SRC))

from newsimpact.models.news import RawNewsRecord
from newsimpact.normalizer import (
    build_stats,
    filter_recent,
    normalize_record,
    normalize_records,
)

UTC = datetime.timezone.utc
# 2026-01-25 10:00:00 UTC
T0_MS = 1769335200000


class TestNormalizeRecord(unittest.TestCase):
    def test_twitter_title_is_split_at_first_colon(self):
        item = normalize_record({"source": "TWITTER", "title": "Alice: bought the dip", "time": T0_MS})

        self.assertEqual(item.source, "Alice")
        self.assertEqual(item.title, "Alice")
        self.assertEqual(item.body, "bought the dip")
        self.assertEqual(item.author, "Alice")

    def test_twitter_source_is_case_insensitive_and_splits_once(self):
        item = normalize_record({"source": "Twitter", "title": "Bob: target: 100k", "time": T0_MS})

        self.assertEqual(item.source, "Bob")
        self.assertEqual(item.body, "target: 100k")

    def test_twitter_without_colon_uses_title_as_body(self):
        item = normalize_record({"source": "TWITTER", "title": "gm", "body": "ignored", "time": T0_MS})

        self.assertEqual(item.source, "TWITTER")
        self.assertEqual(item.title, "gm")
        self.assertEqual(item.body, "gm")

    def test_twitter_url_without_source_is_treated_as_twitter(self):
        item = normalize_record({
            "title": "Carol: long $SOL",
            "url": "https://twitter.com/carol/status/1",
            "time": T0_MS,
        })

        self.assertEqual(item.source, "Carol")
        self.assertEqual(item.body, "long $SOL")

    def test_missing_source_defaults_to_unknown(self):
        item = normalize_record({"title": "Exchange lists token", "time": T0_MS})

        self.assertEqual(item.source, "UNKNOWN")
        self.assertEqual(item.body, "Exchange lists token")
        self.assertEqual(item.url, "")

    def test_primary_time_preferred_over_secondary(self):
        item = normalize_record({"time": T0_MS, "sendTime": T0_MS + 60_000, "title": "x"})

        self.assertEqual(item.time, "2026-01-25 10:00:00")
        self.assertEqual(item.published_at, datetime.datetime(2026, 1, 25, 10, 0, tzinfo=UTC))

    def test_secondary_time_used_when_primary_missing(self):
        item = normalize_record(RawNewsRecord(sendTime=T0_MS, title="x"))

        self.assertEqual(item.time, "2026-01-25 10:00:00")

    def test_missing_times_fall_back_to_now(self):
        before = datetime.datetime.now(UTC).replace(microsecond=0)
        item = normalize_record({"title": "undated"})

        self.assertIsNotNone(item.time)
        self.assertGreaterEqual(item.published_at, before)

    def test_empty_record_never_fails(self):
        item = normalize_record({})

        self.assertEqual(item.source, "UNKNOWN")
        self.assertEqual(item.title, "")
        self.assertEqual(item.body, "")

    def test_body_kept_when_present(self):
        item = normalize_record({"source": "Blogs", "title": "Headline", "body": "Details", "time": T0_MS})

        self.assertEqual(item.body, "Details")


class TestNormalizeBatch(unittest.TestCase):
    def test_order_and_length_preserved(self):
        records = [{"title": f"item {i}", "time": T0_MS + i} for i in range(5)]
        items = normalize_records(records)

        self.assertEqual(len(items), 5)
        self.assertEqual([i.title for i in items], [f"item {i}" for i in range(5)])

    def test_filter_recent_keeps_window_newest_first(self):
        now = datetime.datetime(2026, 1, 25, 12, 0, tzinfo=UTC)
        records = [
            {"title": "old", "time": T0_MS - 3_600_000},  # 09:00, outside 2h
            {"title": "mid", "time": T0_MS + 1_800_000},  # 10:30
            {"title": "new", "time": T0_MS + 5_400_000},  # 11:30
            {"title": "edge", "time": T0_MS},             # 10:00, on the cutoff
            {"title": "undated"},
        ]

        kept = filter_recent(records, 2, now=now)

        self.assertEqual([r["title"] for r in kept], ["new", "mid", "edge"])

    def test_build_stats(self):
        items = normalize_records([
            {"title": "a", "time": T0_MS},
            {"title": "b", "time": T0_MS + 3_600_000},
        ])
        stats = build_stats(items)

        self.assertEqual(stats.total, 2)
        self.assertEqual(stats.oldest, datetime.datetime(2026, 1, 25, 10, 0, tzinfo=UTC))
        self.assertEqual(stats.newest, datetime.datetime(2026, 1, 25, 11, 0, tzinfo=UTC))
        self.assertEqual(build_stats([]).total, 0)


if __name__ == "__main__":
    unittest.main()
