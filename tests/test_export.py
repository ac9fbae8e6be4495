import json
import tempfile
import unittest
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "newsimpact" / "src"
sys.path.insert(0, str(SRC))

from newsimpact.errors import AuthenticationError, format_error
from newsimpact.export.json_export import export_json
from newsimpact.export.md_export import export_analysis_md


RESULT = {
    "status": "ok",
    "started_at": "2026-01-25T10:00:00+00:00",
    "hours_back": 2.0,
    "highlights": [{
        "index": 1,
        "text": "📜 REGULATION | $BTC: SEC approves in-kind redemptions",
        "ticker": "BTC",
        "url": "https://example.com/btc",
        "price_change": -1.5,
        "time_ago": "1h ago",
    }],
}


class TestExportEncoding(unittest.TestCase):
    def test_json_written_as_utf8(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = export_json(RESULT, Path(tmpdir) / "nested" / "run.json")
            raw = path.read_bytes()

        self.assertIn("📜".encode("utf-8"), raw)
        self.assertEqual(json.loads(raw.decode("utf-8"))["highlights"][0]["ticker"], "BTC")

    def test_markdown_written_as_utf8(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "run.md"
            export_analysis_md(RESULT, path)
            content = path.read_bytes().decode("utf-8")

        self.assertIn("📜 REGULATION", content)
        self.assertIn("-1.50%", content)


class TestErrorEnvelope(unittest.TestCase):
    def test_library_error(self):
        payload = json.loads(format_error(AuthenticationError("OpenAI error 401: bad key", details={"status": 401})))

        self.assertFalse(payload["ok"])
        self.assertEqual(payload["error"]["type"], "AuthenticationError")
        self.assertEqual(payload["error"]["details"], {"status": 401})
        self.assertEqual(payload["meta"], {"version": 1})

    def test_unexpected_error(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            payload = json.loads(format_error(e))

        self.assertEqual(payload["error"]["type"], "UnknownError")
        self.assertEqual(payload["error"]["message"], "boom")
        self.assertIn("traceback", payload["error"]["details"])


if __name__ == "__main__":
    unittest.main()
