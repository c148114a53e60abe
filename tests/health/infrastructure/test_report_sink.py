import json
import unittest

from src.health.domain.models import HealthRunReport
from src.health.infrastructure.report_sink import JsonReportSink
from tests.utils.tempdir import managed_temp_dir


class JsonReportSinkTests(unittest.TestCase):
    def test_write_report_creates_parent_and_serializes(self):
        with managed_temp_dir("report_sink") as tmp:
            report_path = tmp / "nested" / "report.json"
            sink = JsonReportSink(report_path)
            sink.write_report(
                HealthRunReport(
                    epoch=42,
                    outcome="completed",
                    started_at="2026-01-01T00:00:00+00:00",
                    finished_at="2026-01-01T00:00:05+00:00",
                    total_observations=11,
                    ignored_count=0,
                    cdn_expired_count=1,
                    false_positives=(),
                    recorded_failures={"a.example.org": "generic_website"},
                    over_threshold=("a.example.org",),
                    removed=("a.example.org",),
                    failed_removals=(),
                    dry_run=False,
                )
            )

            payload = json.loads(report_path.read_text(encoding="utf-8"))
            self.assertEqual(payload["epoch"], 42)
            self.assertEqual(payload["recorded_failures"], {"a.example.org": "generic_website"})
            self.assertEqual(payload["removed"], ["a.example.org"])


if __name__ == "__main__":
    unittest.main()
