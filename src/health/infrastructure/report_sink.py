import json
from pathlib import Path

from src.config.logger_config import logger
from src.health.application.ports import ReportSinkPort
from src.health.domain.models import HealthRunReport


class JsonReportSink(ReportSinkPort):
    def __init__(self, report_path: str | Path) -> None:
        self.report_path = Path(report_path)
        self.report_path.parent.mkdir(parents=True, exist_ok=True)

    def write_report(self, report: HealthRunReport) -> None:
        self.report_path.write_text(
            json.dumps(report.to_dict(), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        logger.info("Domain health report written: report_path={}", str(self.report_path))
