"""
File store for quality reports
"""

import re
import time
from pathlib import Path
from typing import List, Optional, Tuple, Union
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from core.files import atomic_write_text
from schemas.quality import QualityReport
import logging

logger = logging.getLogger(__name__)

_REPORT_FILE = re.compile(r"^quality_report_(?P<key>.+)_(?P<ms>\d+)\.json$")


class QualityReportStore:
    """
    Persist quality reports as ``quality_report_<key>_<ms>.json``.

    ``key`` is the job id for pipeline reports or a generated id for
    standalone assessments; ``ms`` is the save time in epoch milliseconds.
    """

    def __init__(self, reports_path: Union[str, Path]):
        self.reports_path = Path(reports_path)

    def initialize(self) -> None:
        self.reports_path.mkdir(parents=True, exist_ok=True)

    def save(self, report: QualityReport, key: str) -> Path:
        path = self._unique_path("quality_report_{key}_{ms}.json", key=key)
        atomic_write_text(path, report.model_dump_json(by_alias=True, indent=2))
        logger.info(f"Quality report saved: {path.name}")
        return path

    def save_comprehensive(self, report: BaseModel) -> Path:
        path = self._unique_path("comprehensive_report_{ms}.json")
        atomic_write_text(path, report.model_dump_json(by_alias=True, indent=2))
        logger.info(f"Comprehensive report saved: {path.name}")
        return path

    def _unique_path(self, template: str, **fields) -> Path:
        ms = int(time.time() * 1000)
        path = self.reports_path / template.format(ms=ms, **fields)
        while path.exists():
            ms += 1
            path = self.reports_path / template.format(ms=ms, **fields)
        return path

    def list_files(self) -> List[Tuple[int, Path]]:
        """Report files oldest first"""
        if not self.reports_path.exists():
            return []

        files = []
        for path in self.reports_path.iterdir():
            match = _REPORT_FILE.match(path.name)
            if match:
                files.append((int(match.group("ms")), path))
        return sorted(files)

    def load(self, path: Path) -> Optional[QualityReport]:
        """Read one report; unreadable or malformed files are logged and skipped"""
        try:
            return QualityReport.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValueError, PydanticValidationError) as e:
            logger.error(f"Failed to read report {path.name}: {e}")
            return None

    def recent(self, limit: int = 10) -> List[QualityReport]:
        """The ``limit`` most recent readable reports, oldest first"""
        reports = []
        for _, path in self.list_files()[-limit:]:
            report = self.load(path)
            if report is not None:
                reports.append(report)
        return reports
