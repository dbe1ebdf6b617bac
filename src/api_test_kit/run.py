"""Test-run wiring: one logger and one recorder per report directory."""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional

from api_test_kit.config import SuiteConfig, SuiteProfile
from api_test_kit.lifecycle import ApiFixture, PrimingCall
from api_test_kit.report import ReportRecorder
from api_test_kit.request_context import ContextFactory
from api_test_kit.suite_logging import SuiteLogger

logger = logging.getLogger(__name__)


class SuiteRun:
    """Owns the shared sinks of one test run and builds fixtures around them.

    Lifetime is the test run: close() does the final report flush, after
    every fixture has been torn down.
    """

    def __init__(self, config: SuiteConfig, suite_logger: Optional[SuiteLogger] = None):
        self.config = config
        self.logger = suite_logger or SuiteLogger()
        self._recorders: Dict[Path, ReportRecorder] = {}
        self._lock = threading.Lock()
        self._closed = False

    def recorder(self, profile: SuiteProfile) -> ReportRecorder:
        """Return the recorder for the profile's report directory, creating it once."""
        with self._lock:
            recorder = self._recorders.get(profile.report_dir)
            if recorder is None:
                recorder = ReportRecorder(
                    profile.report_dir,
                    document_title=profile.document_title,
                    report_name=profile.report_name,
                    theme=self.config.report_theme,
                )
                self._recorders[profile.report_dir] = recorder
            return recorder

    def recorders(self) -> List[ReportRecorder]:
        with self._lock:
            return list(self._recorders.values())

    def fixture(
        self,
        profile: SuiteProfile,
        *,
        name: Optional[str] = None,
        priming: Optional[PrimingCall] = None,
        context_factory: Optional[ContextFactory] = None,
    ) -> ApiFixture:
        return ApiFixture(
            profile,
            self.recorder(profile),
            self.logger,
            log_dir=self.config.log_dir,
            log_level=self.config.log_level,
            name=name,
            priming=priming,
            timeout_ms=self.config.request_timeout_ms,
            context_factory=context_factory,
        )

    def close(self) -> None:
        """Flush every report once more and flush the log sinks."""
        if self._closed:
            return
        self._closed = True
        for recorder in self.recorders():
            try:
                path = recorder.flush()
                print(f"[REPORT] {recorder.report_name}: {path}")
            except Exception as e:
                logger.error(f"Failed to flush report {recorder.report_dir}: {e}")
        self.logger.flush()
