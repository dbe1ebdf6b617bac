"""Playwright API test kit: fixture lifecycle, logging and HTML reporting
for the Reqres and GoRest API suites."""

from api_test_kit.lifecycle import ApiFixture, FixtureState, PrimingCall
from api_test_kit.report import EventLevel, ReportEvent, ReportNode, ReportRecorder
from api_test_kit.results import ApiFailure, ApiResponse, ApiResult, ApiSuccess
from api_test_kit.run import SuiteRun
from api_test_kit.suite_logging import SuiteLogger

__version__ = "1.0.0"

__all__ = [
    "ApiFailure",
    "ApiFixture",
    "ApiResponse",
    "ApiResult",
    "ApiSuccess",
    "EventLevel",
    "FixtureState",
    "PrimingCall",
    "ReportEvent",
    "ReportNode",
    "ReportRecorder",
    "SuiteLogger",
    "SuiteRun",
]
