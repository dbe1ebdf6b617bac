"""Shared fixtures for the kit's unit tests."""
import uuid

import pytest

from api_test_kit.config import SuiteConfig, SuiteProfile
from api_test_kit.report import ReportRecorder
from api_test_kit.suite_logging import SuiteLogger


@pytest.fixture
def suite_config(tmp_path, monkeypatch):
    """SuiteConfig writing logs and reports below tmp_path."""
    monkeypatch.setenv("API_TARGET", "mock")
    monkeypatch.setenv("API_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("API_REPORT_DIR", str(tmp_path / "reports"))
    monkeypatch.setenv("API_LOG_LEVEL", "INFO")
    monkeypatch.setenv("API_REQUEST_TIMEOUT_MS", "1500")
    return SuiteConfig()


@pytest.fixture
def profile(tmp_path):
    return SuiteProfile(
        name="fake",
        base_url="http://api.test",
        report_dir=tmp_path / "reports" / "FakeReports",
        document_title="Fake API Test Report",
        report_name="Fake API Tests",
        node_name="ApiTestsFake",
        extra_headers={"x-api-key": "fake-key"},
    )


@pytest.fixture
def auth_profile(profile):
    return SuiteProfile(
        name="fake-auth",
        base_url=profile.base_url,
        report_dir=profile.report_dir,
        document_title=profile.document_title,
        report_name=profile.report_name,
        node_name="ApiTestsFakeAuth",
        auth_required=True,
        access_token="secret-token",
    )


@pytest.fixture
def recorder(profile):
    return ReportRecorder(profile.report_dir, profile.document_title, profile.report_name)


@pytest.fixture
def suite_logger():
    """Logger with a unique name so handlers never leak between tests."""
    logger = SuiteLogger(name=f"api_test_kit.tests.{uuid.uuid4().hex[:8]}")
    yield logger
    while logger.initialized:
        logger.flush_and_close()

