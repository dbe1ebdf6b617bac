"""Shared configuration for the API suites.

Settings come from the environment or `.env`/`.env.defaults` (see
`config_defaults`). `API_TARGET` selects what the suites talk to:
- mock (default): the Flask mock in api_tests/mock_rest_api.py
- live: the public reqres.in and gorest.co.in services
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Literal, Optional

from api_test_kit.config_defaults import get_setting
from api_test_kit.errors import ConfigError

ApiTarget = Literal["mock", "live"]

DEFAULT_TIMEOUT_MS = 30000.0


@dataclass(frozen=True)
class SuiteProfile:
    """Everything a fixture needs to talk to one API and report on it."""

    name: str
    base_url: str
    report_dir: Path
    document_title: str
    report_name: str
    node_name: str
    auth_required: bool = False
    access_token: Optional[str] = None
    extra_headers: Dict[str, str] = field(default_factory=dict)

    def with_base_url(self, base_url: str) -> "SuiteProfile":
        return dataclasses.replace(self, base_url=base_url)

    def with_access_token(self, token: str) -> "SuiteProfile":
        return dataclasses.replace(self, access_token=token)


class SuiteConfig:
    """Configuration resolved once per process.

    Relative directories are resolved against the working directory at
    load time, which is the pytest rootdir in normal runs.
    """

    def __init__(self) -> None:
        target = (get_setting("API_TARGET", "mock") or "mock").lower()
        if target not in ("mock", "live"):
            raise ConfigError(f"API_TARGET must be 'mock' or 'live', got '{target}'")
        self.target: ApiTarget = target  # type: ignore[assignment]

        self.request_timeout_ms: float = _parse_timeout(
            get_setting("API_REQUEST_TIMEOUT_MS", str(DEFAULT_TIMEOUT_MS))
        )

        self.log_dir: Path = _resolve_dir(get_setting("API_LOG_DIR", "TestLogs"))
        self.log_level: str = (get_setting("API_LOG_LEVEL", "ERROR") or "ERROR").upper()

        self.report_root: Path = _resolve_dir(get_setting("API_REPORT_DIR", "TestReports"))
        self.report_theme: str = (get_setting("API_REPORT_THEME", "dark") or "dark").lower()

        reqres = SuiteProfile(
            name="reqres",
            base_url=get_setting("REQRES_BASE_URL", "https://reqres.in") or "https://reqres.in",
            report_dir=self.report_root / "ReqresTestReports",
            document_title="Reqres Playwright API Test Report",
            report_name="Reqres Playwright API Tests",
            node_name="ApiTestsReqres",
            extra_headers={"x-api-key": get_setting("REQRES_API_KEY", "reqres-free-v1") or ""},
        )
        gorest = SuiteProfile(
            name="gorest",
            base_url=get_setting("GOREST_BASE_URL", "https://gorest.co.in") or "https://gorest.co.in",
            report_dir=self.report_root / "GORestTestReports",
            document_title="GORest Playwright API Test Report",
            report_name="GORest Playwright API Tests",
            node_name="ApiTestsGoRest",
            auth_required=True,
        )
        self._profiles: Dict[str, SuiteProfile] = {reqres.name: reqres, gorest.name: gorest}

    @property
    def is_live(self) -> bool:
        return self.target == "live"

    def profiles(self) -> List[SuiteProfile]:
        return list(self._profiles.values())

    def profile(self, name: str) -> SuiteProfile:
        try:
            return self._profiles[name]
        except KeyError:
            raise ConfigError(f"Unknown suite profile '{name}'") from None


def _resolve_dir(value: Optional[str]) -> Path:
    path = Path(value or ".").expanduser()
    if not path.is_absolute():
        path = Path.cwd() / path
    return path


def _parse_timeout(value: Optional[str]) -> float:
    try:
        timeout = float(value) if value else DEFAULT_TIMEOUT_MS
    except ValueError:
        raise ConfigError(f"API_REQUEST_TIMEOUT_MS must be a number, got '{value}'") from None
    if timeout < 0:
        raise ConfigError("API_REQUEST_TIMEOUT_MS must not be negative")
    return timeout


# Singleton instance - initialized on first import
settings = SuiteConfig()
