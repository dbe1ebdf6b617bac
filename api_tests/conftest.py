"""
Fixtures for the Reqres and GoRest suites.

Provides:
- One SuiteRun per session (shared suite logger + report recorders)
- Target selection: the Flask mock (API_TARGET=mock) or the public services
- A factory that opens class-scoped ApiFixtures inside the class event loop
"""
import threading
import time
from contextlib import asynccontextmanager

import httpx
import pytest
from werkzeug.serving import make_server

from api_test_kit.config import settings
from api_test_kit.config_defaults import get_setting
from api_test_kit.run import SuiteRun
from api_tests.mock_rest_api import MOCK_ACCESS_TOKEN, create_mock_api_app, reset_mock_state


# ============================================================================
# Mock API server
# ============================================================================

class MockServer:
    """Serve the mock API app from a background thread on a free port."""

    def __init__(self, host='127.0.0.1', port=0):
        self.host = host
        self.app = create_mock_api_app()
        self.server = make_server(host, port, self.app, threaded=True)
        self.port = self.server.server_port
        self.thread = None

    def start(self, ready_timeout=10.0):
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()
        self._wait_ready(ready_timeout)

    def _wait_ready(self, timeout):
        deadline = time.monotonic() + timeout
        with httpx.Client(base_url=self.url, timeout=1.0) as client:
            while True:
                try:
                    if client.get('/health').status_code == 200:
                        return
                except httpx.TransportError:
                    pass
                if time.monotonic() > deadline:
                    raise RuntimeError(f"Mock API did not come up on {self.url}")
                time.sleep(0.05)

    def stop(self):
        self.server.shutdown()
        if self.thread:
            self.thread.join(timeout=5)

    @property
    def url(self):
        return f"http://{self.host}:{self.port}"


@pytest.fixture(scope='session')
def mock_api_server():
    """Running mock API for the whole session."""
    reset_mock_state()
    server = MockServer()
    server.start()
    print(f"\n[MOCK] Reqres/GoRest mock listening on {server.url}")

    yield server

    server.stop()
    reset_mock_state()


# ============================================================================
# Profiles and run services
# ============================================================================

@pytest.fixture(scope='session')
def api_profiles(request):
    """Suite profiles for the selected API_TARGET, keyed by name."""
    profiles = {profile.name: profile for profile in settings.profiles()}
    if settings.is_live:
        return profiles

    server = request.getfixturevalue('mock_api_server')
    return {
        name: profile.with_base_url(server.url).with_access_token(MOCK_ACCESS_TOKEN)
        for name, profile in profiles.items()
    }


@pytest.fixture(scope='session')
def suite_run():
    """Shared logger + recorders; the final report flush runs after the last test."""
    run = SuiteRun(settings)
    yield run
    run.close()


@pytest.fixture(scope='session')
def require_access_token():
    """Skip live authenticated suites when no ACCESS_TOKEN is configured."""
    def _check(profile):
        if profile.auth_required and not (profile.access_token or get_setting('ACCESS_TOKEN')):
            pytest.skip("ACCESS_TOKEN not set - add it to .env to run the live GoRest suite")
    return _check


@pytest.fixture(scope='session')
def open_api_fixture(suite_run, require_access_token):
    """Factory: `async with open_api_fixture(profile, ...) as fixture:`."""
    @asynccontextmanager
    async def _open(profile, **kwargs):
        require_access_token(profile)
        async with suite_run.fixture(profile, **kwargs) as fixture:
            yield fixture
    return _open
