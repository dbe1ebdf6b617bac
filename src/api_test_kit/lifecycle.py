"""Per-class fixture lifecycle for API suites.

An ApiFixture owns one request context for the lifetime of a test class:

    UNINITIALIZED --setup()--> READY --case()--> RUNNING --> READY ... --teardown()--> DISPOSED

setup() optionally performs a priming call (typically "create") and caches
the id from its response for later test cases. Every test body runs inside
case(), which narrates it into the report node and logs failures before
re-raising them. teardown() releases the context, flushes the report and
releases the logger, each step isolated from the others' failures.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional, Union

from api_test_kit.config import DEFAULT_TIMEOUT_MS, SuiteProfile
from api_test_kit.config_defaults import require_setting
from api_test_kit.errors import FixtureSetupError, FixtureStateError
from api_test_kit.report import ReportNode, ReportRecorder
from api_test_kit.request_context import ContextFactory, PlaywrightRequestContext, RequestContext
from api_test_kit.results import ApiResponse, ApiResult
from api_test_kit.suite_logging import SuiteLogger

logger = logging.getLogger(__name__)

PASS_MESSAGE = "Test passed"
FAIL_MESSAGE = "Test failed"


class FixtureState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    RUNNING = "running"
    DISPOSED = "disposed"


@dataclass(frozen=True)
class PrimingCall:
    """Setup-time request whose response id is reused by later test cases."""

    method: str
    path: str
    body: Union[Dict[str, Any], Callable[[], Dict[str, Any]], None] = None
    expected_status: int = 201
    id_field: str = "id"
    description: str = "Starting priming request"

    def resolve_body(self) -> Optional[Dict[str, Any]]:
        return self.body() if callable(self.body) else self.body


class ApiFixture:
    """Request context, cached resource id and report node of one test class."""

    def __init__(
        self,
        profile: SuiteProfile,
        recorder: ReportRecorder,
        suite_logger: SuiteLogger,
        *,
        log_dir: Union[str, Path],
        log_level: str = "ERROR",
        name: Optional[str] = None,
        priming: Optional[PrimingCall] = None,
        timeout_ms: Optional[float] = DEFAULT_TIMEOUT_MS,
        context_factory: Optional[ContextFactory] = None,
    ):
        self.profile = profile
        self.name = name or profile.node_name
        self.priming = priming
        self.timeout_ms = timeout_ms
        self._recorder = recorder
        self._logger = suite_logger
        self._log_dir = log_dir
        self._log_level = log_level
        self._context_factory = context_factory or PlaywrightRequestContext.start
        self._context: Optional[RequestContext] = None
        self._logger_acquired = False
        self._cached_resource_id: Optional[int] = None
        self._state = FixtureState.UNINITIALIZED
        # The node exists from construction, like the report test it stands for.
        self.node: ReportNode = recorder.create_node(self.name)

    def __repr__(self) -> str:
        return f"ApiFixture(name={self.name!r}, state={self._state.value})"

    # ---- state -------------------------------------------------------------------
    @property
    def state(self) -> FixtureState:
        return self._state

    @property
    def cached_resource_id(self) -> Optional[int]:
        return self._cached_resource_id

    def _cache_resource_id(self, value: int) -> None:
        if self._cached_resource_id is not None:
            raise FixtureStateError(
                f"{self.name}: resource id already cached ({self._cached_resource_id})"
            )
        self._cached_resource_id = value

    def require_resource_id(self) -> int:
        if self._cached_resource_id is None:
            raise FixtureStateError(f"{self.name}: no resource id was cached during setup")
        return self._cached_resource_id

    # ---- lifecycle ---------------------------------------------------------------
    async def __aenter__(self) -> "ApiFixture":
        try:
            await self.setup()
        except BaseException:
            await self.teardown()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.teardown()

    async def setup(self) -> None:
        """Acquire the request context and run the priming call, if any."""
        if self._state is not FixtureState.UNINITIALIZED:
            raise FixtureStateError(f"{self.name}: setup() called in state {self._state.value}")

        try:
            if not self._logger_acquired:
                self._logger.initialize(self._log_dir, self._log_level)
                self._logger_acquired = True
            self._context = await self._context_factory(
                self.profile.base_url,
                timeout_ms=self.timeout_ms,
                extra_headers=dict(self.profile.extra_headers),
            )
            if self.priming is not None:
                await self._prime(self.priming)
        except Exception as e:
            self._logger.error(f"{self.name}: initialize failed", e)
            self.node.fail(FAIL_MESSAGE)
            if isinstance(e, FixtureSetupError):
                raise
            raise FixtureSetupError(f"{self.name}: setup failed: {e}") from e

        self._state = FixtureState.READY

    async def _prime(self, priming: PrimingCall) -> None:
        self.node.info(priming.description)
        result = await self.send(priming.method, priming.path, data=priming.resolve_body())
        response = result.unwrap()

        if response.status != priming.expected_status:
            raise FixtureSetupError(
                f"{self.name}: priming {priming.method} {priming.path} returned "
                f"{response.status}, expected {priming.expected_status}: {response.text()[:500]}"
            )
        self.node.pass_(PASS_MESSAGE)

        try:
            body = response.json()
        except ValueError as e:
            raise FixtureSetupError(f"{self.name}: priming response is not JSON") from e
        self.node.info("Deserializing response body")
        self.node.info(f"Body: {response.text()}")

        resource_id = body.get(priming.id_field) if isinstance(body, dict) else None
        # bool is an int subclass but never a valid id
        if not isinstance(resource_id, int) or isinstance(resource_id, bool):
            raise FixtureSetupError(
                f"{self.name}: failed to retrieve '{priming.id_field}' from priming response"
            )
        self._cache_resource_id(resource_id)
        self._logger.info(f"{self.name}: cached resource id {resource_id}")

    async def teardown(self) -> None:
        """Release the context, flush the report, release the logger.

        Safe after a failed or partial setup and safe to call twice.
        """
        if self._state is FixtureState.DISPOSED:
            return

        try:
            await self._release_context()
        except Exception as e:
            self._logger.error(f"{self.name}: failed to release request context", e)

        try:
            self._recorder.flush()
        except Exception as e:
            self._logger.error(f"{self.name}: failed to flush report", e)

        if self._logger_acquired:
            self._logger_acquired = False
            try:
                self._logger.flush_and_close()
            except Exception as e:
                logger.error(f"{self.name}: failed to close suite logger: {e}")

        self._state = FixtureState.DISPOSED

    async def _release_context(self) -> None:
        context, self._context = self._context, None
        if context is not None:
            await context.dispose()

    # ---- test cases --------------------------------------------------------------
    @asynccontextmanager
    async def case(self, description: str) -> AsyncIterator["ApiFixture"]:
        """Run one test body: Info before, Pass after, Fail + log on error."""
        if self._state is not FixtureState.READY:
            raise FixtureStateError(
                f"{self.name}: cannot run '{description}' in state {self._state.value}"
            )

        self._state = FixtureState.RUNNING
        self.node.info(description)
        try:
            yield self
        except Exception as e:
            self._logger.error(f"{self.name}: {description}: test failed", e)
            self.node.fail(f"{FAIL_MESSAGE}: {e}")
            raise
        else:
            self.node.pass_(PASS_MESSAGE)
        finally:
            self._state = FixtureState.READY

    async def run_case(self, description: str, body: Callable[["ApiFixture"], Awaitable[Any]]) -> Any:
        async with self.case(description):
            return await body(self)

    def record_body(self, response: ApiResponse) -> None:
        """Narrate a JSON response body into the report node."""
        self.node.info("Deserializing response body")
        self.node.info(f"Body: {response.text()}")

    # ---- requests ----------------------------------------------------------------
    def auth_headers(self) -> Dict[str, str]:
        token = self.profile.access_token or require_setting("ACCESS_TOKEN")
        return {"Authorization": f"Bearer {token}"}

    async def send(
        self,
        method: str,
        path: str,
        *,
        data: Any = None,
        headers: Optional[Dict[str, str]] = None,
        authenticated: Optional[bool] = None,
    ) -> ApiResult:
        """Issue one request on the fixture's context.

        authenticated=None follows the profile's auth_required flag.
        """
        if self._context is None:
            raise FixtureStateError(f"{self.name}: no request context (state {self._state.value})")

        merged: Dict[str, str] = {}
        if self.profile.auth_required if authenticated is None else authenticated:
            merged.update(self.auth_headers())
        if headers:
            merged.update(headers)

        logger.debug(f"{self.name}: {method.upper()} {path}")
        return await self._context.fetch(method, path, headers=merged or None, data=data)

    async def get(self, path: str, **kwargs) -> ApiResult:
        return await self.send("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> ApiResult:
        return await self.send("POST", path, **kwargs)

    async def put(self, path: str, **kwargs) -> ApiResult:
        return await self.send("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs) -> ApiResult:
        return await self.send("DELETE", path, **kwargs)
