"""
Playwright request context
==========================

Thin owner of a Playwright instance plus one APIRequestContext bound to a
base URL. No browser is launched: APIRequestContext talks HTTP directly.

Usage:
    context = await PlaywrightRequestContext.start("https://reqres.in")
    try:
        result = await context.fetch("GET", "/api/users/2")
        response = result.unwrap()
    finally:
        await context.dispose()
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol

from playwright.async_api import APIRequestContext, Error as PlaywrightError, Playwright, async_playwright

from api_test_kit.results import ApiFailure, ApiResponse, ApiResult, ApiSuccess

logger = logging.getLogger(__name__)


class RequestContext(Protocol):
    """What a fixture needs from its request context."""

    base_url: str

    async def fetch(self, method: str, path: str, *, headers: Optional[Dict[str, str]] = None,
                    data: Any = None) -> ApiResult: ...

    async def dispose(self) -> None: ...


ContextFactory = Callable[..., Awaitable[RequestContext]]


class PlaywrightRequestContext:
    """APIRequestContext wrapper that converts every call into an ApiResult."""

    def __init__(self, playwright: Playwright, context: APIRequestContext, base_url: str):
        self.base_url = base_url
        self._playwright: Optional[Playwright] = playwright
        self._context: Optional[APIRequestContext] = context

    @classmethod
    async def start(
        cls,
        base_url: str,
        *,
        timeout_ms: Optional[float] = None,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> "PlaywrightRequestContext":
        """Start Playwright and open a request context for base_url.

        Args:
            base_url: Prefix for relative request paths
            timeout_ms: Per-request timeout (None = Playwright default, 0 = none)
            extra_headers: Headers sent with every request
        """
        playwright = await async_playwright().start()
        try:
            options: Dict[str, Any] = {"base_url": base_url}
            if timeout_ms is not None:
                options["timeout"] = timeout_ms
            headers = {k: v for k, v in (extra_headers or {}).items() if v}
            if headers:
                options["extra_http_headers"] = headers
            context = await playwright.request.new_context(**options)
        except BaseException:
            await playwright.stop()
            raise
        logger.debug(f"Request context opened for {base_url}")
        return cls(playwright, context, base_url)

    async def fetch(self, method: str, path: str, *, headers: Optional[Dict[str, str]] = None,
                    data: Any = None) -> ApiResult:
        if not self._context:
            raise RuntimeError("Request context already disposed")

        method = method.upper()
        try:
            response = await self._context.fetch(path, method=method, headers=headers, data=data)
            try:
                body = await response.body()
                snapshot = ApiResponse(
                    method=method,
                    url=response.url,
                    status=response.status,
                    status_text=response.status_text,
                    headers=dict(response.headers),
                    body=body,
                )
            finally:
                await response.dispose()
        except PlaywrightError as e:
            logger.debug(f"{method} {path} failed: {e}")
            return ApiFailure(method=method, url=f"{self.base_url}{path}", error=e)

        return ApiSuccess(snapshot)

    async def dispose(self) -> None:
        """Dispose the request context and stop Playwright."""
        context, self._context = self._context, None
        playwright, self._playwright = self._playwright, None
        try:
            if context:
                await context.dispose()
        finally:
            if playwright:
                await playwright.stop()
