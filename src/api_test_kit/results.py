"""Result types returned at the HTTP-call boundary.

A request either produced a response (ApiSuccess, whatever its status code)
or never got one (ApiFailure). Test code calls unwrap() to get the response;
an ApiFailure turns into a TransportError there, so transport problems fail
a test case exactly like an assertion does.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Union

from api_test_kit.errors import TransportError


@dataclass(frozen=True)
class ApiResponse:
    """Detached snapshot of a response; safe to use after the context is gone."""

    method: str
    url: str
    status: int
    status_text: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status <= 299

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.body.decode("utf-8"))


@dataclass(frozen=True)
class ApiSuccess:
    response: ApiResponse

    @property
    def is_success(self) -> bool:
        return True

    def unwrap(self) -> ApiResponse:
        return self.response


@dataclass(frozen=True)
class ApiFailure:
    method: str
    url: str
    error: BaseException

    @property
    def is_success(self) -> bool:
        return False

    def unwrap(self) -> ApiResponse:
        raise TransportError(self.method, self.url, str(self.error)) from self.error


ApiResult = Union[ApiSuccess, ApiFailure]
