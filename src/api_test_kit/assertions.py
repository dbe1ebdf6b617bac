"""Assertion helpers shared by the suites.

Failure messages carry a slice of the response body so the log and the
report show what the service actually returned.
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping

from api_test_kit.results import ApiResponse

BODY_EXCERPT = 500


def expect_status(response: ApiResponse, expected: int) -> None:
    assert response.status == expected, (
        f"{response.method} {response.url}: expected status {expected}, "
        f"got {response.status}: {response.text()[:BODY_EXCERPT]}"
    )


def expect_body_contains(response: ApiResponse, *fragments: str) -> None:
    body = response.text()
    for fragment in fragments:
        assert fragment in body, (
            f"{response.method} {response.url}: '{fragment}' not in body: {body[:BODY_EXCERPT]}"
        )


def expect_fields(obj: Any, fields: Iterable[str], where: str = "response") -> None:
    """Assert that a JSON object carries every named property."""
    assert isinstance(obj, Mapping), f"Expected a JSON object in {where}, got {type(obj).__name__}"
    for name in fields:
        assert name in obj, f"The '{name}' property is missing in {where}."
