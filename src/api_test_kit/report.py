"""HTML test report recorder.

One ReportRecorder collects the Info/Pass/Fail narrative of every fixture
that reports into the same directory and renders it as a single
`index.html`. Nodes are append-only; flush() re-renders everything recorded
so far and replaces the file, so it can be called after each fixture's
teardown and once more at the end of the run.
"""
from __future__ import annotations

import logging
import os
import tempfile
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, List, Tuple, Union

from jinja2 import Environment, PackageLoader, select_autoescape

from api_test_kit.errors import ReportError

logger = logging.getLogger(__name__)

REPORT_FILE_NAME = "index.html"
THEMES = ("dark", "standard")


class EventLevel(str, Enum):
    INFO = "Info"
    PASS = "Pass"
    FAIL = "Fail"


@dataclass(frozen=True)
class ReportEvent:
    level: EventLevel
    message: str
    timestamp: datetime


class ReportNode:
    """Per-fixture container of narrated events."""

    def __init__(self, name: str, lock: threading.Lock):
        self.name = name
        self.created_at = datetime.now(timezone.utc)
        self._events: List[ReportEvent] = []
        self._lock = lock

    def info(self, message: str) -> None:
        self._append(EventLevel.INFO, message)

    def pass_(self, message: str) -> None:
        self._append(EventLevel.PASS, message)

    def fail(self, message: str) -> None:
        self._append(EventLevel.FAIL, message)

    @property
    def events(self) -> Tuple[ReportEvent, ...]:
        with self._lock:
            return tuple(self._events)

    @property
    def status(self) -> EventLevel:
        """Fail if anything failed, Pass if anything passed, else Info."""
        levels = {event.level for event in self.events}
        if EventLevel.FAIL in levels:
            return EventLevel.FAIL
        if EventLevel.PASS in levels:
            return EventLevel.PASS
        return EventLevel.INFO

    def _append(self, level: EventLevel, message: str) -> None:
        event = ReportEvent(level=level, message=str(message), timestamp=datetime.now(timezone.utc))
        with self._lock:
            self._events.append(event)

    def __repr__(self) -> str:
        return f"ReportNode(name={self.name!r}, events={len(self._events)})"


class ReportRecorder:
    """Run-scoped recorder that persists all nodes as one HTML document."""

    def __init__(
        self,
        report_dir: Union[str, Path],
        document_title: str = "Playwright API Test Report",
        report_name: str = "Playwright API Tests",
        theme: str = "dark",
    ):
        self.report_dir = Path(report_dir)
        try:
            self.report_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ReportError(f"Cannot create report directory {self.report_dir}: {e}") from e

        if theme not in THEMES:
            raise ReportError(f"Unknown report theme '{theme}' (expected one of {', '.join(THEMES)})")

        self.document_title = document_title
        self.report_name = report_name
        self.theme = theme
        self.started_at = datetime.now(timezone.utc)
        self._nodes: List[ReportNode] = []
        self._lock = threading.Lock()
        self._flush_lock = threading.Lock()
        self._env = Environment(
            loader=PackageLoader("api_test_kit", "templates"),
            autoescape=select_autoescape(["html"]),
        )

    @property
    def report_path(self) -> Path:
        return self.report_dir / REPORT_FILE_NAME

    @property
    def nodes(self) -> Tuple[ReportNode, ...]:
        with self._lock:
            return tuple(self._nodes)

    def create_node(self, name: str) -> ReportNode:
        # Nodes share the recorder lock so a flush sees whole events only.
        node = ReportNode(name, self._lock)
        with self._lock:
            self._nodes.append(node)
        return node

    def summary(self) -> Dict[str, int]:
        counts = {level.value: 0 for level in EventLevel}
        for node in self.nodes:
            counts[node.status.value] += 1
        return counts

    def render(self) -> str:
        template = self._env.get_template("report.html")
        nodes = self.nodes
        return template.render(
            document_title=self.document_title,
            report_name=self.report_name,
            theme=self.theme,
            started_at=self.started_at,
            nodes=nodes,
            summary=self.summary(),
            total=len(nodes),
        )

    def flush(self) -> Path:
        """Write every node recorded so far, replacing the previous report.

        Render and replace are serialised across threads.
        """
        with self._flush_lock:
            html = self.render()
            fd, tmp_name = tempfile.mkstemp(dir=self.report_dir, prefix=".report-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(html)
                os.replace(tmp_name, self.report_path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        logger.debug(f"Report written: {self.report_path} ({len(self.nodes)} nodes)")
        return self.report_path
