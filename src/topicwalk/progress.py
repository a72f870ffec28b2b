"""Progress reporting sinks for the exploration pipeline.

The pipeline calls ``report(message, progress)`` at fixed milestones. It
does not know whether anyone is listening: the web endpoint passes a
:class:`QueueProgressReporter` that feeds the SSE stream, the CLI passes a
console reporter, and everything else gets :class:`NoOpReporter`.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Protocol, runtime_checkable

from .models import ProgressEvent

logger = logging.getLogger(__name__)


class Milestone(Enum):
    initial = 0
    checking = 20
    fetching = 40
    processing = 60
    analyzing = 80
    finalizing = 90
    complete = 100


LOADING_MESSAGES = {
    Milestone.initial: "Initiating exploration...",
    Milestone.checking: "Checking for earlier explorations...",
    Milestone.fetching: "Gathering knowledge...",
    Milestone.processing: "Processing insights...",
    Milestone.analyzing: "Analyzing connections...",
    Milestone.finalizing: "Organizing results...",
    Milestone.complete: "Exploration complete!",
}

ERROR_MESSAGE = "Error occurred during exploration"


@runtime_checkable
class ProgressReporter(Protocol):
    def report(self, message: str, progress: int) -> None:
        ...


def clamp_progress(progress: int) -> int:
    return max(0, min(100, int(progress)))


def report_milestone(reporter: ProgressReporter, milestone: Milestone) -> None:
    """Report *milestone* with its canonical message."""
    reporter.report(LOADING_MESSAGES[milestone], milestone.value)


class NoOpReporter:
    """Drop-in reporter that does nothing; used when no sink is supplied."""

    def report(self, message: str, progress: int) -> None:
        pass


class QueueProgressReporter:
    """Pushes ``progress`` events onto an asyncio queue for SSE streaming.

    Parameters
    ----------
    queue:
        The event queue drained by the streaming endpoint.
    """

    def __init__(self, queue: asyncio.Queue) -> None:
        self.queue = queue

    def report(self, message: str, progress: int) -> None:
        event = ProgressEvent(message=message, progress=clamp_progress(progress))
        try:
            self.queue.put_nowait({"type": "progress", **event.model_dump()})
        except asyncio.QueueFull:
            logger.debug("Event queue full; dropping progress event %r", message)


class RecordingReporter:
    """Keeps every event in memory; handy for tests and batch callers."""

    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []

    def report(self, message: str, progress: int) -> None:
        self.events.append(ProgressEvent(message=message, progress=clamp_progress(progress)))

    @property
    def progress_values(self) -> list[int]:
        return [e.progress for e in self.events]
