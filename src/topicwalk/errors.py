"""Exception taxonomy for the exploration pipeline.

Everything raised on purpose by topicwalk derives from ``ExplorationError``;
its message is safe to show to the browser. Diagnostic payloads (upstream
bodies, raw model output) live on attributes and only reach server logs.
"""

from __future__ import annotations


class ExplorationError(Exception):
    """Base class for all pipeline failures."""


class ConfigError(ExplorationError):
    """Missing or malformed configuration."""


class InvalidTopicError(ExplorationError):
    """The request has no usable topic."""


class TopicNotAllowedError(ExplorationError):
    """The sensitivity policy rejected the topic."""


class UpstreamTimeoutError(ExplorationError, TimeoutError):
    """The completion API did not answer within the request timeout."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Upstream request timed out after {timeout:g}s")
        self.timeout = timeout


class UpstreamError(ExplorationError):
    """The completion API failed or answered with a non-2xx status."""

    def __init__(self, status: int | None, body: str = "") -> None:
        if status is None:
            super().__init__("Upstream API request failed")
        else:
            super().__init__(f"Upstream API call failed with status {status}")
        self.status = status
        self.body = body


class ParseError(ExplorationError):
    """The model output could not be turned into an ExplorationResult."""

    def __init__(self, reason: str, raw: str = "") -> None:
        super().__init__(f"Failed to parse exploration response: {reason}")
        self.reason = reason
        self.raw = raw
