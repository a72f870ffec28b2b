"""Exploration pipeline: context -> cache -> LLM client -> parser -> cache.

Progress is reported on the caller's task, in order, through milestones
0..90. The caller reports completion (100) once it has delivered the
result; on failure the pipeline itself reports a final 100 with the error
message and re-raises.
"""

from __future__ import annotations

import logging
from typing import Protocol

from .cache import ExplorationCache, make_cache_key
from .context import ExplorationContext, SensitivityPolicy, build_context
from .errors import ExplorationError, InvalidTopicError, TopicNotAllowedError
from .models import ExplorationRequest, ExplorationResult
from .parsing import ResponseParser
from .progress import (
    ERROR_MESSAGE,
    Milestone,
    NoOpReporter,
    ProgressReporter,
    report_milestone,
)

logger = logging.getLogger(__name__)


class ExplorationClient(Protocol):
    async def fetch_exploration(self, topic: str, context: str, system_prompt: str) -> str:
        ...


class ExplorationPipeline:
    """Runs one exploration per call; the cache is the only shared state.

    Parameters
    ----------
    client:
        Anything with an async ``fetch_exploration`` (normally
        :class:`topicwalk.llm.LLMClient`).
    cache:
        Result cache; a fresh :class:`ExplorationCache` when omitted.
    parser:
        Response parser; the default strategy chain when omitted.
    policy:
        Sensitivity policy handed to the context builder.
    """

    def __init__(
        self,
        client: ExplorationClient,
        cache: ExplorationCache | None = None,
        parser: ResponseParser | None = None,
        policy: SensitivityPolicy | None = None,
    ) -> None:
        self.client = client
        self.cache = cache if cache is not None else ExplorationCache()
        self.parser = parser or ResponseParser()
        self.policy = policy

    async def explore(
        self,
        request: ExplorationRequest,
        reporter: ProgressReporter | None = None,
    ) -> ExplorationResult:
        """Produce the ExplorationResult for *request*."""
        reporter = reporter or NoOpReporter()
        report_milestone(reporter, Milestone.initial)
        try:
            return await self._explore(request, reporter)
        except ExplorationError as exc:
            logger.warning("Exploration of %r failed: %s", request.topic, exc)
            reporter.report(str(exc), 100)
            raise
        except Exception:
            logger.exception("Unexpected error exploring %r", request.topic)
            reporter.report(ERROR_MESSAGE, 100)
            raise

    async def _explore(
        self, request: ExplorationRequest, reporter: ProgressReporter
    ) -> ExplorationResult:
        topic = request.topic.strip()
        if not topic:
            raise InvalidTopicError("Topic is required")

        ctx = build_context(
            topic, request.parent_context, request.path_history, policy=self.policy
        )
        if not ctx.sensitivity.is_allowed:
            raise TopicNotAllowedError(f"Topic {topic!r} is not allowed")
        if ctx.sensitivity.flagged:
            logger.info(
                "Topic %r matched sensitivity keywords %s; adding disclaimer",
                topic,
                ", ".join(ctx.sensitivity.matched),
            )

        report_milestone(reporter, Milestone.checking)
        key = make_cache_key(topic, request.parent_context.strip(), request.path_titles)
        cached = self._cache_get(key)
        if cached is not None:
            logger.info("Cache hit for %r (depth %d)", topic, len(request.path_history))
            report_milestone(reporter, Milestone.finalizing)
            return cached

        report_milestone(reporter, Milestone.fetching)
        raw = await self.client.fetch_exploration(topic, ctx.context, ctx.system_prompt)

        report_milestone(reporter, Milestone.processing)
        result = self.parser.parse(raw)

        report_milestone(reporter, Milestone.analyzing)
        result = self._with_disclaimer(result, ctx)

        report_milestone(reporter, Milestone.finalizing)
        self._cache_set(key, result)
        return result

    @staticmethod
    def _with_disclaimer(result: ExplorationResult, ctx: ExplorationContext) -> ExplorationResult:
        if not ctx.sensitivity.disclaimer:
            return result
        return result.model_copy(update={"disclaimer": ctx.sensitivity.disclaimer})

    # Cache access is best-effort: a broken cache must never fail a request.

    def _cache_get(self, key: str) -> ExplorationResult | None:
        try:
            return self.cache.get(key)
        except Exception:  # noqa: BLE001
            logger.warning("Cache lookup failed; continuing without cache", exc_info=True)
            return None

    def _cache_set(self, key: str, result: ExplorationResult) -> None:
        try:
            self.cache.set(key, result)
        except Exception:  # noqa: BLE001
            logger.warning("Cache store failed; result not cached", exc_info=True)
