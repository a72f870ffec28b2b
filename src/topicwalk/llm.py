"""LLM client -- async wrapper around the Anthropic Messages API."""

from __future__ import annotations

import asyncio
import http.client
import json
import logging
import socket
import urllib.error
import urllib.request
from dataclasses import dataclass, field

from .errors import UpstreamError, UpstreamTimeoutError
from .prompts import build_exploration_prompt

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.anthropic.com/v1/messages"
DEFAULT_MODEL = "claude-3-5-haiku-20241022"
DEFAULT_API_VERSION = "2023-06-01"
DEFAULT_TIMEOUT_SECONDS = 30.0


def _error_message(body: str) -> str:
    """Pull ``error.message`` out of a provider error body, if present."""
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, TypeError):
        return ""
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        return str(data["error"].get("message") or "")
    return ""


@dataclass
class LLMClient:
    """Minimal async-friendly Messages API client using stdlib only.

    Each :meth:`fetch_exploration` call makes exactly one POST. There is no
    retry: a failure is surfaced to the caller as-is.
    """

    api_key: str
    api_url: str = DEFAULT_API_URL
    model: str = DEFAULT_MODEL
    max_tokens: int = 5000
    temperature: float = 0.9
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    api_version: str = DEFAULT_API_VERSION
    _stats_lock: asyncio.Lock = field(init=False, repr=False)
    _total_calls: int = field(default=0, init=False, repr=False)
    _failures: int = field(default=0, init=False, repr=False)

    def __post_init__(self) -> None:
        self._stats_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Request construction
    # ------------------------------------------------------------------

    def _json_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "anthropic-version": self.api_version,
            "x-api-key": self.api_key,
        }

    def build_request_body(self, topic: str, context: str, system_prompt: str) -> dict:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "system": system_prompt,
            "messages": [
                {"role": "user", "content": build_exploration_prompt(topic, context)},
            ],
        }

    # ------------------------------------------------------------------
    # Core call
    # ------------------------------------------------------------------

    def _post_sync(self, body: dict) -> str:
        """Blocking POST. Meant to be run via asyncio.to_thread."""
        req = urllib.request.Request(
            self.api_url,
            data=json.dumps(body).encode("utf-8"),
            headers=self._json_headers(),
            method="POST",
        )
        try:
            # Socket timeout matches the overall bound so the worker thread
            # is released even after the awaiting task gave up.
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                return resp.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as exc:
            error_body = exc.read().decode("utf-8", errors="replace")
            logger.error(
                "Messages API error (%s): %s",
                exc.code,
                _error_message(error_body) or error_body[:2000],
            )
            raise UpstreamError(exc.code, error_body) from exc
        except (socket.timeout, TimeoutError) as exc:
            raise UpstreamTimeoutError(self.timeout) from exc
        except urllib.error.URLError as exc:
            if isinstance(exc.reason, (socket.timeout, TimeoutError)):
                raise UpstreamTimeoutError(self.timeout) from exc
            logger.error("Messages API unreachable at %s: %s", self.api_url, exc.reason)
            raise UpstreamError(None, str(exc.reason)) from exc
        except (OSError, http.client.HTTPException) as exc:
            # Dropped connections and truncated bodies surface here, not as URLError.
            logger.error("Messages API connection failed: %r", exc)
            raise UpstreamError(None, str(exc)) from exc

    async def fetch_exploration(self, topic: str, context: str, system_prompt: str) -> str:
        """Request an exploration of *topic* and return the raw envelope text.

        Raises ``UpstreamTimeoutError`` when the call exceeds ``timeout`` and
        ``UpstreamError`` for transport failures and non-2xx statuses.
        Cancelling the awaiting task abandons the in-flight call.
        """
        body = self.build_request_body(topic, context, system_prompt)
        logger.info("Requesting exploration for %r (model=%s)", topic, self.model)
        try:
            raw = await asyncio.wait_for(
                asyncio.to_thread(self._post_sync, body),
                timeout=self.timeout,
            )
        except (UpstreamError, UpstreamTimeoutError):
            # UpstreamTimeoutError is itself a TimeoutError; keep it first.
            await self._record(failed=True)
            raise
        except asyncio.TimeoutError as exc:
            await self._record(failed=True)
            logger.warning("Messages API call for %r timed out after %ss", topic, self.timeout)
            raise UpstreamTimeoutError(self.timeout) from exc
        await self._record(failed=False)
        logger.debug("Messages API raw response for %r: %s", topic, raw)
        return raw

    async def _record(self, *, failed: bool) -> None:
        async with self._stats_lock:
            self._total_calls += 1
            if failed:
                self._failures += 1

    async def get_stats(self) -> dict[str, int]:
        """Get runtime call stats for the health endpoint."""
        async with self._stats_lock:
            return {
                "total_calls": self._total_calls,
                "failures": self._failures,
            }
