"""Shared fixtures: sample model output and fake upstream clients."""

from __future__ import annotations

import asyncio
import json

import pytest

SAMPLE_XML = """\
<exploration>
  <summary>
    <text>Photosynthesis converts light energy into chemical energy.</text>
    <list>
      <item><text>Chlorophyll</text><description>Absorbs red and blue light</description></item>
      <item><text>Stomata</text></item>
    </list>
  </summary>
  <detailedSummary>
    <text>The light reactions feed the Calvin cycle.</text>
  </detailedSummary>
  <examples>
    <example>
      <title>C4 plants</title>
      <description>Maize concentrates CO2 in bundle sheath cells.</description>
      <significance>Higher efficiency in hot climates</significance>
      <context>Tropical grasses</context>
      <impact>Crop yields</impact>
    </example>
    <example>
      <title>CAM plants</title>
      <description>Cacti open stomata at night.</description>
    </example>
  </examples>
  <explorePaths>
    <path>
      <title>Light reactions</title>
      <description>Photosystems I and II</description>
      <concepts>Electron transport</concepts>
      <relevantTopics>Thylakoids</relevantTopics>
      <researchAreas>Artificial leaves</researchAreas>
      <keyQuestions>How is water split?</keyQuestions>
      <connections>Feeds ATP to the Calvin cycle</connections>
    </path>
    <path>
      <title>Calvin cycle</title>
      <description>Carbon fixation by RuBisCO</description>
    </path>
    <path>
      <title>Evolution of photosynthesis</title>
      <description>Cyanobacteria and the Great Oxidation Event</description>
    </path>
  </explorePaths>
  <connections>
    <connection id="resp">
      <title>Cellular respiration</title>
      <description>The reverse process</description>
    </connection>
  </connections>
</exploration>"""


def make_envelope(text: str) -> str:
    """Wrap generated text the way the Messages API does."""
    return json.dumps({
        "id": "msg_01",
        "type": "message",
        "role": "assistant",
        "content": [{"type": "text", "text": text}],
        "model": "claude-3-5-haiku-20241022",
        "stop_reason": "end_turn",
        "usage": {"input_tokens": 10, "output_tokens": 20},
    })


class FakeClient:
    """Minimal fake that mimics LLMClient.fetch_exploration."""

    def __init__(self, response: str | None = None, error: Exception | None = None, delay: float = 0.0):
        self.response = response if response is not None else make_envelope(SAMPLE_XML)
        self.error = error
        self.delay = delay
        self.calls: list[tuple[str, str, str]] = []

    async def fetch_exploration(self, topic: str, context: str, system_prompt: str) -> str:
        self.calls.append((topic, context, system_prompt))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def sample_xml() -> str:
    return SAMPLE_XML


@pytest.fixture
def sample_envelope() -> str:
    return make_envelope(SAMPLE_XML)


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()
