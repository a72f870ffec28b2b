"""Context builder -- keeps recursive drill-downs anchored to the root topic.

Given the current topic, an optional parent focus and the ordered path
history, :func:`build_context` renders the context block sent with the
user prompt. Root-level queries get no context at all.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from .models import PathEntry
from .prompts import PATH_DIRECTIVES, SYSTEM_PROMPT

DEFAULT_SENSITIVE_KEYWORDS = (
    "suicide",
    "self-harm",
    "self harm",
    "overdose",
    "weapon",
    "explosive",
    "bomb",
    "terroris",
    "extremis",
    "genocide",
)

DEFAULT_DISCLAIMER = (
    "Note: this topic touches on sensitive subject matter. Keep the exploration "
    "factual, educational and balanced, avoid operational detail that could "
    "enable harm, and point to professional resources where appropriate."
)


def _always_allow(topic: str) -> bool:
    return True


@dataclass(frozen=True)
class SensitivityCheck:
    matched: tuple[str, ...] = ()
    is_allowed: bool = True
    disclaimer: str = ""

    @property
    def flagged(self) -> bool:
        return bool(self.matched)


@dataclass(frozen=True)
class SensitivityPolicy:
    """Keyword caution list plus a pluggable allow predicate.

    A keyword match never blocks on its own; it only adds the disclaimer.
    Blocking is left to *allow*, which accepts every topic by default.
    """

    keywords: tuple[str, ...] = DEFAULT_SENSITIVE_KEYWORDS
    disclaimer: str = DEFAULT_DISCLAIMER
    allow: Callable[[str], bool] = field(default=_always_allow, compare=False)

    def check(self, topic: str) -> SensitivityCheck:
        lowered = topic.lower()
        matched = tuple(k for k in self.keywords if k.lower() in lowered)
        return SensitivityCheck(
            matched=matched,
            is_allowed=bool(self.allow(topic)),
            disclaimer=self.disclaimer if matched else "",
        )


DEFAULT_POLICY = SensitivityPolicy()


@dataclass(frozen=True)
class ExplorationContext:
    """Everything the LLM client needs besides the topic itself."""

    context: str
    system_prompt: str
    sensitivity: SensitivityCheck = field(default_factory=SensitivityCheck)


def _relationship(index: int, path_history: Sequence[PathEntry]) -> str:
    if index == 0:
        return "Root topic"
    return f"Subtopic of {path_history[index - 1].title}"


def _render_path(path_history: Sequence[PathEntry]) -> list[str]:
    lines = ["Exploration path (root first):"]
    for i, entry in enumerate(path_history):
        line = f"{i + 1}. {entry.title} ({_relationship(i, path_history)})"
        if entry.description:
            line += f": {entry.description}"
        lines.append(line)
    return lines


def build_context(
    topic: str,
    parent_context: str = "",
    path_history: Sequence[PathEntry] = (),
    *,
    policy: SensitivityPolicy | None = None,
) -> ExplorationContext:
    """Build the context block and system instruction for one request.

    Parameters
    ----------
    topic:
        The topic being explored.
    parent_context:
        Focus text handed down from the parent (e.g. the description of the
        explore path that was clicked). Empty for root queries.
    path_history:
        Ordered navigation chain, root first.
    policy:
        Sensitivity policy; :data:`DEFAULT_POLICY` when omitted.
    """
    sensitivity = (policy or DEFAULT_POLICY).check(topic)
    parent_context = parent_context.strip()

    sections: list[str] = []
    if path_history or parent_context:
        root = path_history[0].title if path_history else topic
        lines: list[str] = []
        if path_history:
            lines.extend(_render_path(path_history))
        if parent_context:
            lines.append(f"Parent focus: {parent_context}")
        lines.append(f'Current topic: {topic} (within the universe of "{root}")')
        lines.append("")
        lines.append("Directives:")
        for i, directive in enumerate(PATH_DIRECTIVES, start=1):
            lines.append(f"{i}. {directive.format(root=root)}")
        sections.append("\n".join(lines))

    if sensitivity.disclaimer:
        sections.append(sensitivity.disclaimer)

    return ExplorationContext(
        context="\n\n".join(sections),
        system_prompt=SYSTEM_PROMPT,
        sensitivity=sensitivity,
    )
