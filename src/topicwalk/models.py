"""Pydantic models for topicwalk's exploration pipeline."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    """Snake-case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Request side
# ---------------------------------------------------------------------------

class PathEntry(_CamelModel):
    """One prior navigation step (root first, current parent last)."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str = ""


class ExplorationRequest(_CamelModel):
    """A single exploration query as seen by the pipeline."""

    model_config = ConfigDict(frozen=True)

    topic: str
    parent_context: str = ""
    path_history: list[PathEntry] = Field(default_factory=list)

    @property
    def path_titles(self) -> list[str]:
        return [entry.title for entry in self.path_history]


# ---------------------------------------------------------------------------
# Result side
# ---------------------------------------------------------------------------

class ListItem(_CamelModel):
    """A bullet inside a TextBlock list."""

    text: str = ""
    description: str = ""


class TextBlock(_CamelModel):
    """A body paragraph plus zero or more grouped bullet lists."""

    text: str = ""
    lists: list[list[ListItem]] = Field(default_factory=list)


class Example(_CamelModel):
    title: str = ""
    description: str = ""
    significance: str = ""
    context: str = ""
    impact: str = ""


class ExplorePath(_CamelModel):
    """A suggested drill-down direction returned with a topic."""

    title: str = ""
    description: str = ""
    concepts: str = ""
    relevant_topics: str = ""
    research_areas: str = ""
    key_questions: str = ""
    connections: str = ""


class Connection(_CamelModel):
    id: str
    title: str = ""
    description: str = ""


class ExplorationResult(_CamelModel):
    """Typed result of one exploration.

    Every field that ends up on screen defaults to an empty string or an
    empty list, so renderers never need null checks.
    """

    model_config = ConfigDict(frozen=True)

    summary: TextBlock = Field(default_factory=TextBlock)
    detailed_summary: TextBlock = Field(default_factory=TextBlock)
    examples: list[Example] = Field(default_factory=list)
    explore_paths: list[ExplorePath] = Field(default_factory=list)
    connections: list[Connection] = Field(default_factory=list)
    disclaimer: str = ""

    def to_wire(self) -> dict:
        """Serialize with the camelCase keys the browser client expects."""
        return self.model_dump(by_alias=True)


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------

class ProgressEvent(BaseModel):
    """A transient lifecycle notification; never persisted."""

    message: str
    progress: int = Field(ge=0, le=100)
