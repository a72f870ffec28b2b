"""topicwalk - recursive topic exploration backed by an LLM."""

from .cache import ExplorationCache, make_cache_key
from .context import SensitivityPolicy, build_context
from .errors import (  # noqa: F401 -- public re-exports
    ConfigError,
    ExplorationError,
    InvalidTopicError,
    ParseError,
    TopicNotAllowedError,
    UpstreamError,
    UpstreamTimeoutError,
)
from .llm import LLMClient
from .models import (  # noqa: F401 -- public re-exports
    ExplorationRequest,
    ExplorationResult,
    PathEntry,
)
from .parsing import ResponseParser, parse_exploration
from .pipeline import ExplorationPipeline

__version__ = "0.1.0"

__all__ = [
    "ExplorationCache",
    "ExplorationPipeline",
    "LLMClient",
    "ResponseParser",
    "SensitivityPolicy",
    "build_context",
    "make_cache_key",
    "parse_exploration",
    "ConfigError",
    "ExplorationError",
    "InvalidTopicError",
    "ParseError",
    "TopicNotAllowedError",
    "UpstreamError",
    "UpstreamTimeoutError",
    "ExplorationRequest",
    "ExplorationResult",
    "PathEntry",
]
