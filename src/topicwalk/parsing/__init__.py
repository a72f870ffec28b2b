"""Response parsing -- envelope decoding, markup repair and projection."""

from __future__ import annotations

from .base import ROOT_TAG, ParseStrategy
from .markup import Element, Text, normalize_list, parse_markup, sanitize_markup
from .parser import (
    ResponseParser,
    extract_generated_text,
    parse_exploration,
    project_result,
)
from .strategies import DEFAULT_STRATEGIES, DirectParse, RootExcerptParse

__all__ = [
    "DEFAULT_STRATEGIES",
    "DirectParse",
    "Element",
    "ParseStrategy",
    "ROOT_TAG",
    "ResponseParser",
    "RootExcerptParse",
    "Text",
    "extract_generated_text",
    "normalize_list",
    "parse_exploration",
    "parse_markup",
    "project_result",
    "sanitize_markup",
]
