"""Built-in parse strategies, tried in order by the response parser."""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET

from .base import ROOT_TAG, ParseStrategy
from .markup import Element, parse_markup

logger = logging.getLogger(__name__)

_DECLARATION_RE = re.compile(r"^\s*<\?xml[^>]*\?>", re.IGNORECASE)
_ROOT_EXCERPT_RE = re.compile(
    r"(?:<\?xml[^>]*\?>\s*)?<exploration\b[^>]*>.*</exploration\s*>",
    re.IGNORECASE | re.DOTALL,
)


class DirectParse:
    """Parse the full text; succeed if it is (or contains) the root element."""

    name = "direct"

    def locate_root(self, text: str) -> Element | None:
        try:
            tree = parse_markup(text)
        except (ET.ParseError, ValueError) as exc:
            logger.debug("Direct markup parse failed: %s", exc)
            return None
        return tree.find(ROOT_TAG)


class RootExcerptParse:
    """Cut the outermost root element out of surrounding prose and parse it.

    Handles leading ``<?xml ...?>`` declarations, chatty preambles and
    markdown fences around the payload.
    """

    name = "root-excerpt"

    def locate_root(self, text: str) -> Element | None:
        match = _ROOT_EXCERPT_RE.search(text)
        if match is None:
            logger.debug("No <%s> element found in response text", ROOT_TAG)
            return None
        excerpt = _DECLARATION_RE.sub("", match.group(0), count=1)
        try:
            tree = parse_markup(excerpt)
        except (ET.ParseError, ValueError) as exc:
            logger.debug("Root excerpt parse failed: %s", exc)
            return None
        return tree if tree.tag == ROOT_TAG else None


DEFAULT_STRATEGIES: tuple[ParseStrategy, ...] = (DirectParse(), RootExcerptParse())
