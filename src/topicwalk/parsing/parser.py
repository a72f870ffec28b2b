"""Response parser -- Messages API envelope to ExplorationResult.

Model output is usually, but not always, well-formed XML. The parser
decodes the JSON envelope, repairs the embedded markup, then walks an
ordered chain of strategies until one yields the ``<exploration>`` root.
The root is projected field by field with empty-string defaults.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence

from ..errors import ParseError
from ..models import (
    Connection,
    Example,
    ExplorationResult,
    ExplorePath,
    ListItem,
    TextBlock,
)
from .base import ParseStrategy
from .markup import Element, first_text, normalize_list, sanitize_markup
from .strategies import DEFAULT_STRATEGIES

logger = logging.getLogger(__name__)


def extract_generated_text(raw: str) -> str:
    """Return ``content[0].text`` from a Messages API envelope."""
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as exc:
        logger.warning("Response envelope is not valid JSON: %s", exc)
        raise ParseError("no content", raw=str(raw)) from exc

    content = data.get("content") if isinstance(data, dict) else None
    first = content[0] if isinstance(content, list) and content else None
    text = first.get("text") if isinstance(first, dict) else None
    if not isinstance(text, str) or not text.strip():
        logger.warning("Response envelope has no generated text")
        raise ParseError("no content", raw=raw)
    return text


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------

def _field(element: Element, tag: str) -> str:
    return first_text(element.elements(tag))


def _group(root: Element, container: str, item: str) -> list[Element]:
    """All *item* elements under every *container* child, in document order."""
    found: list[Element] = []
    for block in normalize_list(root.elements(container)):
        found.extend(block.elements(item))
    return found


def _list_item(item: Element) -> ListItem:
    text_el = item.first("text")
    text = text_el.full_text if text_el is not None else item.text
    return ListItem(text=text, description=_field(item, "description"))


def _text_block(element: Element | None) -> TextBlock:
    if element is None:
        return TextBlock()
    text_el = element.first("text")
    body = text_el.full_text if text_el is not None else element.text

    list_elements = element.elements("list")
    for wrapper in element.elements("lists"):
        list_elements.extend(wrapper.elements("list"))

    lists: list[list[ListItem]] = []
    for list_el in list_elements:
        items = [_list_item(i) for i in list_el.elements("item")]
        if items:
            lists.append(items)
    return TextBlock(text=body, lists=lists)


def _flat_fields(model: type, element: Element) -> dict[str, str]:
    # relevant_topics <- <relevantTopics>, lower-cased by the markup layer.
    return {name: _field(element, name.replace("_", "")) for name in model.model_fields}


def _connection(element: Element, position: int) -> Connection:
    conn_id = element.attrs.get("id") or _field(element, "id") or f"connection-{position}"
    return Connection(
        id=conn_id,
        title=_field(element, "title"),
        description=_field(element, "description"),
    )


def project_result(root: Element) -> ExplorationResult:
    """Project an ``<exploration>`` element onto an ExplorationResult."""
    return ExplorationResult(
        summary=_text_block(root.first("summary")),
        detailed_summary=_text_block(root.first("detailedsummary")),
        examples=[Example(**_flat_fields(Example, el)) for el in _group(root, "examples", "example")],
        explore_paths=[
            ExplorePath(**_flat_fields(ExplorePath, el))
            for el in _group(root, "explorepaths", "path")
        ],
        connections=[
            _connection(el, i)
            for i, el in enumerate(_group(root, "connections", "connection"), start=1)
        ],
    )


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class ResponseParser:
    """Turns raw Messages API responses into ExplorationResults.

    Parameters
    ----------
    strategies:
        Ordered root-locating strategies; the first one that returns an
        element wins. Defaults to direct parse, then root-excerpt parse.
    """

    def __init__(self, strategies: Sequence[ParseStrategy] | None = None) -> None:
        self.strategies: tuple[ParseStrategy, ...] = tuple(
            strategies if strategies is not None else DEFAULT_STRATEGIES
        )

    def parse(self, raw: str) -> ExplorationResult:
        """Parse a full response envelope. Raises ParseError."""
        return self.parse_text(extract_generated_text(raw), raw=raw)

    def parse_text(self, text: str, *, raw: str = "") -> ExplorationResult:
        """Parse the generated text itself (already out of the envelope)."""
        diagnostics = raw or text
        sanitized = sanitize_markup(text)

        root = self._locate_root(sanitized)
        if root is None:
            logger.warning("No valid exploration structure; raw payload: %s", diagnostics[:4000])
            raise ParseError("no valid structure", raw=diagnostics)

        result = project_result(root)
        if not result.summary.text and not result.detailed_summary.text:
            logger.warning("Exploration has no summary text; raw payload: %s", diagnostics[:4000])
            raise ParseError("missing required content", raw=diagnostics)

        logger.debug(
            "Parsed exploration: %d examples, %d explore paths, %d connections",
            len(result.examples),
            len(result.explore_paths),
            len(result.connections),
        )
        return result

    def _locate_root(self, text: str) -> Element | None:
        for strategy in self.strategies:
            root = strategy.locate_root(text)
            if root is not None:
                logger.debug("Exploration root located by %s strategy", strategy.name)
                return root
        return None


_DEFAULT_PARSER = ResponseParser()


def parse_exploration(raw: str) -> ExplorationResult:
    """Parse a Messages API envelope with the default strategy chain."""
    return _DEFAULT_PARSER.parse(raw)
