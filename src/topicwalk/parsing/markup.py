"""Tagged markup tree plus the repairs applied before parsing.

Model output is parsed with :mod:`xml.etree.ElementTree` and converted to a
small immutable tree of :class:`Element` and :class:`Text` nodes. Tag and
attribute names are lower-cased so lookups are case-insensitive.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any, Union

# '&' that does not start one of the five XML entities or a character reference.
_BARE_AMP_RE = re.compile(r"&(?!(?:amp|lt|gt|quot|apos|#[0-9]+|#[xX][0-9a-fA-F]+);)")
# Control characters other than tab, LF and CR.
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_TAG_NAME_RE = re.compile(r"(</?)([A-Za-z_][\w.\-]*)")


def sanitize_markup(text: str) -> str:
    """Escape bare ampersands and strip control characters.

    Idempotent: sanitizing already-sanitized text returns it unchanged.
    """
    text = _CONTROL_RE.sub("", text)
    return _BARE_AMP_RE.sub("&amp;", text)


def _lower_tag_names(text: str) -> str:
    return _TAG_NAME_RE.sub(lambda m: m.group(1) + m.group(2).lower(), text)


def normalize_list(value: Any) -> list:
    """Treat a missing value, a single value and a sequence uniformly."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


@dataclass(frozen=True)
class Text:
    """A run of character data."""

    value: str


@dataclass(frozen=True)
class Element:
    """A markup element with its children in document order."""

    tag: str
    attrs: dict[str, str] = field(default_factory=dict, hash=False)
    children: tuple[Node, ...] = ()

    def elements(self, tag: str | None = None) -> list[Element]:
        """Direct child elements, optionally filtered by (lower-case) tag."""
        return [
            c for c in self.children
            if isinstance(c, Element) and (tag is None or c.tag == tag)
        ]

    def first(self, tag: str) -> Element | None:
        for child in self.children:
            if isinstance(child, Element) and child.tag == tag:
                return child
        return None

    def iter(self) -> Iterator[Element]:
        """Depth-first walk over this element and all descendants."""
        stack = [self]
        while stack:
            el = stack.pop()
            yield el
            stack.extend(reversed(el.elements()))

    def find(self, tag: str) -> Element | None:
        return next((el for el in self.iter() if el.tag == tag), None)

    @property
    def text(self) -> str:
        """Direct character data only, stripped."""
        return "".join(c.value for c in self.children if isinstance(c, Text)).strip()

    @property
    def full_text(self) -> str:
        """All character data below this element, stripped."""
        parts: list[str] = []
        stack: list[Node] = list(reversed(self.children))
        while stack:
            node = stack.pop()
            if isinstance(node, Text):
                parts.append(node.value)
            else:
                stack.extend(reversed(node.children))
        return "".join(parts).strip()


Node = Union[Element, Text]


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1].lower()


def _head(el: ET.Element) -> list[Node]:
    return [Text(el.text)] if el.text else []


def _convert(root: ET.Element) -> Element:
    # Iterative: model output may nest deeper than the recursion limit.
    stack: list[tuple[ET.Element, list[Node], Iterator[ET.Element]]] = [
        (root, _head(root), iter(root))
    ]
    while True:
        el, children, pending = stack[-1]
        child = next(pending, None)
        if child is None:
            stack.pop()
            node = Element(
                tag=_local_name(el.tag),
                attrs={_local_name(k): v for k, v in el.attrib.items()},
                children=tuple(children),
            )
            if not stack:
                return node
            siblings = stack[-1][1]
            siblings.append(node)
            if el.tail:
                siblings.append(Text(el.tail))
            continue
        if not isinstance(child.tag, str):
            # Comments and processing instructions.
            if child.tail:
                children.append(Text(child.tail))
            continue
        stack.append((child, _head(child), iter(child)))


def parse_markup(text: str) -> Element:
    """Parse *text* into a tagged tree.

    Raises ``xml.etree.ElementTree.ParseError`` when the text is not
    well-formed after tag names are lower-cased.
    """
    return _convert(ET.fromstring(_lower_tag_names(text.strip())))


def first_text(value: Element | Sequence[Element] | None) -> str:
    """Full text of the first element in *value*, or ``""``."""
    for el in normalize_list(value):
        return el.full_text
    return ""
