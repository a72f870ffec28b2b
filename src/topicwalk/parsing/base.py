"""Base protocol for root-locating parse strategies."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .markup import Element

ROOT_TAG = "exploration"


@runtime_checkable
class ParseStrategy(Protocol):
    """Interface that every parse strategy must satisfy.

    Implementations:
      - DirectParse      (parse the whole sanitized text)
      - RootExcerptParse (regex out the root element, then parse)

    Strategies run in order; the first one returning an element wins.
    """

    name: str

    def locate_root(self, text: str) -> Element | None:
        """Return the ``<exploration>`` element, or ``None`` to let the next strategy try."""
        ...
