"""Free-text sanitization applied before records are persisted.

Admins paste content from word processors and web pages, which carries
inline styles, <font>/<span> wrappers and scripts. Stored text must render the
same in the mobile app and the admin console, so markup is reduced before it
reaches the store.
"""

from __future__ import annotations

import html
from typing import ClassVar

import nh3


class TextSanitizer:
    """Reduce user-supplied text to portable content.

    ``plain`` strips every tag and returns unescaped text (titles, names,
    summaries). ``rich`` keeps a handful of structural tags and drops
    attributes such as ``style`` and ``class``.
    """

    RICH_TAGS: ClassVar[set[str]] = {
        "p", "br", "strong", "b", "em", "i", "u", "ul", "ol", "li", "a", "blockquote",
    }
    RICH_ATTRIBUTES: ClassVar[dict[str, set[str]]] = {"a": {"href"}}

    @classmethod
    def plain(cls, value: str) -> str:
        if not value:
            return value
        cleaned = nh3.clean(value, tags=set(), attributes={})
        return html.unescape(cleaned).strip()

    @classmethod
    def rich(cls, value: str) -> str:
        if not value:
            return value
        return nh3.clean(
            value,
            tags=cls.RICH_TAGS,
            attributes=cls.RICH_ATTRIBUTES,
        ).strip()
