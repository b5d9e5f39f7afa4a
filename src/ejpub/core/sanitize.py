"""Inline HTML sanitization for Editor.js inline-rich strings.

Editor.js inline tools emit a small set of tags (bold, italic, links, inline
code, marker, ...). Anything outside that allow-list is stripped before the
text is placed in the rendered page, and attributes are restricted even on
allowed tags, so an ``<a>`` keeps its ``href`` only for safe protocols and no
``on*`` handler ever survives.
"""

import logging
import threading
from typing import Any, Iterable

from bleach.sanitizer import Cleaner


logger = logging.getLogger(__name__)

INLINE_TAGS = frozenset({
    'a', 'b', 'strong', 'i', 'em', 'u', 's', 'code', 'mark', 'sup', 'sub', 'span', 'br',
})

INLINE_ATTRIBUTES: dict[str, list[str]] = {
    'a':    ['href', 'title', 'target', 'rel'],
    'span': ['class'],
}

SAFE_PROTOCOLS = frozenset({'http', 'https', 'mailto'})


class InlineSanitizer:
    """Allow-list sanitizer backed by bleach Cleaners.

    Disallowed tags are removed while their text content is kept (escaped).
    Comments are dropped. Output is idempotent: cleaning it again is a no-op.
    Cleaners hold parser state, so each thread gets its own.
    """

    def __init__(
        self,
        allowed_tags: Iterable[str] = INLINE_TAGS,
        attributes: dict[str, list[str]] = None,
        protocols: Iterable[str] = SAFE_PROTOCOLS,
        ):
        self.allowed_tags = frozenset(allowed_tags)
        self.attributes = INLINE_ATTRIBUTES if attributes is None else attributes
        self.protocols = frozenset(protocols)
        self._local = threading.local()

    def _cleaner(self, tags: frozenset[str]) -> Cleaner:
        """Return this thread's Cleaner for tags, building it on first use."""
        cache = getattr(self._local, 'cleaners', None)
        if cache is None:
            cache = self._local.cleaners = {}
        if tags not in cache:
            cache[tags] = Cleaner(
                tags=tags,
                attributes={t: names for t, names in self.attributes.items() if t in tags},
                protocols=self.protocols,
                strip=True,
                strip_comments=True,
            )
        return cache[tags]

    def sanitize(self, raw: Any, allowed_tags: Iterable[str] = None) -> str:
        """Return raw with every disallowed tag/attribute stripped; '' on None or failure."""
        if raw is None:
            return ''
        text = raw if isinstance(raw, str) else str(raw)
        if not text:
            return ''
        tags = self.allowed_tags if allowed_tags is None else frozenset(allowed_tags)
        try:
            return self._cleaner(tags).clean(text).strip()
        except Exception:
            logger.warning("Sanitizer failed; dropping field content", exc_info=True)
            return ''

    __call__ = sanitize


_default_sanitizer = InlineSanitizer()


def sanitize_inline(raw_html: Any, allowed_tags: Iterable[str] = INLINE_TAGS) -> str:
    """Strip raw_html down to allowed_tags using the shared default sanitizer."""
    return _default_sanitizer.sanitize(raw_html, allowed_tags)
