"""Sample Editor.js articles for exercising full renders and teasers"""

import html
import random
import time
from typing import Any


ADJECTIVES = ['Amazing', 'Brilliant', 'Curious', 'Delightful', 'Epic', 'Fresh', 'Grand', 'Happy', 'Inspiring', 'Joyful']
NOUNS = ['Journey', 'Discovery', 'Insight', 'Story', 'Guide', 'Update', 'Release', 'Overview', 'Preview', 'Note']

SAMPLE_SUMMARY = 'This is a generated article used for testing rendering and teaser output.'
SAMPLE_ITEMS = [
    'Editor.js paragraphs render as HTML',
    'Teasers show only the first paragraph',
    'Full view shows all supported blocks',
]


def random_title(rng: random.Random = None) -> str:
    rng = rng or random.Random()
    return f"{rng.choice(ADJECTIVES)} {rng.choice(NOUNS)}"


def sample_document(title: str, now_ms: int = None) -> dict[str, Any]:
    """Return a header + paragraph + list article in Editor.js transport shape."""
    return {
        "time": int(time.time() * 1000) if now_ms is None else now_ms,
        "blocks": [
            {"type": "header", "data": {"text": html.escape(title), "level": 2}},
            {"type": "paragraph", "data": {"text": html.escape(SAMPLE_SUMMARY)}},
            {"type": "list", "data": {"style": "unordered", "items": list(SAMPLE_ITEMS)}},
        ],
        "version": "2.0.0",
    }
