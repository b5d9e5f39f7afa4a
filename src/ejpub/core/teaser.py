"""Teaser extraction: the first paragraph that produces visible content"""

from typing import Any

from ejpub.core.parse import parse
from ejpub.core.render import BlockRenderer, default_renderer, wrap


def first_paragraph(value: Any, renderer: BlockRenderer = None) -> str:
    """Return the unwrapped <p> fragment of the first non-empty paragraph block, or ''.

    Stops at the first paragraph whose sanitized text is non-empty; empty
    paragraphs and every other block type are skipped.
    """
    renderer = renderer or default_renderer
    for block in parse(value).blocks:
        if block.type != 'paragraph':
            continue
        fragment = renderer.render_paragraph(block.data)
        if fragment:
            return fragment
    return ''


def render_first_paragraph(value: Any, renderer: BlockRenderer = None) -> str:
    """Render only the first visible paragraph, wrapped like a full render; '' if none."""
    fragment = first_paragraph(value, renderer)
    return wrap(fragment) if fragment else ''
