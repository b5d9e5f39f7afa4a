"""Editor.js document -> sanitized, styleable HTML"""

import html
import json
import logging
from collections.abc import Mapping
from typing import Any

from ejpub.config import Settings
from ejpub.core.images import ImageUrlResolver, StyledUrlResolver, normalize_size
from ejpub.core.parse import parse
from ejpub.core.sanitize import InlineSanitizer


logger = logging.getLogger(__name__)

CONTENT_CLASS = 'editorjs-content'
DEFAULT_HEADER_LEVEL = 2


def wrap(content: str) -> str:
    """Wrap rendered fragments in the marker container used by CSS and downstream tooling."""
    return f'<div class="{CONTENT_CLASS}">{content}</div>'


def _attr(value: Any) -> str:
    return html.escape(str(value), quote=True)


def header_level(value: Any) -> int:
    """Coerce a header level to 1-6; missing, invalid, or out-of-range values become 2."""
    try:
        level = int(value)
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_HEADER_LEVEL
    return level if 1 <= level <= 6 else DEFAULT_HEADER_LEVEL


class BlockRenderer:
    """Render parsed Editor.js documents with injected sanitizer and image URL resolver.

    Holds no per-render state; one instance can serve concurrent renders.
    """

    def __init__(self, sanitizer: InlineSanitizer = None, resolver: ImageUrlResolver = None):
        self.sanitizer = sanitizer or InlineSanitizer()
        self.resolver = resolver or StyledUrlResolver()

    def sanitize(self, text: Any) -> str:
        return self.sanitizer.sanitize(text)

    def render(self, value: Any) -> str:
        """Render a document (string, mapping, or Document) to wrapped HTML; '' if nothing renders."""
        doc = parse(value)
        parts = []
        for block in doc.blocks:
            try:
                fragment = self.render_block(block.type, block.data)
            except Exception:
                logger.warning("Failed to render %r block; skipping", block.type, exc_info=True)
                continue
            if fragment:
                parts.append(fragment)
        return wrap('\n'.join(parts)) if parts else ''

    def render_block(self, block_type: str, data: Mapping[str, Any]) -> str:
        """Render one block; unknown types fall through to a diagnostic dump."""
        if block_type == 'paragraph':
            return self.render_paragraph(data)
        if block_type == 'header':
            return self._header(data)
        if block_type == 'list':
            return self._list(data)
        if block_type == 'quote':
            return self._quote(data)
        if block_type == 'delimiter':
            return '<hr />'
        if block_type == 'image':
            return self._image(data)
        return self._unknown(block_type, data)

    def render_paragraph(self, data: Mapping[str, Any]) -> str:
        text = self.sanitize(data.get('text'))
        return f'<p class="editorjs-paragraph">{text}</p>' if text else ''

    def _header(self, data: Mapping[str, Any]) -> str:
        text = self.sanitize(data.get('text'))
        if not text:
            return ''
        level = header_level(data.get('level', DEFAULT_HEADER_LEVEL))
        return (
            f'<h{level} class="editorjs-header editorjs-header--level-{level}">'
            f'{text}</h{level}>'
        )

    def _list(self, data: Mapping[str, Any]) -> str:
        items = data.get('items')
        if not isinstance(items, (list, tuple)) or not items:
            return ''
        style = 'ordered' if data.get('style') == 'ordered' else 'unordered'
        tag = 'ol' if style == 'ordered' else 'ul'
        # nested item structures are flattened to their string form
        lis = ''.join(
            f'<li class="editorjs-list-item">{self.sanitize(str(item))}</li>' for item in items
        )
        return f'<{tag} class="editorjs-list editorjs-list--{style}">{lis}</{tag}>'

    def _quote(self, data: Mapping[str, Any]) -> str:
        text = self.sanitize(data.get('text'))
        caption = self.sanitize(data.get('caption'))
        inner = f'<p>{text}</p>'
        if caption:
            inner += f'<cite>{caption}</cite>'
        return f'<blockquote>{inner}</blockquote>'

    def _image_url(self, url: str, size: str) -> str:
        try:
            return self.resolver.resolve(url, size) or url
        except Exception:
            logger.warning("Image URL resolution failed for %r; using original", url, exc_info=True)
            return url

    def _image(self, data: Mapping[str, Any]) -> str:
        file = data.get('file')
        url = file.get('url') if isinstance(file, Mapping) else None
        if not url or not isinstance(url, str):
            return ''

        size = normalize_size(data.get('size'))
        caption = self.sanitize(data.get('caption'))
        alt = html.unescape(self.sanitizer.sanitize(caption, allowed_tags=()))

        classes = ['editorjs-image']
        if data.get('withBorder'):
            classes.append('editorjs-image--with-border')
        if data.get('withBackground'):
            classes.append('editorjs-image--with-background')
        if data.get('stretched'):
            classes.append('editorjs-image--stretched')
        classes.append(f'editorjs-image--{size}')

        img = (
            f'<img src="{_attr(self._image_url(url, size))}" alt="{_attr(alt)}" '
            f'class="{" ".join(classes)}" />'
        )
        container = f'editorjs-image-container editorjs-image-container--{size}'
        if caption:
            return (
                f'<figure class="{container}">{img}'
                f'<figcaption class="editorjs-image-caption">{caption}</figcaption></figure>'
            )
        return f'<div class="{container}">{img}</div>'

    def _unknown(self, block_type: str, data: Mapping[str, Any]) -> str:
        dump = json.dumps(dict(data), indent=4, ensure_ascii=False, default=str)
        return f'<pre data-editorjs-type="{_attr(block_type)}">{html.escape(dump)}</pre>'


def renderer_from_settings(settings: Settings) -> BlockRenderer:
    """Build a BlockRenderer whose image URLs follow the configured public files layout."""
    return BlockRenderer(
        sanitizer=InlineSanitizer(),
        resolver=StyledUrlResolver(base_url=settings.base_url, files_path=settings.files_path),
    )


default_renderer = BlockRenderer()


def render(value: Any, renderer: BlockRenderer = None) -> str:
    """Render value with renderer, or with the shared default renderer."""
    return (renderer or default_renderer).render(value)
