"""Shared fixtures for core unit tests"""

import json

import pytest

from ejpub.core.images import OriginalUrlResolver
from ejpub.core.render import BlockRenderer
from ejpub.core.sanitize import InlineSanitizer


SAMPLE_DOC = {
    "time": 1706123456789,
    "version": "2.28.0",
    "blocks": [
        {"type": "header", "data": {"text": "Title", "level": 2}},
        {"type": "paragraph", "data": {"text": "Body <b>bold</b> text"}},
        {"type": "list", "data": {"style": "ordered", "items": ["one", "two"]}},
        {"type": "delimiter", "data": {}},
    ],
}


@pytest.fixture(name="renderer")
def renderer_fixture():
    """Renderer that serves images from their original URL."""
    return BlockRenderer(sanitizer=InlineSanitizer(), resolver=OriginalUrlResolver())


@pytest.fixture(name="sample_doc")
def sample_doc_fixture():
    return json.loads(json.dumps(SAMPLE_DOC))


@pytest.fixture(name="sample_json")
def sample_json_fixture():
    return json.dumps(SAMPLE_DOC)
