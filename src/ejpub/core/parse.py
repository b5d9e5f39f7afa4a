"""Boundary normalization: transport string or decoded mapping -> canonical Document"""

import json
import logging
from collections.abc import Mapping
from typing import Any

from ejpub.core.models import Block, Document


logger = logging.getLogger(__name__)

JSON_PREFIXES = ('{', '[')


def _decode(text: str) -> Any:
    """Return the decoded JSON value, or None for empty, legacy plain-text, or undecodable input."""
    text = text.strip()
    if not text or text[0] not in JSON_PREFIXES:
        return None
    try:
        return json.loads(text)
    except (ValueError, RecursionError) as e:
        logger.debug("Discarding undecodable document: %s", e)
        return None


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _coerce_time(value: Any) -> int | None:
    """Accept integer timestamps only; bools and everything else become None."""
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _coerce_block(entry: Any) -> Block:
    """Build a Block from one raw entry, substituting defaults instead of dropping it."""
    if not isinstance(entry, Mapping):
        return Block()
    block_type = entry.get('type')
    data = entry.get('data')
    return Block(
        type=block_type if isinstance(block_type, str) else '',
        data={str(k): v for k, v in data.items()} if isinstance(data, Mapping) else {},
    )


def parse(value: Any) -> Document:
    """Normalize a transport string, mapping, or Document into a Document.

    Never raises. Empty strings, legacy plain text, undecodable JSON, and
    values that are not mappings all yield an empty Document. Malformed block
    entries are kept with default type/data so the block count is preserved.
    """
    if isinstance(value, Document):
        return value
    if isinstance(value, str):
        value = _decode(value)
    if not isinstance(value, Mapping):
        return Document()

    version = value.get('version')
    blocks = value.get('blocks')
    return Document(
        time=_coerce_time(value.get('time')),
        version=version if isinstance(version, str) else None,
        blocks=[_coerce_block(b) for b in blocks] if _is_sequence(blocks) else [],
    )


def serialize(doc: Document) -> str:
    """Return the transport JSON string for a Document (inverse of parse)."""
    return json.dumps(
        {"time": doc.time, "blocks": [b.model_dump() for b in doc.blocks], "version": doc.version},
        ensure_ascii=False,
        default=str,
    )
