"""Export pipeline: render stored documents to HTML files plus sidecar JSON"""

import json
from pathlib import Path

from ejpub.core.parse import parse
from ejpub.core.render import BlockRenderer
from ejpub.core.teaser import render_first_paragraph
from ejpub.crud.tables import Document


def build_sidecar(doc: Document, renderer: BlockRenderer) -> dict:
    """Build the sidecar JSON dict: field keys, hash, timestamps, teaser, and block summary."""
    parsed = parse(doc.data)
    return {
        "entity_type": doc.entity_type,
        "entity_id": doc.entity_id,
        "field_id": doc.field_id,
        "hash": doc.hash,
        "updated_at": doc.updated_at.isoformat() if doc.updated_at else None,
        "version": parsed.version,
        "blocks": len(parsed.blocks),
        "block_types": sorted({b.type for b in parsed.blocks}),
        "teaser": render_first_paragraph(parsed, renderer),
    }


def write_doc(doc: Document, output_dir: Path, renderer: BlockRenderer) -> tuple[Path, Path]:
    """Write rendered HTML + sidecar JSON for a single stored document.

    Output layout: output_dir / entity_type / {entity_id}-{field_id}.{html|json}

    Returns (html_path, json_path).
    """
    dest_dir = output_dir / doc.entity_type
    dest_dir.mkdir(parents=True, exist_ok=True)

    stem = f"{doc.entity_id}-{doc.field_id}"
    html_path = dest_dir / f"{stem}.html"
    json_path = dest_dir / f"{stem}.json"

    html_path.write_text(renderer.render(doc.data), encoding='utf-8')
    json_path.write_text(json.dumps(build_sidecar(doc, renderer), indent=2), encoding='utf-8')
    return html_path, json_path


def export_documents(docs: list[Document], output_dir: Path, renderer: BlockRenderer) -> list[tuple[str, Path]]:
    """Write every doc to output_dir. Returns (key, html_path) pairs.

    Raises RuntimeError naming the document when a write fails.
    """
    results = []
    for doc in docs:
        key = f"{doc.entity_type}/{doc.entity_id}:{doc.field_id}"
        try:
            html_path, _ = write_doc(doc, output_dir, renderer)
        except OSError as e:
            raise RuntimeError(f"Failed to export {key}: {e}") from e
        results.append((key, html_path))
    return results
