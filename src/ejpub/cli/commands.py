"""Typer command functions: field store, rendering, export, samples, uploads"""

import json
import logging
import mimetypes
import random
from pathlib import Path
from typing import Annotated, Optional

import typer
from sqlmodel import Session

from ejpub.config import Settings, load_config
from ejpub.core.export import export_documents
from ejpub.core.render import renderer_from_settings
from ejpub.core.samples import random_title, sample_document
from ejpub.core.teaser import render_first_paragraph
from ejpub.crud.database import init_db, make_engine, reset_db
from ejpub.crud.documents import get_all_documents, get_document, save_document
from ejpub.crud.versioning import diff_versions, list_versions, revert_to_version
from ejpub.uploads import store_upload, store_upload_from_url


logger = logging.getLogger(__name__)


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """load_config, reporting a bad config file as a CLI error."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _engine(settings: Settings):
    engine = make_engine(settings.db_url)
    init_db(engine)
    return engine


def _read(path: str) -> str:
    try:
        return Path(path).read_text(encoding='utf-8')
    except OSError as e:
        _fail(f"Cannot read {path}", e)


def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log at INFO level")] = False,
    ):
    """Editor.js document rendering and field storage."""
    level = "INFO" if verbose else _settings().log_level
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def init_cmd(
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate all tables")] = False,
    ):
    """Create the field store tables; --reset drops stored values and history first."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    if reset:
        reset_db(engine)
        typer.echo("Existing data cleared.")
    else:
        init_db(engine)
    typer.echo(f"Database initialized at: {settings.db_url}")


def save_cmd(
    entity_type: Annotated[str, typer.Argument(help="Entity type, e.g. node")],
    entity_id: Annotated[str, typer.Argument(help="Entity id")],
    field_id: Annotated[str, typer.Argument(help="Field name, e.g. body")],
    path: Annotated[str, typer.Argument(help="Editor.js JSON file")],
    versions: Annotated[Optional[int], typer.Option("--max-versions", help="Max stored versions per field")] = None,
    ):
    """Store an Editor.js JSON file verbatim as an entity field value."""
    settings = _settings(overrides={"max_versions": versions})
    data = _read(path)
    engine = _engine(settings)
    with Session(engine) as session:
        try:
            doc, status = save_document(session, entity_type, entity_id, field_id, data, settings.max_versions)
        except ValueError as e:
            _fail(f"Cannot save {path}", e)
        session.commit()
    typer.echo(f"  {status}: {entity_type}/{entity_id}:{field_id}")


def render_cmd(
    path: Annotated[str, typer.Argument(help="Editor.js JSON file")],
    teaser: Annotated[bool, typer.Option("--teaser", help="Render only the first non-empty paragraph")] = False,
    out: Annotated[Optional[str], typer.Option("--out", help="Write HTML to this file instead of stdout")] = None,
    ):
    """Render an Editor.js JSON file to sanitized HTML."""
    settings = _settings()
    renderer = renderer_from_settings(settings)
    data = _read(path)
    html = render_first_paragraph(data, renderer) if teaser else renderer.render(data)
    if out:
        try:
            Path(out).write_text(html, encoding='utf-8')
        except OSError as e:
            _fail(f"Cannot write {out}", e)
        typer.echo(f"  {path} -> {out}")
    else:
        typer.echo(html)


def show_cmd(
    entity_type: Annotated[str, typer.Argument(help="Entity type")],
    entity_id: Annotated[str, typer.Argument(help="Entity id")],
    field_id: Annotated[str, typer.Argument(help="Field name")],
    teaser: Annotated[bool, typer.Option("--teaser", help="Render only the first non-empty paragraph")] = False,
    raw: Annotated[bool, typer.Option("--raw", help="Print the stored JSON string unchanged")] = False,
    ):
    """Render a stored field value."""
    settings = _settings()
    engine = _engine(settings)
    with Session(engine) as session:
        doc = get_document(session, entity_type, entity_id, field_id)
    if doc is None:
        _fail(f"No stored value for {entity_type}/{entity_id}:{field_id}")
    if raw:
        typer.echo(doc.data)
        return
    renderer = renderer_from_settings(settings)
    typer.echo(render_first_paragraph(doc.data, renderer) if teaser else renderer.render(doc.data))


def export_cmd(
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    entity_type: Annotated[Optional[str], typer.Option("--entity-type", help="Export only this entity type")] = None,
    ):
    """Write rendered HTML + sidecar JSON for stored documents to the output dir."""
    settings = _settings(overrides={"output_dir": out})
    engine = _engine(settings)
    output_dir = Path(settings.output_dir)

    with Session(engine) as session:
        docs = get_all_documents(session, entity_type)
    if not docs:
        typer.echo("No documents found in database.")
        raise typer.Exit(1)

    try:
        results = export_documents(docs, output_dir, renderer_from_settings(settings))
    except RuntimeError as e:
        _fail("Export failed", e)
    for key, html_path in results:
        typer.echo(f"  {key} -> {html_path}")
    typer.echo(f"Exported {len(results)} document(s) to {output_dir}/")


def generate_cmd(
    count: Annotated[int, typer.Argument(help="Number of sample articles")] = 5,
    entity_type: Annotated[str, typer.Option("--entity-type", help="Entity type for the samples")] = "article",
    field_id: Annotated[str, typer.Option("--field-id", help="Field to store the samples in")] = "body",
    seed: Annotated[Optional[int], typer.Option("--seed", help="Random seed for reproducible titles")] = None,
    ):
    """Store sample Editor.js articles for testing rendering and teaser output."""
    settings = _settings()
    engine = _engine(settings)
    rng = random.Random(seed)
    with Session(engine) as session:
        next_id = 1
        for _ in range(count):
            while get_document(session, entity_type, str(next_id), field_id) is not None:
                next_id += 1
            title = random_title(rng)
            data = json.dumps(sample_document(title), ensure_ascii=False)
            save_document(session, entity_type, str(next_id), field_id, data, settings.max_versions)
            typer.echo(f"  created: {entity_type}/{next_id}:{field_id} ({title})")
        session.commit()
    typer.echo(f"Generated {count} sample document(s).")


def versions_cmd(
    entity_type: Annotated[str, typer.Argument(help="Entity type")],
    entity_id: Annotated[str, typer.Argument(help="Entity id")],
    field_id: Annotated[str, typer.Argument(help="Field name")],
    diff_from: Annotated[Optional[int], typer.Option("--from", help="Diff from this version")] = None,
    diff_to: Annotated[Optional[int], typer.Option("--to", help="Diff to this version")] = None,
    ):
    """List stored versions of a field value, or diff two of them."""
    settings = _settings()
    engine = _engine(settings)
    with Session(engine) as session:
        doc = get_document(session, entity_type, entity_id, field_id)
        if doc is None:
            _fail(f"No stored value for {entity_type}/{entity_id}:{field_id}")
        if diff_from is not None and diff_to is not None:
            try:
                lines = diff_versions(session, doc.id, diff_from, diff_to)
            except ValueError as e:
                _fail(str(e))
            typer.echo(''.join(lines) or "No differences.")
            return
        versions = list_versions(session, doc.id)
    if not versions:
        typer.echo("No previous versions.")
        return
    for v in versions:
        typer.echo(f"  v{v.version_num}  {v.created_at:%Y-%m-%d %H:%M:%S}  {v.hash[:12]}")


def revert_cmd(
    entity_type: Annotated[str, typer.Argument(help="Entity type")],
    entity_id: Annotated[str, typer.Argument(help="Entity id")],
    field_id: Annotated[str, typer.Argument(help="Field name")],
    version: Annotated[int, typer.Argument(help="Version number to restore")],
    ):
    """Restore a prior version as the current field value."""
    settings = _settings()
    engine = _engine(settings)
    with Session(engine) as session:
        doc = get_document(session, entity_type, entity_id, field_id)
        if doc is None:
            _fail(f"No stored value for {entity_type}/{entity_id}:{field_id}")
        try:
            revert_to_version(session, doc, version, settings.max_versions)
        except ValueError as e:
            _fail(str(e))
        session.commit()
    typer.echo(f"Reverted {entity_type}/{entity_id}:{field_id} to v{version}")


def upload_cmd(
    path: Annotated[str, typer.Argument(help="Image file to upload")],
    mime: Annotated[Optional[str], typer.Option("--mime", help="Declared MIME type (guessed from name if omitted)")] = None,
    ):
    """Validate and store an image, printing the image tool's JSON response."""
    settings = _settings()
    try:
        content = Path(path).read_bytes()
    except OSError as e:
        _fail(f"Cannot read {path}", e)
    mime_type = mime or mimetypes.guess_type(path)[0] or "application/octet-stream"
    result = store_upload(content, Path(path).name, mime_type, settings)
    typer.echo(json.dumps(result))
    if not result["success"]:
        raise typer.Exit(1)


def upload_url_cmd(
    url: Annotated[str, typer.Argument(help="http(s) URL of the image to fetch")],
    ):
    """Download an image by URL and store it, printing the image tool's JSON response."""
    result = store_upload_from_url(url, _settings())
    typer.echo(json.dumps(result))
    if not result["success"]:
        raise typer.Exit(1)
