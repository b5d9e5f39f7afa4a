"""Field store: save, look up, and list serialized Editor.js field values"""

import json
import logging
from datetime import datetime
from typing import Any

from sqlmodel import Session, select

from ejpub.core.utils.hashing import sha256
from ejpub.crud.tables import Document
from ejpub.crud.versioning import save_version


logger = logging.getLogger(__name__)

SAVE_KEYS = ("entity_type", "entity_id", "field_id", "data")


def validate_data(data: Any) -> str:
    """Return data if it is a string that decodes as JSON, else raise ValueError."""
    if not isinstance(data, str):
        raise ValueError("Invalid JSON data: expected a string")
    try:
        json.loads(data)
    except ValueError as e:
        raise ValueError(f"Invalid JSON data: {e}") from e
    return data


def get_document(session: Session, entity_type: str, entity_id: str, field_id: str) -> Document | None:
    """Return the stored field value for an entity, or None if not found."""
    return session.exec(
        select(Document)
        .where(Document.entity_type == entity_type)
        .where(Document.entity_id == entity_id)
        .where(Document.field_id == field_id)
    ).one_or_none()


def get_all_documents(session: Session, entity_type: str | None = None) -> list[Document]:
    """Return all stored documents, optionally limited to one entity type."""
    stmt = select(Document).order_by(Document.entity_type, Document.entity_id, Document.field_id)
    if entity_type:
        stmt = stmt.where(Document.entity_type == entity_type)
    return list(session.exec(stmt).all())


def save_document(
    session: Session,
    entity_type: str,
    entity_id: str,
    field_id: str,
    data: str,
    max_versions: int = 10,
    ) -> tuple[Document, str]:
    """Store data verbatim for the entity field.

    Returns (doc, status) where status is 'created', 'updated', or 'unchanged'.
    The previous value is snapshotted before an update.
    Flushes but does not commit; caller controls the transaction.
    Raises ValueError if data does not decode as JSON.
    """
    validate_data(data)
    digest = sha256(data)
    doc = get_document(session, entity_type, entity_id, field_id)

    if doc:
        if doc.hash == digest:
            return doc, 'unchanged'
        save_version(session, doc, max_versions)
        doc.data = data
        doc.hash = digest
        doc.updated_at = datetime.now()
        session.add(doc)
        session.flush()
        logger.info("Updated %s/%s:%s", entity_type, entity_id, field_id)
        return doc, 'updated'

    doc = Document(entity_type=entity_type, entity_id=entity_id, field_id=field_id, data=data, hash=digest)
    session.add(doc)
    session.flush()
    logger.info("Created %s/%s:%s", entity_type, entity_id, field_id)
    return doc, 'created'


def handle_save_request(session: Session, payload: Any, max_versions: int = 10) -> dict[str, Any]:
    """Apply a client save request {entity_type, entity_id, field_id, data}.

    Returns {"success": True, "status": ...} or {"success": False, "error": ...};
    invalid requests never raise. Commits on success.
    """
    if not isinstance(payload, dict) or any(payload.get(k) in (None, "") for k in SAVE_KEYS):
        return {"success": False, "error": "Invalid request data"}
    try:
        _, status = save_document(
            session,
            str(payload["entity_type"]),
            str(payload["entity_id"]),
            str(payload["field_id"]),
            payload["data"],
            max_versions,
        )
    except ValueError as e:
        session.rollback()
        return {"success": False, "error": str(e).split(":")[0]}
    session.commit()
    return {"success": True, "status": status}
