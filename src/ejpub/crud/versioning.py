"""Version history for stored field values: snapshot, prune, list, diff, revert"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import func
from sqlmodel import Session, select

from ejpub.core.utils.diff import pretty_json, unified_diff
from ejpub.crud.tables import Document, DocumentVersion


def _history(document_id: UUID):
    return select(DocumentVersion).where(DocumentVersion.document_id == document_id)


def get_version(session: Session, document_id: UUID, version_num: int) -> DocumentVersion:
    """Raises ValueError if the document has no such version."""
    found = session.exec(_history(document_id).where(DocumentVersion.version_num == version_num)).first()
    if found is None:
        raise ValueError(f"Version {version_num} not found for document {document_id}")
    return found


def list_versions(session: Session, document_id: UUID) -> list[DocumentVersion]:
    """Oldest first."""
    return list(session.exec(_history(document_id).order_by(DocumentVersion.version_num)).all())


def diff_versions(session: Session, document_id: UUID, from_num: int, to_num: int, context: int = 3) -> list[str]:
    """Diff two stored versions line by line after re-indenting their JSON."""
    old = get_version(session, document_id, from_num).data
    new = get_version(session, document_id, to_num).data
    return unified_diff(pretty_json(old), pretty_json(new), f"v{from_num}", f"v{to_num}", context)


def prune_versions(session: Session, document_id: UUID, max_versions: int) -> int:
    """Keep only the newest max_versions snapshots and return how many were deleted.

    max_versions=0 keeps everything.
    """
    if max_versions <= 0:
        return 0
    stale = session.exec(
        _history(document_id).order_by(DocumentVersion.version_num.desc()).offset(max_versions)
    ).all()
    for version in stale:
        session.delete(version)
    if stale:
        session.flush()
    return len(stale)


def save_version(session: Session, doc: Document, max_versions: int = 10) -> DocumentVersion:
    """Append the doc's current data to its history as the next version number."""
    latest = session.exec(
        select(func.max(DocumentVersion.version_num)).where(DocumentVersion.document_id == doc.id)
    ).one()
    snapshot = DocumentVersion(document_id=doc.id, version_num=(latest or 0) + 1, data=doc.data, hash=doc.hash)
    session.add(snapshot)
    session.flush()
    prune_versions(session, doc.id, max_versions)
    return snapshot


def revert_to_version(session: Session, doc: Document, version_num: int, max_versions: int = 10) -> Document:
    """Make an earlier version current again, keeping the replaced value in history.

    The target is read before the current value is snapshotted, since that
    snapshot may prune the target. Flushes only; the caller commits.
    """
    target = get_version(session, doc.id, version_num)
    data, digest = target.data, target.hash

    save_version(session, doc, max_versions)
    doc.data, doc.hash = data, digest
    doc.updated_at = datetime.now()
    session.add(doc)
    session.flush()
    return doc
