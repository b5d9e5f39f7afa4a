"""Database tables for stored Editor.js field values and their version history"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Column, DateTime, String, Text, UniqueConstraint
from sqlmodel import Field, SQLModel


class Document(SQLModel, table=True):
    """The serialized Editor.js value of one entity field, stored verbatim"""
    __tablename__ = "documents"
    __table_args__ = (UniqueConstraint("entity_type", "entity_id", "field_id", name="uq_doc_field"),)
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    entity_type: str = Field(..., index=True, nullable=False)
    entity_id: str = Field(..., index=True, nullable=False)
    field_id: str = Field(..., nullable=False)
    data: str = Field(..., sa_column=Column(Text, nullable=False))
    hash: str = Field(..., sa_column=Column(String(64), nullable=False))
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
    updated_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))


class DocumentVersion(SQLModel, table=True):
    """Immutable snapshot of a Document's data at a prior state"""
    __tablename__ = "document_versions"
    __table_args__ = (UniqueConstraint("document_id", "version_num", name="uq_docver_doc_num"),)
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    document_id: UUID = Field(..., foreign_key="documents.id", index=True, nullable=False)
    version_num: int = Field(..., nullable=False, description="Monotonically increasing per-document version number")
    data: str = Field(..., sa_column=Column(Text, nullable=False))
    hash: str = Field(..., sa_column=Column(String(64), nullable=False))
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
