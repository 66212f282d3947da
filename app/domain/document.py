"""SQLAlchemy ORM models for agency compliance documents and their versions."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.enums import DocumentStatus
from app.db.base import Base
from app.domain.mixins import CreatedAtMixin, UUIDPrimaryKeyMixin, _now


class AgencyDocument(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    """One record per (agency, document type); parent of the uploaded versions."""

    __tablename__ = "agency_documents"
    __table_args__ = (
        UniqueConstraint("agency_id", "document_type", name="uq_agency_documents_agency_type"),
    )

    agency_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id"), nullable=False, index=True
    )
    document_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    agency: Mapped["Account"] = relationship(back_populates="documents", lazy="raise")
    versions: Mapped[List["AgencyDocumentVersion"]] = relationship(
        back_populates="document", lazy="raise"
    )


class AgencyDocumentVersion(Base, UUIDPrimaryKeyMixin):
    """One uploaded file for a document record.

    Everything but the ``status*`` columns is immutable after insert. Rows
    are never deleted, so ``version_number`` is ``1..N`` without gaps.
    """

    __tablename__ = "agency_document_versions"
    __table_args__ = (
        UniqueConstraint(
            "document_id", "version_number", name="uq_agency_document_versions_number"
        ),
    )

    document_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("agency_documents.id"), nullable=False, index=True
    )
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)

    # Upload metadata, captured verbatim
    original_filename: Mapped[str] = mapped_column(String(255), nullable=False)
    content_type: Mapped[str] = mapped_column(String(100), nullable=False)
    size_bytes: Mapped[int] = mapped_column(Integer, nullable=False)
    sha256: Mapped[str] = mapped_column(String(64), nullable=False)

    # Byte storage locator (owned by this version only)
    abs_path: Mapped[str] = mapped_column(String(1024), nullable=False)
    rel_path: Mapped[str] = mapped_column(String(500), nullable=False)

    # Review: submitted | accepted | rejected
    status: Mapped[str] = mapped_column(
        String(20), default=DocumentStatus.SUBMITTED.value, nullable=False, index=True
    )
    status_changed_by: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("accounts.id"), nullable=True
    )
    status_changed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    status_comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    uploaded_by: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id"), nullable=False
    )
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, nullable=False, index=True
    )
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    document: Mapped["AgencyDocument"] = relationship(back_populates="versions", lazy="raise")
