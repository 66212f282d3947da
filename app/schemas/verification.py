"""Agency document verification schemas (request DTOs and response models)."""


from datetime import datetime

from pydantic import Field

from app.core.enums import DocumentStatus, DocumentType
from app.schemas.common import CamelModel

class DocumentRecordOut(CamelModel):
    id: str
    agency_id: str
    document_type: DocumentType
    created_at: datetime

class DocumentVersionOut(CamelModel):
    id: str
    document_id: str
    version_number: int
    original_filename: str
    content_type: str
    size_bytes: int
    sha256: str
    status: DocumentStatus
    status_changed_by: str | None = None
    status_changed_at: datetime | None = None
    status_comment: str | None = None
    uploaded_by: str
    uploaded_at: datetime
    note: str | None = None

class MyDocumentOut(CamelModel):
    document: DocumentRecordOut
    latest_version: DocumentVersionOut | None = None

class DecisionRequest(CamelModel):
    status: str = Field(description="accepted | rejected")
    comment: str | None = Field(default=None, max_length=2000)

class RequirementStatusOut(CamelModel):
    document_type: DocumentType
    required: bool
    met: bool
    document_id: str | None = None
    latest_version_number: int | None = None
    latest_status: DocumentStatus | None = None

class VerificationStatusOut(CamelModel):
    agency_id: str
    verified: bool
    verified_at: datetime | None = None
    requirements: list[RequirementStatusOut]

class RecomputeOut(CamelModel):
    agency_id: str
    verified: bool
