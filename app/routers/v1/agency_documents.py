"""Agency-facing document verification router.

Agencies upload compliance documents, list what they have uploaded, and
see which required documents still block their verification.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.identity import Caller, require_agency, resolve_caller
from app.core.response import DataResponse
from app.db.base import get_db
from app.schemas.verification import (
    DocumentRecordOut,
    DocumentVersionOut,
    MyDocumentOut,
    RequirementStatusOut,
    VerificationStatusOut,
)
from app.services.agency_verification import (
    AgencyVerificationService,
    DownloadedFile,
    VerificationSummary,
)
from app.services.version_store import UploadMetadata
from app.storage import ByteStorage, get_storage

router = APIRouter(prefix="/agency-documents", tags=["Agency documents"])


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _svc(session: AsyncSession, storage: ByteStorage) -> AgencyVerificationService:
    return AgencyVerificationService(session, storage)


def summary_out(summary: VerificationSummary) -> VerificationStatusOut:
    return VerificationStatusOut(
        agency_id=summary.agency.id,
        verified=summary.agency.verified,
        verified_at=summary.agency.verified_at,
        requirements=[
            RequirementStatusOut(
                document_type=r.document_type,
                required=r.required,
                met=r.met,
                document_id=r.document_id,
                latest_version_number=r.latest_version.version_number if r.latest_version else None,
                latest_status=r.latest_version.status if r.latest_version else None,
            )
            for r in summary.requirements
        ],
    )


def file_response(downloaded: DownloadedFile) -> Response:
    return Response(
        content=downloaded.content,
        media_type=downloaded.content_type,
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(downloaded.filename)}"
        },
    )


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post(
    "/upload",
    response_model=DataResponse[DocumentVersionOut],
    status_code=status.HTTP_201_CREATED,
)
async def upload_document(
    file: UploadFile = File(...),
    document_type: str = Form(..., alias="documentType"),
    note: Optional[str] = Form(default=None),
    caller: Caller = Depends(require_agency),
    session: AsyncSession = Depends(get_db),
    storage: ByteStorage = Depends(get_storage),
):
    """Upload a new version of a compliance document (PDF, PNG, or JPEG)."""
    # One byte past the limit is enough to reject an oversize upload.
    contents = await file.read(settings.max_upload_size_bytes + 1)
    metadata = UploadMetadata(
        original_filename=file.filename or "document",
        content_type=file.content_type or "",
        uploaded_by=caller.id,
        note=note,
    )
    version = await _svc(session, storage).upload(caller.id, document_type, contents, metadata)
    return {"data": DocumentVersionOut.model_validate(version)}


@router.get("/mine", response_model=DataResponse[list[MyDocumentOut]])
async def list_my_documents(
    caller: Caller = Depends(require_agency),
    session: AsyncSession = Depends(get_db),
    storage: ByteStorage = Depends(get_storage),
):
    """One entry per uploaded document type, with its latest version."""
    items = await _svc(session, storage).list_my_documents(caller.id)
    return {
        "data": [
            MyDocumentOut(
                document=DocumentRecordOut.model_validate(item.document),
                latest_version=(
                    DocumentVersionOut.model_validate(item.latest_version)
                    if item.latest_version
                    else None
                ),
            )
            for item in items
        ]
    }


@router.get("/history", response_model=DataResponse[list[DocumentVersionOut]])
async def list_history(
    caller: Caller = Depends(require_agency),
    session: AsyncSession = Depends(get_db),
    storage: ByteStorage = Depends(get_storage),
):
    """Every version the agency uploaded, most recent first."""
    versions = await _svc(session, storage).list_history(caller.id)
    return {"data": [DocumentVersionOut.model_validate(v) for v in versions]}


@router.get("/status", response_model=DataResponse[VerificationStatusOut])
async def verification_status(
    caller: Caller = Depends(require_agency),
    session: AsyncSession = Depends(get_db),
    storage: ByteStorage = Depends(get_storage),
):
    summary = await _svc(session, storage).verification_status(caller.id)
    return {"data": summary_out(summary)}


@router.get("/versions/{version_id}/download")
async def download_version(
    version_id: str,
    caller: Caller = Depends(resolve_caller),
    session: AsyncSession = Depends(get_db),
    storage: ByteStorage = Depends(get_storage),
):
    """Download a version's file. Owning agency or admin only."""
    downloaded = await _svc(session, storage).download(version_id, caller)
    return file_response(downloaded)
