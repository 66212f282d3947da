"""Admin document review router.

Admins browse document records, inspect version history, accept or reject
versions, and download files. A decision responds only after the owning
agency's verified flag has been recomputed.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.identity import Caller, require_admin
from app.core.pagination import PaginationParams
from app.core.response import DataResponse, ListResponse, paginated
from app.db.base import get_db
from app.routers.v1.agency_documents import file_response, summary_out
from app.schemas.verification import (
    DecisionRequest,
    DocumentRecordOut,
    DocumentVersionOut,
    RecomputeOut,
    VerificationStatusOut,
)
from app.services.agency_verification import AgencyVerificationService
from app.storage import ByteStorage, get_storage

router = APIRouter(prefix="/admin/agency-documents", tags=["Admin documents"])


def _svc(session: AsyncSession, storage: ByteStorage) -> AgencyVerificationService:
    return AgencyVerificationService(session, storage)


@router.get("", response_model=ListResponse[DocumentRecordOut])
async def list_documents(
    agency_id: Optional[str] = Query(default=None, alias="agencyId"),
    document_type: Optional[str] = Query(default=None, alias="documentType"),
    pagination: PaginationParams = Depends(),
    _admin: Caller = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
    storage: ByteStorage = Depends(get_storage),
):
    """List all document records (paginated). Filter by ?agencyId= and ?documentType=."""
    items, total = await _svc(session, storage).admin_list_all(
        pagination, agency_id=agency_id, document_type=document_type
    )
    return paginated(
        [DocumentRecordOut.model_validate(d) for d in items],
        total, pagination,
    )


@router.get("/{document_id}/versions", response_model=DataResponse[list[DocumentVersionOut]])
async def list_versions(
    document_id: str,
    _admin: Caller = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
    storage: ByteStorage = Depends(get_storage),
):
    """All versions of a document, highest version number first."""
    versions = await _svc(session, storage).admin_list_versions(document_id)
    return {"data": [DocumentVersionOut.model_validate(v) for v in versions]}


@router.post("/versions/{version_id}/decision", response_model=DataResponse[DocumentVersionOut])
async def decide_version(
    version_id: str,
    body: DecisionRequest,
    admin: Caller = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
    storage: ByteStorage = Depends(get_storage),
):
    """Accept or reject a version. Re-deciding overwrites the previous decision."""
    version = await _svc(session, storage).admin_decide(
        version_id, body.status, body.comment, decided_by=admin.id
    )
    return {"data": DocumentVersionOut.model_validate(version)}


@router.get("/versions/{version_id}/download")
async def download_version(
    version_id: str,
    admin: Caller = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
    storage: ByteStorage = Depends(get_storage),
):
    downloaded = await _svc(session, storage).download(version_id, admin)
    return file_response(downloaded)


@router.get("/agencies/{agency_id}/status", response_model=DataResponse[VerificationStatusOut])
async def agency_status(
    agency_id: str,
    _admin: Caller = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
    storage: ByteStorage = Depends(get_storage),
):
    summary = await _svc(session, storage).verification_status(agency_id)
    return {"data": summary_out(summary)}


@router.post("/agencies/{agency_id}/recompute", response_model=DataResponse[RecomputeOut])
async def recompute_agency(
    agency_id: str,
    _admin: Caller = Depends(require_admin),
    session: AsyncSession = Depends(get_db),
    storage: ByteStorage = Depends(get_storage),
):
    """Re-run the verification aggregation, e.g. after the required set changed."""
    verified = await _svc(session, storage).recompute(agency_id)
    return {"data": RecomputeOut(agency_id=agency_id, verified=verified)}
