"""Agency verification service — the operations the rest of the platform calls.

Composes the document registry, version store, review state machine and
eligibility aggregator. Each public method runs inside the caller's session
(one request = one unit of work); ``admin_decide`` returns only after the
owning agency's verified flag reflects the decision.

Rule: No FastAPI here. Authorization facts arrive as a :class:`Caller`.
"""


import logging
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.enums import DocumentStatus, DocumentType
from app.core.exceptions import DataIntegrityError, ForbiddenError
from app.core.identity import Caller
from app.core.pagination import PaginationParams
from app.domain.account import Account
from app.domain.document import AgencyDocument, AgencyDocumentVersion
from app.repositories.document import AgencyDocumentRepository
from app.services.document_registry import DocumentRegistry, parse_document_type
from app.services.eligibility import EligibilityAggregator, RequirementStatus
from app.services.review import ReviewStateMachine
from app.services.version_store import UploadMetadata, VersionStore, validate_upload
from app.storage.base import ByteStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentWithLatest:
    document: AgencyDocument
    latest_version: AgencyDocumentVersion | None


@dataclass(frozen=True)
class VerificationSummary:
    agency: Account
    requirements: list[RequirementStatus]


@dataclass(frozen=True)
class DownloadedFile:
    content: bytes
    filename: str
    content_type: str


class AgencyVerificationService:
    def __init__(
        self,
        session: AsyncSession,
        storage: ByteStorage,
        required_types: Iterable[DocumentType] | None = None,
    ):
        self._storage = storage
        self._documents = AgencyDocumentRepository(session)
        self.registry = DocumentRegistry(session)
        self.versions = VersionStore(session, storage)
        self.review = ReviewStateMachine(session)
        self.eligibility = EligibilityAggregator(
            session,
            settings.required_document_types if required_types is None else required_types,
        )

    # ------------------------------------------------------------------
    # Agency operations
    # ------------------------------------------------------------------

    async def upload(
        self,
        agency_id: str,
        document_type: str | DocumentType,
        data: bytes,
        metadata: UploadMetadata,
    ) -> AgencyDocumentVersion:
        """Upsert the (agency, type) record and append a submitted version.

        The new version becomes the latest of its type, so a required type
        that was accepted is pending again; the flag is recomputed here too.
        """
        doc_type = parse_document_type(document_type)
        validate_upload(data, metadata.content_type)
        document = await self.registry.get_or_create(agency_id, doc_type)
        version = await self.versions.append_version(document.id, data, metadata, owner_id=agency_id)
        await self.eligibility.recompute(agency_id)
        return version

    async def list_my_documents(self, agency_id: str) -> list[DocumentWithLatest]:
        await self.registry.get_agency(agency_id)
        results = []
        for document in await self._documents.list_for_agency(agency_id):
            latest = await self.versions.latest_version(document.id)
            results.append(DocumentWithLatest(document, latest))
        return results

    async def list_history(self, agency_id: str) -> list[AgencyDocumentVersion]:
        await self.registry.get_agency(agency_id)
        return await self.versions.list_for_agency(agency_id)

    async def verification_status(self, agency_id: str) -> VerificationSummary:
        """Verified flag plus the status of every document type for the agency."""
        agency = await self.registry.get_agency(agency_id)
        requirements = await self.eligibility.requirement_statuses(agency_id, list(DocumentType))
        return VerificationSummary(agency=agency, requirements=requirements)

    # ------------------------------------------------------------------
    # Admin operations
    # ------------------------------------------------------------------

    async def admin_list_all(
        self,
        pagination: PaginationParams,
        agency_id: str | None = None,
        document_type: str | None = None,
    ) -> tuple[list[AgencyDocument], int]:
        filters = {
            "agency_id": agency_id,
            "document_type": parse_document_type(document_type).value if document_type else None,
        }
        return await self._documents.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort,
            order=pagination.order,
            filters=filters,
        )

    async def admin_list_versions(self, document_id: str) -> list[AgencyDocumentVersion]:
        await self.registry.get(document_id)
        return await self.versions.list_versions(document_id)

    async def admin_decide(
        self,
        version_id: str,
        status: str | DocumentStatus,
        comment: str | None,
        decided_by: str,
    ) -> AgencyDocumentVersion:
        """Record the decision, then recompute the owning agency's flag."""
        version = await self.review.decide(version_id, status, decided_by, comment)
        document = await self.registry.get(version.document_id)
        await self.eligibility.recompute(document.agency_id)
        return version

    async def recompute(self, agency_id: str) -> bool:
        return await self.eligibility.recompute(agency_id)

    # ------------------------------------------------------------------
    # Download (owning agency or admin)
    # ------------------------------------------------------------------

    async def download(self, version_id: str, caller: Caller) -> DownloadedFile:
        version = await self.versions.get_version(version_id)
        document = await self.registry.get(version.document_id)
        if not caller.is_admin and document.agency_id != caller.id:
            raise ForbiddenError("You may only download your own documents")

        locator = self._storage.locate(version.rel_path)
        try:
            content = await self._storage.read(locator)
        except FileNotFoundError:
            logger.error(
                "Version %s references missing bytes at %s", version.id, version.rel_path
            )
            raise DataIntegrityError(
                f"Stored file for document version '{version.id}' is missing"
            ) from None
        return DownloadedFile(
            content=content,
            filename=version.original_filename,
            content_type=version.content_type,
        )
