"""Eligibility aggregator — derives an agency's ``verified`` flag.

An agency is verified iff, for every document type in the required set,
its record exists and the version with the highest ``version_number`` is
``accepted``. Older accepted versions do not count once a newer version
exists. The required set is injected, never read from a global here.
"""


import logging
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import DocumentStatus, DocumentType
from app.core.exceptions import NotFoundError
from app.domain.document import AgencyDocumentVersion
from app.repositories.account import AccountRepository
from app.repositories.document import AgencyDocumentVersionRepository
from app.services.document_registry import DocumentRegistry
from app.services.version_store import select_latest_version

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequirementStatus:
    document_type: DocumentType
    required: bool
    document_id: str | None
    latest_version: AgencyDocumentVersion | None

    @property
    def met(self) -> bool:
        return (
            self.latest_version is not None
            and self.latest_version.status == DocumentStatus.ACCEPTED.value
        )


class EligibilityAggregator:
    def __init__(self, session: AsyncSession, required_types: Iterable[DocumentType]):
        self._accounts = AccountRepository(session)
        self._registry = DocumentRegistry(session)
        self._versions = AgencyDocumentVersionRepository(session)
        # Preserve configured order, drop duplicates.
        self._required = tuple(dict.fromkeys(DocumentType(t) for t in required_types))

    @property
    def required_types(self) -> tuple[DocumentType, ...]:
        return self._required

    async def requirement_status(
        self, agency_id: str, document_type: DocumentType
    ) -> RequirementStatus:
        document = await self._registry.find(agency_id, document_type)
        latest = None
        if document is not None:
            latest = select_latest_version(await self._versions.latest_candidates(document.id))
        return RequirementStatus(
            document_type=document_type,
            required=document_type in self._required,
            document_id=document.id if document else None,
            latest_version=latest,
        )

    async def requirement_statuses(
        self, agency_id: str, document_types: Iterable[DocumentType] | None = None
    ) -> list[RequirementStatus]:
        """Status of *document_types* (default: the required set) for an agency."""
        await self._registry.get_agency(agency_id)
        types = self._required if document_types is None else tuple(document_types)
        return [await self.requirement_status(agency_id, t) for t in types]

    async def recompute(self, agency_id: str) -> bool:
        """Re-evaluate and persist the agency's verified flag; return it.

        The agency row is locked first, so recomputes for one agency run one
        after another and each reads the documents the previous one saw
        committed.
        """
        agency = await self._accounts.get_for_update(agency_id)
        if agency is None or not agency.is_agency:
            raise NotFoundError("Agency", agency_id)
        previous = agency.verified

        statuses = await self.requirement_statuses(agency_id)
        verified = all(s.met for s in statuses)

        if verified != previous:
            await self._accounts.set_verified(agency_id, verified)
            logger.info(
                "Agency %s is now %s", agency_id, "verified" if verified else "unverified"
            )
        else:
            unmet = [s.document_type.value for s in statuses if not s.met]
            logger.debug("Agency %s unchanged (verified=%s, unmet=%s)", agency_id, verified, unmet)
        return verified
