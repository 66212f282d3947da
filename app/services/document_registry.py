"""Document registry — one record per (agency, document type).

Records are created lazily on the first upload of a type and never mutated
or deleted afterwards. Creation is guarded by the unique constraint on
(agency_id, document_type), so two concurrent first uploads of the same
type end up sharing one record.
"""


import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import DocumentType
from app.core.exceptions import ConflictError, InvalidArgumentError, NotFoundError
from app.domain.account import Account
from app.domain.document import AgencyDocument
from app.repositories.account import AccountRepository
from app.repositories.document import AgencyDocumentRepository

logger = logging.getLogger(__name__)


def parse_document_type(value: str | DocumentType) -> DocumentType:
    """Return the enum member for *value* or raise InvalidArgumentError."""
    try:
        return DocumentType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in DocumentType)
        raise InvalidArgumentError(
            f"Invalid document type '{value}'. Expected one of: {allowed}"
        ) from None


class DocumentRegistry:
    def __init__(self, session: AsyncSession):
        self._accounts = AccountRepository(session)
        self._repo = AgencyDocumentRepository(session)

    async def get_agency(self, agency_id: str) -> Account:
        """Resolve an agency-role account or raise NotFoundError."""
        account = await self._accounts.get_by_id(agency_id)
        if account is None or not account.is_agency:
            raise NotFoundError("Agency", agency_id)
        return account

    async def get(self, document_id: str) -> AgencyDocument:
        document = await self._repo.get_by_id(document_id)
        if document is None:
            raise NotFoundError("Document", document_id)
        return document

    async def find(self, agency_id: str, document_type: str | DocumentType) -> AgencyDocument | None:
        """Look up a record without creating it."""
        doc_type = parse_document_type(document_type)
        return await self._repo.find(agency_id, doc_type.value)

    async def get_or_create(self, agency_id: str, document_type: str | DocumentType) -> AgencyDocument:
        """Idempotent upsert keyed on (agency_id, document_type)."""
        doc_type = parse_document_type(document_type)
        await self.get_agency(agency_id)

        existing = await self._repo.find(agency_id, doc_type.value)
        if existing is not None:
            return existing

        candidate = AgencyDocument(agency_id=agency_id, document_type=doc_type.value)
        if await self._repo.try_insert(candidate):
            logger.info("Created %s document record %s for agency %s", doc_type.value, candidate.id, agency_id)
            return candidate

        # Lost the race to a concurrent creator; share its record.
        winner = await self._repo.find(agency_id, doc_type.value)
        if winner is None:
            raise ConflictError(
                f"Could not create {doc_type.value} document for agency '{agency_id}'"
            )
        return winner
