"""Repositories for agency document records and versions."""

from sqlalchemy import func, select

from app.domain.document import AgencyDocument, AgencyDocumentVersion
from app.repositories.base import BaseRepository


class AgencyDocumentRepository(BaseRepository[AgencyDocument]):
    model = AgencyDocument

    async def find(self, agency_id: str, document_type: str) -> AgencyDocument | None:
        result = await self._session.execute(
            self._base_query()
            .where(AgencyDocument.agency_id == agency_id)
            .where(AgencyDocument.document_type == document_type)
        )
        return result.scalars().first()

    async def list_for_agency(self, agency_id: str) -> list[AgencyDocument]:
        result = await self._session.execute(
            self._base_query()
            .where(AgencyDocument.agency_id == agency_id)
            .order_by(AgencyDocument.created_at.asc())
        )
        return list(result.scalars().all())


class AgencyDocumentVersionRepository(BaseRepository[AgencyDocumentVersion]):
    model = AgencyDocumentVersion

    async def count_for_document(self, document_id: str) -> int:
        result = await self._session.execute(
            select(func.count())
            .select_from(AgencyDocumentVersion)
            .where(AgencyDocumentVersion.document_id == document_id)
        )
        return result.scalar_one()

    async def next_version_number(self, document_id: str) -> int:
        return await self.count_for_document(document_id) + 1

    async def latest_candidates(self, document_id: str) -> list[AgencyDocumentVersion]:
        """Top two versions by number; two are fetched so a tie can be detected."""
        result = await self._session.execute(
            self._base_query()
            .where(AgencyDocumentVersion.document_id == document_id)
            .order_by(AgencyDocumentVersion.version_number.desc())
            .limit(2)
        )
        return list(result.scalars().all())

    async def list_for_document(self, document_id: str) -> list[AgencyDocumentVersion]:
        result = await self._session.execute(
            self._base_query()
            .where(AgencyDocumentVersion.document_id == document_id)
            .order_by(AgencyDocumentVersion.version_number.desc())
        )
        return list(result.scalars().all())

    async def list_for_agency(self, agency_id: str) -> list[AgencyDocumentVersion]:
        result = await self._session.execute(
            self._base_query()
            .join(AgencyDocument, AgencyDocument.id == AgencyDocumentVersion.document_id)
            .where(AgencyDocument.agency_id == agency_id)
            .order_by(
                AgencyDocumentVersion.uploaded_at.desc(),
                AgencyDocumentVersion.version_number.desc(),
            )
        )
        return list(result.scalars().all())
