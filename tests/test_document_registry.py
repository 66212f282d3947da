import asyncio

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import InvalidRequestError

from app.core.enums import DocumentType
from app.core.exceptions import InvalidArgumentError, NotFoundError
from app.domain.document import AgencyDocument
from app.services.document_registry import DocumentRegistry, parse_document_type


async def _count_records(session, agency_id):
    result = await session.execute(
        select(func.count()).select_from(AgencyDocument).where(AgencyDocument.agency_id == agency_id)
    )
    return result.scalar_one()


def test_parse_document_type_accepts_enum_values():
    assert parse_document_type("tax_id") is DocumentType.TAX_ID
    assert parse_document_type(DocumentType.INSURANCE) is DocumentType.INSURANCE


def test_parse_document_type_rejects_unknown_value():
    with pytest.raises(InvalidArgumentError) as exc_info:
        parse_document_type("passport")
    assert "passport" in exc_info.value.message
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_get_or_create_creates_record_once(session, agency):
    registry = DocumentRegistry(session)

    first = await registry.get_or_create(agency.id, DocumentType.REGISTRATION_CERTIFICATE)
    second = await registry.get_or_create(agency.id, "registration_certificate")

    assert first.id == second.id
    assert first.agency_id == agency.id
    assert first.document_type == "registration_certificate"
    assert first.created_at is not None
    assert await _count_records(session, agency.id) == 1


@pytest.mark.asyncio
async def test_get_or_create_keeps_one_record_per_type(session, agency):
    registry = DocumentRegistry(session)

    rc = await registry.get_or_create(agency.id, DocumentType.REGISTRATION_CERTIFICATE)
    tax = await registry.get_or_create(agency.id, DocumentType.TAX_ID)

    assert rc.id != tax.id
    assert await _count_records(session, agency.id) == 2


@pytest.mark.asyncio
async def test_get_or_create_does_not_mutate_existing_record(session, agency):
    registry = DocumentRegistry(session)
    created = await registry.get_or_create(agency.id, DocumentType.TAX_ID)
    created_at = created.created_at

    again = await registry.get_or_create(agency.id, DocumentType.TAX_ID)

    assert again.created_at == created_at


@pytest.mark.asyncio
async def test_get_or_create_shares_record_after_losing_insert_race(session, session_factory, agency, monkeypatch):
    # Another request created the record first.
    async with session_factory() as other_session:
        winner = await DocumentRegistry(other_session).get_or_create(agency.id, DocumentType.TAX_ID)
        await other_session.commit()

    registry = DocumentRegistry(session)
    real_find = registry._repo.find
    calls = []

    async def stale_find(agency_id, document_type):
        calls.append(document_type)
        if len(calls) == 1:
            return None  # snapshot taken before the winner committed
        return await real_find(agency_id, document_type)

    monkeypatch.setattr(registry._repo, "find", stale_find)

    record = await registry.get_or_create(agency.id, DocumentType.TAX_ID)

    assert record.id == winner.id
    assert len(calls) == 2
    assert await _count_records(session, agency.id) == 1


@pytest.mark.asyncio
async def test_get_or_create_rejects_invalid_type(session, agency):
    with pytest.raises(InvalidArgumentError):
        await DocumentRegistry(session).get_or_create(agency.id, "driving_licence")


@pytest.mark.asyncio
async def test_get_or_create_unknown_agency(session):
    with pytest.raises(NotFoundError):
        await DocumentRegistry(session).get_or_create("no-such-agency", DocumentType.TAX_ID)


@pytest.mark.asyncio
async def test_get_or_create_requires_agency_role(session, admin):
    with pytest.raises(NotFoundError):
        await DocumentRegistry(session).get_or_create(admin.id, DocumentType.TAX_ID)


@pytest.mark.asyncio
async def test_find_never_creates(session, agency):
    registry = DocumentRegistry(session)

    assert await registry.find(agency.id, DocumentType.INSURANCE) is None
    assert await _count_records(session, agency.id) == 0


@pytest.mark.asyncio
async def test_get_unknown_document(session):
    with pytest.raises(NotFoundError):
        await DocumentRegistry(session).get("missing-document")


@pytest.mark.asyncio
async def test_concurrent_first_uploads_share_one_record(session_factory, agency):
    async def create():
        async with session_factory() as db_session:
            record = await DocumentRegistry(db_session).get_or_create(agency.id, DocumentType.TAX_ID)
            await db_session.commit()
            return record.id

    ids = await asyncio.gather(*(create() for _ in range(4)))

    assert len(set(ids)) == 1
    async with session_factory() as db_session:
        assert await _count_records(db_session, agency.id) == 1


@pytest.mark.asyncio
async def test_record_relationships_are_never_loaded_implicitly(session_factory, agency):
    async with session_factory() as db_session:
        await DocumentRegistry(db_session).get_or_create(agency.id, DocumentType.TAX_ID)
        await db_session.commit()

    async with session_factory() as db_session:
        record = await DocumentRegistry(db_session).find(agency.id, DocumentType.TAX_ID)
        with pytest.raises(InvalidRequestError):
            record.versions
        with pytest.raises(InvalidRequestError):
            record.agency
