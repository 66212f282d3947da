"""Version store — append-only ledger of uploaded document versions.

Each version records the SHA-256 of its bytes and a storage locator it owns
exclusively. Bytes are written before the metadata row is inserted, so the
only inconsistency an interrupted upload can leave behind is an orphan file
without metadata, never metadata pointing at missing bytes.

Version numbers are ``count + 1`` at insert time. The unique constraint on
(document_id, version_number) rejects a number taken by a concurrent
upload; the insert is then retried with a fresh count.
"""


import hashlib
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.enums import DocumentStatus
from app.core.exceptions import (
    ConflictError,
    DataIntegrityError,
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
    PayloadTooLargeError,
)
from app.domain.document import AgencyDocumentVersion
from app.repositories.document import AgencyDocumentRepository, AgencyDocumentVersionRepository
from app.storage.base import ByteStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadMetadata:
    """Caller-supplied facts about an upload, stored verbatim on the version."""

    original_filename: str
    content_type: str
    uploaded_by: str
    note: str | None = None


def compute_digest(data: bytes) -> str:
    """Hex SHA-256 of the raw bytes."""
    return hashlib.sha256(data).hexdigest()


def validate_upload(
    data: bytes,
    content_type: str | None,
    *,
    allowed_content_types: Iterable[str] | None = None,
    max_size_bytes: int | None = None,
) -> None:
    """Reject empty, oversize, or disallowed uploads before anything is stored."""
    allowed = set(allowed_content_types or settings.allowed_content_types)
    limit = max_size_bytes if max_size_bytes is not None else settings.max_upload_size_bytes

    if not data:
        raise InvalidArgumentError("Uploaded file is empty.")
    if (content_type or "").lower() not in allowed:
        accepted = ", ".join(sorted(allowed))
        raise InvalidArgumentError(
            f"Unsupported file type '{content_type}'. Accepted formats: {accepted}"
        )
    if len(data) > limit:
        raise PayloadTooLargeError(
            f"File size exceeds the {limit // (1024 * 1024)}MB limit."
        )


def select_latest_version(
    candidates: Sequence[AgencyDocumentVersion],
) -> AgencyDocumentVersion | None:
    """Return the version with the highest number.

    Raises DataIntegrityError when two versions share that number.
    """
    if not candidates:
        return None
    ordered = sorted(candidates, key=lambda v: v.version_number, reverse=True)
    latest = ordered[0]
    if len(ordered) > 1 and ordered[1].version_number == latest.version_number:
        logger.error(
            "Document %s has two versions numbered %d",
            latest.document_id, latest.version_number,
        )
        raise DataIntegrityError(
            f"Document '{latest.document_id}' has more than one version "
            f"numbered {latest.version_number}"
        )
    return latest


class VersionStore:
    def __init__(
        self,
        session: AsyncSession,
        storage: ByteStorage,
        *,
        max_retries: int | None = None,
    ):
        self._documents = AgencyDocumentRepository(session)
        self._versions = AgencyDocumentVersionRepository(session)
        self._storage = storage
        self._max_retries = max_retries or settings.version_append_max_retries

    async def get_version(self, version_id: str) -> AgencyDocumentVersion:
        version = await self._versions.get_by_id(version_id)
        if version is None:
            raise NotFoundError("Document version", version_id)
        return version

    async def latest_version(self, document_id: str) -> AgencyDocumentVersion | None:
        return select_latest_version(await self._versions.latest_candidates(document_id))

    async def list_versions(self, document_id: str) -> list[AgencyDocumentVersion]:
        """All versions of a record, highest version number first."""
        return await self._versions.list_for_document(document_id)

    async def list_for_agency(self, agency_id: str) -> list[AgencyDocumentVersion]:
        """Every version uploaded for the agency, most recent upload first."""
        return await self._versions.list_for_agency(agency_id)

    async def append_version(
        self,
        document_id: str,
        data: bytes,
        metadata: UploadMetadata,
        owner_id: str | None = None,
    ) -> AgencyDocumentVersion:
        """Store *data* and append a ``submitted`` version to *document_id*.

        *owner_id*, when given, must be the agency owning the record.
        """
        validate_upload(data, metadata.content_type)

        document = await self._documents.get_by_id(document_id)
        if document is None:
            raise NotFoundError("Document", document_id)
        if owner_id is not None and document.agency_id != owner_id:
            raise ForbiddenError("Document belongs to another agency")

        digest = compute_digest(data)
        locator = self._storage.build_locator(
            document.agency_id, document.document_type, metadata.original_filename
        )
        await self._storage.write(locator, data)

        for attempt in range(1, self._max_retries + 1):
            number = await self._versions.next_version_number(document_id)
            version = AgencyDocumentVersion(
                document_id=document_id,
                version_number=number,
                original_filename=metadata.original_filename,
                content_type=metadata.content_type,
                size_bytes=len(data),
                sha256=digest,
                abs_path=locator.absolute_path,
                rel_path=locator.relative_path,
                status=DocumentStatus.SUBMITTED.value,
                uploaded_by=metadata.uploaded_by,
                note=metadata.note,
            )
            if await self._versions.try_insert(version):
                logger.info(
                    "Appended version %d (%s, %d bytes, sha256=%s) to document %s",
                    number, metadata.content_type, len(data), digest[:12], document_id,
                )
                return version
            logger.warning(
                "Version number %d already taken for document %s (attempt %d/%d)",
                number, document_id, attempt, self._max_retries,
            )

        raise ConflictError(
            f"Could not allocate a version number for document '{document_id}' "
            f"after {self._max_retries} attempts; retry the upload."
        )
