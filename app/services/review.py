"""Review state machine for a single document version.

    submitted ──► accepted
        │            ▲ │
        ▼            │ ▼
    rejected ◄───────┘

A version starts ``submitted``. An admin decision moves it to ``accepted``
or ``rejected``; a decided version may be decided again (to correct a
mistake), which overwrites the decision fields. Nothing moves a version
back to ``submitted``: a new upload starts a new version instead.

Every decision is also appended to the audit trail, so earlier decisions on
a version stay visible even though the version keeps only the latest one.

Deciding does not recompute the agency's verified flag; callers run the
eligibility aggregator afterwards in the same unit of work.
"""


import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import DECISION_STATUSES, DocumentStatus
from app.core.exceptions import InvalidArgumentError, NotFoundError
from app.domain.audit import AuditTrail
from app.domain.document import AgencyDocumentVersion
from app.repositories.document import AgencyDocumentVersionRepository

logger = logging.getLogger(__name__)

DECIDE_ACTION = "document_version.decide"


def can_transition(current: DocumentStatus, target: DocumentStatus) -> bool:
    """Return True if a version in *current* may move to *target*.

    Versions are created ``submitted`` by the version store; from any state
    the only targets are the decision statuses.
    """
    return target in DECISION_STATUSES


def parse_decision(value: str | DocumentStatus) -> DocumentStatus:
    try:
        status = DocumentStatus(value)
    except ValueError:
        status = None
    if status not in DECISION_STATUSES:
        allowed = ", ".join(sorted(s.value for s in DECISION_STATUSES))
        raise InvalidArgumentError(f"Invalid status '{value}'. Expected one of: {allowed}")
    return status


class ReviewStateMachine:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._versions = AgencyDocumentVersionRepository(session)

    async def decide(
        self,
        version_id: str,
        new_status: str | DocumentStatus,
        decided_by: str,
        comment: str | None = None,
    ) -> AgencyDocumentVersion:
        """Record an admin decision on *version_id* and return the version."""
        status = parse_decision(new_status)

        version = await self._versions.get_by_id(version_id)
        if version is None:
            raise NotFoundError("Document version", version_id)

        previous = DocumentStatus(version.status)
        if not can_transition(previous, status):
            raise InvalidArgumentError(
                f"Cannot move version from '{previous.value}' to '{status.value}'"
            )

        old_value = {"status": previous.value, "comment": version.status_comment}
        version.status = status.value
        version.status_changed_by = decided_by
        version.status_changed_at = datetime.now(timezone.utc)
        version.status_comment = comment

        self._session.add(
            AuditTrail(
                actor_id=decided_by,
                action=DECIDE_ACTION,
                entity_type="agency_document_version",
                entity_id=version.id,
                old_value=old_value,
                new_value={"status": status.value, "comment": comment},
                description=f"{previous.value} -> {status.value}",
            )
        )
        await self._session.flush()

        logger.info(
            "Version %s of document %s: %s -> %s by %s",
            version.version_number, version.document_id, previous.value, status.value, decided_by,
        )
        return version
