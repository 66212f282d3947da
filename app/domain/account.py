"""SQLAlchemy ORM model for platform accounts.

Agencies (suppliers) are accounts with role ``agency``; their ``verified``
flag is derived from their compliance documents and is only ever written by
the eligibility aggregator. Admins review documents.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.enums import AccountRole
from app.db.base import Base
from app.domain.mixins import TimestampMixin, UUIDPrimaryKeyMixin


class Account(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "accounts"

    # "agency" | "admin" | "user"
    role: Mapped[str] = mapped_column(
        String(20), default=AccountRole.USER.value, nullable=False, index=True
    )
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True)

    verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    documents: Mapped[List["AgencyDocument"]] = relationship(
        back_populates="agency", lazy="raise"
    )

    @property
    def is_agency(self) -> bool:
        return self.role == AccountRole.AGENCY.value

    @property
    def is_admin(self) -> bool:
        return self.role == AccountRole.ADMIN.value
