"""Caller identity — who is making the request, and in which role.

Sessions are owned by the upstream gateway, which forwards the
authenticated account id in the ``X-User-Id`` header. This module only
resolves that id to an account and enforces role requirements.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import AccountRole
from app.core.exceptions import ForbiddenError, UnauthorizedError
from app.db.base import get_db
from app.repositories.account import AccountRepository

CALLER_HEADER = "X-User-Id"


@dataclass(frozen=True)
class Caller:
    id: str
    role: AccountRole

    @property
    def is_admin(self) -> bool:
        return self.role == AccountRole.ADMIN

    @property
    def is_agency(self) -> bool:
        return self.role == AccountRole.AGENCY


async def resolve_caller(
    user_id: str | None = Header(default=None, alias=CALLER_HEADER),
    session: AsyncSession = Depends(get_db),
) -> Caller:
    """Canonical authentication dependency: header → existing account → Caller."""
    if not user_id:
        raise UnauthorizedError()
    account = await AccountRepository(session).get_by_id(user_id)
    if account is None:
        raise UnauthorizedError("Unknown account")
    return Caller(id=account.id, role=AccountRole(account.role))


async def require_agency(caller: Caller = Depends(resolve_caller)) -> Caller:
    if not caller.is_agency:
        raise ForbiddenError("Agency account required")
    return caller


async def require_admin(caller: Caller = Depends(resolve_caller)) -> Caller:
    if not caller.is_admin:
        raise ForbiddenError("Administrator account required")
    return caller
