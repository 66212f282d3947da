"""Account repository — the agency store behind the verified flag."""

from datetime import datetime, timezone

from app.domain.account import Account
from app.repositories.base import BaseRepository


class AccountRepository(BaseRepository[Account]):
    model = Account

    async def get_for_update(self, account_id: str) -> Account | None:
        """Load the account with a row lock held until the transaction ends.

        Rows already in the session are refreshed, so the caller sees what
        the previous lock holder committed.
        """
        result = await self._session.execute(
            self._base_query()
            .where(Account.id == account_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def set_verified(self, account_id: str, verified: bool) -> Account | None:
        """Persist the derived flag; ``verified_at`` follows it."""
        return await self.update(
            account_id,
            verified=verified,
            verified_at=datetime.now(timezone.utc) if verified else None,
        )
