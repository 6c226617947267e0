from __future__ import annotations
from typing import Optional
from sqlalchemy.ext.asyncio import async_sessionmaker, AsyncSession
from sqlalchemy import text

class AsyncUnitOfWork:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._sf = session_factory
        self.session: Optional[AsyncSession] = None

    async def __aenter__(self):
        self.session = self._sf()
        await self.session.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        try:
            if exc:
                await self.session.rollback()
            else:
                await self.session.commit()
        finally:
            await self.session.__aexit__(exc_type, exc, tb)

    async def advisory_lock_user(self, user_id: int | None):
        """Транзакционный advisory-lock по user_id. Сериализует изменения членства одного пользователя."""
        if user_id is None:
            return
        if self.session.bind.dialect.name != "postgresql":
            return
        await self.session.execute(
            text("SELECT pg_advisory_xact_lock(hashtext(:k))"), {"k": f"membership:{user_id}"}
        )
