"""Consent repository — data access layer for user consent records."""

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from whatsapp_otp.errors import PersistenceError
from whatsapp_otp.models.user import User


class ConsentRepository:
    """Encapsulates all database queries related to consent records."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_phone(self, phone: str) -> User | None:
        """Look up a user by their normalized phone number."""
        stmt = select(User).where(User.phone == phone)
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Consent lookup failed: {exc}") from exc
        return result.scalar_one_or_none()

    async def upsert(self, phone: str, terms_accepted: bool = True) -> User:
        """Create the record for *phone*, or update ``terms_accepted`` if it exists.

        Flushes but does not commit; the caller owns the transaction.
        """
        user = await self.find_by_phone(phone)
        if user is None:
            user = User(phone=phone, terms_accepted=terms_accepted)
            self._session.add(user)
        else:
            user.terms_accepted = terms_accepted
        try:
            await self._session.flush()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Consent upsert failed: {exc}") from exc
        return user
