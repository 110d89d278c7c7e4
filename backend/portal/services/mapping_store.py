"""
Identifier mapping store.

Durable association from an allocated patient identifier to the account it
stands for, and the uniqueness oracle the allocator consults. ``create`` is
the real uniqueness gate: it inserts inside a SAVEPOINT and lets the primary
key reject a duplicate, so two registrations that picked the same identifier
can never both succeed.
"""

import logging
from typing import Optional
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from portal.exceptions import AlreadyExists, StorageUnavailable
from portal.models.identifier_mapping import IdentifierMapping

logger = logging.getLogger(__name__)


class MappingStore:
    """Data access for ``IdentifierMapping`` rows on one session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def exists(self, identifier: str) -> bool:
        try:
            found = await self.session.scalar(
                select(IdentifierMapping.identifier).where(IdentifierMapping.identifier == identifier)
            )
        except SQLAlchemyError as e:
            logger.error("Mapping existence check failed for %s: %s", identifier, e)
            raise StorageUnavailable(f"exists({identifier}) failed") from e
        return found is not None

    async def create(
        self,
        identifier: str,
        account_id: str,
        national_id: str,
        email: str,
        display_name: str,
    ) -> IdentifierMapping:
        mapping = IdentifierMapping(
            identifier=identifier,
            account_id=account_id,
            national_id=national_id,
            email=email,
            display_name=display_name,
        )
        try:
            async with self.session.begin_nested():
                self.session.add(mapping)
        except IntegrityError as e:
            logger.warning("Identifier %s already taken at insert time", identifier)
            raise AlreadyExists("identifier", identifier) from e
        except SQLAlchemyError as e:
            logger.error("Mapping insert failed for %s: %s", identifier, e)
            raise StorageUnavailable(f"create({identifier}) failed") from e
        return mapping

    async def lookup(self, identifier: str) -> Optional[IdentifierMapping]:
        try:
            result = await self.session.execute(
                select(IdentifierMapping).where(IdentifierMapping.identifier == identifier)
            )
        except SQLAlchemyError as e:
            logger.error("Mapping lookup failed for %s: %s", identifier, e)
            raise StorageUnavailable(f"lookup({identifier}) failed") from e
        return result.scalar_one_or_none()

    async def find_by_national_id(self, national_id: str) -> list[IdentifierMapping]:
        try:
            result = await self.session.execute(
                select(IdentifierMapping)
                .where(IdentifierMapping.national_id == national_id)
                .order_by(IdentifierMapping.created_at)
            )
        except SQLAlchemyError as e:
            logger.error("Mapping query by national ID failed: %s", e)
            raise StorageUnavailable("find_by_national_id failed") from e
        return list(result.scalars().all())
