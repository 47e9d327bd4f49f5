"""Address registry: normalized postal addresses with exact-match dedup."""

from __future__ import annotations

import logging
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from docflow.errors import InvalidArgumentError, NotFoundIdError
from docflow.models.address import Address
from docflow.models.contragent import Contragent
from docflow.services.filters import AddressQuery

logger = logging.getLogger(__name__)


class AddressService:
    """Service for storing and looking up addresses.

    Addresses are shared: many Contragent links may point at one row. New
    rows are only created after ``strong_find`` misses.

    Usage:
        async with async_session_factory() as session:
            service = AddressService(session)
            address = await service.get_or_create(AddressQuery.from_raw(...))
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the service with a database session."""
        self._session = session

    async def get(self, address_id: UUID) -> Address:
        address = await self._session.get(Address, address_id)
        if address is None:
            raise NotFoundIdError(f"Address {address_id} not found")
        return address

    async def find_all(
        self,
        *,
        country: str | None,
        city: str | None,
        street: str | None,
        postal_index: str | None = None,
        house_number: str | None = None,
        apartment_number: str | None = None,
    ) -> list[Address]:
        """Find addresses matching every supplied field.

        Country, city and street are required. Optional fields that are
        absent do not constrain the result.

        Raises:
            InvalidArgumentError: If country, city or street is empty.
        """
        query = AddressQuery.from_raw(
            postal_index=postal_index,
            country=country,
            city=city,
            street=street,
            house_number=house_number,
            apartment_number=apartment_number,
        )
        if query.country is None:
            raise InvalidArgumentError("Country is empty")
        if query.city is None:
            raise InvalidArgumentError("City is empty")
        if query.street is None:
            raise InvalidArgumentError("Street is empty")

        stmt = select(Address).where(*query.predicates())
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def strong_find(self, candidate: AddressQuery) -> Address | None:
        """Find the stored address equal to ``candidate`` field by field.

        Fields absent from the candidate must be NULL in the stored row, so
        an address without an apartment number only matches other addresses
        without one.

        If concurrent inserts produced duplicates, the first match is used.
        """
        stmt = select(Address).where(*candidate.strong_predicates()).limit(1)
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def get_or_create(self, candidate: AddressQuery) -> Address:
        """Return the matching stored address, inserting one on a miss."""
        existing = await self.strong_find(candidate)
        if existing is not None:
            logger.debug("Address dedup hit: %s", existing.address_id)
            return existing

        if candidate.country is None or candidate.city is None or candidate.street is None:
            raise InvalidArgumentError("Country, city and street are required for an address")

        address = Address(address_id=uuid4(), **candidate.to_model_fields())
        self._session.add(address)
        await self._session.flush()
        logger.info("Created address %s", address.address_id)
        return address

    async def update(self, address_id: UUID, candidate: AddressQuery) -> Address:
        """Overwrite every field of a stored address.

        The change is visible to every link sharing the row.
        """
        address = await self.get(address_id)
        if candidate.country is None or candidate.city is None or candidate.street is None:
            raise InvalidArgumentError("Country, city and street are required for an address")

        for field_name, value in candidate.to_model_fields().items():
            setattr(address, field_name, value)
        await self._session.flush()
        logger.info("Updated address %s", address_id)
        return address

    async def delete(self, address_id: UUID) -> None:
        """Hard-delete an address.

        Links that used it are soft-deleted and lose their address reference
        before the row is removed.
        """
        address = await self.get(address_id)

        stmt = (
            update(Contragent)
            .where(Contragent.address_id == address_id)
            .values(is_deleted=True, address_id=None)
            .execution_options(synchronize_session="fetch")
        )
        result = await self._session.execute(stmt)

        await self._session.delete(address)
        await self._session.flush()
        logger.info("Deleted address %s (%d links detached)", address_id, result.rowcount)
