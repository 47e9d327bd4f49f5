"""Person registry: natural persons and the search names of their links."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from docflow.errors import InvalidArgumentError, NotFoundIdError, NotFoundPersonError
from docflow.models.contragent import Contragent
from docflow.models.person import Person
from docflow.schemas import AddressOut, EmployeeIn
from docflow.services.filters import PersonQuery, active, normalize_plain

logger = logging.getLogger(__name__)


class PersonService:
    """Service for persons.

    Persons are not deduplicated on ``save``; several rows may carry the
    same name. A person is never deleted, only its Contragent links are.

    Usage:
        async with async_session_factory() as session:
            service = PersonService(session)
            persons = await service.find_all(last_name="Ivanov")
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the service with a database session."""
        self._session = session

    async def get(self, person_id: UUID) -> Person:
        person = await self._session.get(Person, person_id)
        if person is None:
            raise NotFoundPersonError(f"Person {person_id} not found")
        return person

    async def save(self, parameters: PersonQuery) -> Person:
        """Insert a new person with normalized name parts."""
        person = Person(person_id=uuid4(), **parameters.to_model_fields())
        self._session.add(person)
        await self._session.flush()
        logger.info("Created person %s", person.person_id)
        return person

    async def save_employees(
        self, employees: Iterable[EmployeeIn]
    ) -> list[tuple[Person, str | None]]:
        """Create one person per non-empty employee entry.

        Returns:
            (Person, position) pairs in input order.
        """
        saved: list[tuple[Person, str | None]] = []
        for employee in employees:
            if employee.is_empty():
                continue
            person = await self.save(
                PersonQuery.from_raw(
                    first_name=employee.first_name,
                    middle_name=employee.middle_name,
                    last_name=employee.last_name,
                )
            )
            saved.append((person, normalize_plain(employee.person_position)))
        return saved

    async def find_all(
        self,
        *,
        last_name: str | None,
        first_name: str | None = None,
        middle_name: str | None = None,
    ) -> list[Person]:
        """Find persons by name parts.

        Only persons with at least one active plain-person link (no
        organization) are returned; employees of companies are not.

        Raises:
            InvalidArgumentError: If last name is empty.
        """
        query = PersonQuery.from_raw(
            first_name=first_name, middle_name=middle_name, last_name=last_name
        )
        if query.last_name is None:
            raise InvalidArgumentError("Last name is empty")

        has_plain_link = active(
            select(Contragent.contragent_id).where(
                Contragent.person_id == Person.person_id,
                Contragent.organization_id.is_(None),
            )
        )
        stmt = select(Person).where(*query.predicates(), has_plain_link.exists())
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def strong_find(self, candidate: PersonQuery) -> Person | None:
        """Exact name match; absent first/middle names must be NULL in the row."""
        stmt = select(Person).where(*candidate.strong_predicates()).limit(1)
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def get_or_create(self, candidate: PersonQuery) -> Person:
        existing = await self.strong_find(candidate)
        if existing is not None:
            logger.debug("Person dedup hit: %s", existing.person_id)
            return existing
        return await self.save(candidate)

    async def update(self, person_id: UUID | None, parameters: PersonQuery) -> Person:
        """Rename a person and rewrite the search names of its links.

        Each linked Contragent (deleted ones included) gets the old FIO
        replaced by the new one inside its search name with a literal
        substring replace. A search name that does not contain the old FIO
        is left as it is.

        Raises:
            NotFoundIdError: If ``person_id`` is missing.
            NotFoundPersonError: If no person has this id.
        """
        if person_id is None:
            raise NotFoundIdError("Person id is empty")
        person = await self.get(person_id)

        old_fio = person.fio
        new_fio = parameters.fio
        for field_name, value in parameters.to_model_fields().items():
            setattr(person, field_name, value)

        if old_fio != new_fio:
            for contragent in await self._links(person_id, include_deleted=True):
                if old_fio and old_fio in contragent.search_name:
                    contragent.search_name = contragent.search_name.replace(old_fio, new_fio)
                else:
                    logger.debug(
                        "Search name of %s does not contain %r, left unchanged",
                        contragent.contragent_id,
                        old_fio,
                    )
            logger.info("Renamed person %s", person_id)

        await self._session.flush()
        return person

    async def delete(self, person_id: UUID) -> None:
        """Soft-delete every link of the person; the person row is kept."""
        await self.get(person_id)
        links = await self._links(person_id, include_deleted=False)
        for contragent in links:
            contragent.is_deleted = True
        await self._session.flush()
        logger.info("Soft-deleted %d links of person %s", len(links), person_id)

    async def get_addresses(self, person_id: UUID) -> list[AddressOut]:
        """Addresses of the person's active links.

        Each entry carries the Contragent id instead of the address id, so
        callers delete the link and never the shared address.
        """
        await self.get(person_id)
        stmt = active(
            select(Contragent)
            .options(joinedload(Contragent.address))
            .where(Contragent.person_id == person_id)
            .order_by(Contragent.created_at)
        )
        result = await self._session.execute(stmt)
        return [
            AddressOut.from_model(c.address, id=c.contragent_id)
            for c in result.scalars().all()
            if c.address is not None
        ]

    async def _links(self, person_id: UUID, *, include_deleted: bool) -> list[Contragent]:
        stmt = select(Contragent).where(Contragent.person_id == person_id)
        if not include_deleted:
            stmt = active(stmt)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
