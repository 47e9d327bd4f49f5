"""Contragent service: creation, binding, search and soft delete of links.

This is where the three registries meet. A Contragent row is created for
every association and is never deduplicated itself; the Address, Person and
Organization rows it points at are looked up first and reused when an exact
match exists (see ``AddressService.strong_find``).

Search names are denormalized, uppercased identity strings:
- person link: FIO (first + middle + last)
- organization address link: organization name (the contact person, if
  any, rides on the link but not in the search name)
- employee link: FIO + position
"""

from __future__ import annotations

import logging
from uuid import UUID, uuid4

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from docflow.errors import InvalidArgumentError, NotFoundIdError
from docflow.models.address import Address
from docflow.models.contragent import Contragent
from docflow.models.enums import ContragentKind
from docflow.models.organization import Organization
from docflow.models.person import Person
from docflow.schemas import (
    AddressIn,
    ContragentCreate,
    ContragentParameters,
    EmployeeAddressBind,
    EmployeeIn,
    EmployeeOut,
)
from docflow.services.address import AddressService
from docflow.services.filters import (
    AddressQuery,
    PersonQuery,
    active,
    build_search_name,
    normalize_plain,
)
from docflow.services.organization import OrganizationService
from docflow.services.person import PersonService

logger = logging.getLogger(__name__)


def _address_query(address: AddressIn) -> AddressQuery:
    return AddressQuery.from_raw(
        postal_index=address.postal_index,
        country=address.country,
        city=address.city,
        street=address.street,
        house_number=address.house_number,
        apartment_number=address.apartment_number,
    )


def _person_query(employee: EmployeeIn) -> PersonQuery:
    return PersonQuery.from_raw(
        first_name=employee.first_name,
        middle_name=employee.middle_name,
        last_name=employee.last_name,
    )


def _parameters_query(parameters: ContragentParameters) -> PersonQuery:
    return PersonQuery.from_raw(
        first_name=parameters.first_name,
        middle_name=parameters.middle_name,
        last_name=parameters.last_name,
    )


def employee_search_name(person: Person, position: str | None) -> str:
    return build_search_name(person.first_name, person.middle_name, person.last_name, position)


class ContragentService:
    """Orchestrates the address, person and organization registries.

    The registries are injected so callers (and tests) can share one
    session across all of them; by default they are built on ``session``.

    Usage:
        async with async_session_factory() as session:
            service = ContragentService(session)
            links = await service.save(dto)
            await session.commit()
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        addresses: AddressService | None = None,
        persons: PersonService | None = None,
        organizations: OrganizationService | None = None,
    ) -> None:
        self._session = session
        self.addresses = addresses or AddressService(session)
        self.persons = persons or PersonService(session)
        self.organizations = organizations or OrganizationService(session)

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    async def get(self, contragent_id: UUID | None) -> Contragent:
        """Load a link by id, deleted or not, with its related rows."""
        if contragent_id is None:
            raise NotFoundIdError("Contragent id is empty")
        stmt = (
            select(Contragent)
            .options(
                joinedload(Contragent.person),
                joinedload(Contragent.organization),
                joinedload(Contragent.address),
            )
            .where(Contragent.contragent_id == contragent_id)
        )
        result = await self._session.execute(stmt)
        contragent = result.scalars().first()
        if contragent is None:
            raise NotFoundIdError(f"Contragent {contragent_id} not found")
        return contragent

    async def search_contragents(self, text: str | None) -> list[Contragent]:
        """Case-insensitive substring search over search names of active links."""
        text = normalize_plain(text)
        if text is None:
            return []

        stmt = active(
            select(Contragent)
            .options(
                joinedload(Contragent.person),
                joinedload(Contragent.organization),
                joinedload(Contragent.address),
            )
            .where(func.upper(Contragent.search_name).contains(text.upper(), autoescape=True))
            .order_by(Contragent.search_name, Contragent.created_at)
        )
        result = await self._session.execute(stmt)
        contragents = list(result.scalars().all())
        logger.debug("Search %r matched %d contragents", text, len(contragents))
        return contragents

    async def search_employees(
        self,
        *,
        last_name: str | None,
        first_name: str | None = None,
        middle_name: str | None = None,
        position: str | None = None,
    ) -> list[EmployeeOut]:
        """Find employee links whose search name contains the given parts.

        The parts are concatenated in the same order as employee search names
        (first, middle, last, position), so they must be contiguous there.
        """
        if normalize_plain(last_name) is None:
            raise InvalidArgumentError("Last name is empty")

        search_text = build_search_name(first_name, middle_name, last_name, position)
        return [
            EmployeeOut.from_model(c)
            for c in await self.search_contragents(search_text)
            if c.is_employee
        ]

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    async def save(self, dto: ContragentCreate) -> list[Contragent]:
        """Create a new person or company counterparty with its links.

        All validation happens before anything is written.

        Raises:
            InvalidArgumentError: If no identifying parameter is given, the
                identity of the requested kind is empty, or no address is
                supplied.
        """
        parameters = dto.parameters
        if parameters.is_empty():
            raise InvalidArgumentError("Main parameters of the contragent are not filled in")

        addresses = [_address_query(a) for a in dto.addresses if not a.is_empty()]
        if not addresses:
            raise InvalidArgumentError("At least one address is required")
        for address in addresses:
            if address.country is None or address.city is None or address.street is None:
                raise InvalidArgumentError("Country, city and street are required for an address")

        if dto.type is ContragentKind.PERSON:
            if not parameters.has_person_name():
                raise InvalidArgumentError("Person name is empty")
            return await self._save_person(parameters, addresses)

        if normalize_plain(parameters.name_company) is None:
            raise InvalidArgumentError("Company name is empty")
        return await self._save_company(parameters, addresses, dto.employees)

    async def _save_person(
        self, parameters: ContragentParameters, addresses: list[AddressQuery]
    ) -> list[Contragent]:
        person = await self.persons.save(_parameters_query(parameters))
        links = []
        for candidate in addresses:
            address = await self.addresses.get_or_create(candidate)
            links.append(self._link(address=address, person=person, search_name=person.fio))
        await self._session.flush()
        logger.info("Created person contragent %s with %d addresses", person.person_id, len(links))
        return links

    async def _save_company(
        self,
        parameters: ContragentParameters,
        addresses: list[AddressQuery],
        employees: list[EmployeeIn],
    ) -> list[Contragent]:
        organization = await self.organizations.get_or_create(parameters.name_company)
        search_name = build_search_name(organization.name)

        contact = None
        if parameters.has_person_name():
            contact = await self.persons.save(_parameters_query(parameters))

        links = []
        stored_addresses = []
        for candidate in addresses:
            address = await self.addresses.get_or_create(candidate)
            stored_addresses.append(address)
            links.append(
                self._link(
                    address=address,
                    person=contact,
                    organization=organization,
                    search_name=search_name,
                )
            )

        # Employees are bound to the first address given for the company.
        for person, position in await self.persons.save_employees(employees):
            links.append(
                self._link(
                    address=stored_addresses[0],
                    person=person,
                    organization=organization,
                    employee=True,
                    position=position,
                    search_name=employee_search_name(person, position),
                )
            )

        await self._session.flush()
        logger.info(
            "Created company contragent %s with %d links",
            organization.organization_id,
            len(links),
        )
        return links

    # -------------------------------------------------------------------------
    # Binding
    # -------------------------------------------------------------------------

    async def bind_address_with_person(
        self, person_id: UUID | None, address: AddressIn
    ) -> Contragent:
        """Attach a (deduplicated) address to an existing person."""
        if person_id is None:
            raise NotFoundIdError("Person id is empty")
        person = await self.persons.get(person_id)
        stored = await self.addresses.get_or_create(_address_query(address))

        link = self._link(address=stored, person=person, search_name=person.fio)
        await self._session.flush()
        logger.info("Bound address %s to person %s", stored.address_id, person_id)
        return link

    async def bind_address_with_organization(
        self, organization_id: UUID | None, address: AddressIn
    ) -> Contragent:
        """Attach a (deduplicated) address to an existing organization."""
        if organization_id is None:
            raise NotFoundIdError("Organization id is empty")
        organization = await self.organizations.get(organization_id)
        stored = await self.addresses.get_or_create(_address_query(address))

        link = self._link(
            address=stored,
            organization=organization,
            search_name=build_search_name(organization.name),
        )
        await self._session.flush()
        logger.info("Bound address %s to organization %s", stored.address_id, organization_id)
        return link

    async def bind_employee_with_organization(
        self, organization_id: UUID | None, employee: EmployeeIn
    ) -> EmployeeOut:
        """Create a new employee of an organization.

        The link gets the organization's primary address, or no address at
        all when the organization has none yet.
        """
        if organization_id is None:
            raise NotFoundIdError("Organization id is empty")
        organization = await self.organizations.get(organization_id)
        if employee.is_empty():
            raise InvalidArgumentError("Employee is empty")

        address = await self.organizations.primary_address(organization_id)

        person = await self.persons.save(_person_query(employee))
        position = normalize_plain(employee.person_position)
        link = self._link(
            address=address,
            person=person,
            organization=organization,
            employee=True,
            position=position,
            search_name=employee_search_name(person, position),
        )
        await self._session.flush()
        logger.info("Bound employee %s to organization %s", person.person_id, organization_id)
        return EmployeeOut.from_model(link)

    async def bind_employee_with_address(self, dto: EmployeeAddressBind) -> Contragent:
        """Create an employee link for a known organization at a given address.

        Both the address and the person are looked up by exact match first
        and only created on a miss.
        """
        if dto.id is None:
            raise NotFoundIdError("Organization id is empty")
        organization = await self.organizations.get(dto.id)
        if dto.employee.is_empty():
            raise InvalidArgumentError("Employee is empty")

        address = await self.addresses.get_or_create(_address_query(dto.address))
        person = await self.persons.get_or_create(_person_query(dto.employee))
        position = normalize_plain(dto.employee.person_position)

        link = self._link(
            address=address,
            person=person,
            organization=organization,
            employee=True,
            position=position,
            search_name=employee_search_name(person, position),
        )
        await self._session.flush()
        logger.info("Bound employee %s with address %s", person.person_id, address.address_id)
        return link

    # -------------------------------------------------------------------------
    # Update / delete
    # -------------------------------------------------------------------------

    async def update_employee(self, employee: EmployeeIn) -> Contragent:
        """Rename an employee and change their position.

        The rename goes through ``PersonService.update`` so the person's other
        links get their search names rewritten too; this link's search name is
        then rebuilt from the new FIO and position.
        """
        if employee.id is None:
            raise InvalidArgumentError("ID is empty")
        if normalize_plain(employee.last_name) is None:
            raise InvalidArgumentError("Last name is empty")

        contragent = await self.get(employee.id)
        if not contragent.is_employee:
            raise NotFoundIdError(f"Contragent {employee.id} is not an employee")

        person = await self.persons.update(contragent.person_id, _person_query(employee))
        contragent.person_position = normalize_plain(employee.person_position)
        contragent.search_name = employee_search_name(person, contragent.person_position)

        await self._session.flush()
        logger.info("Updated employee link %s", contragent.contragent_id)
        return contragent

    async def delete(self, contragent_id: UUID) -> None:
        """Soft-delete one link. Related person/address/organization rows stay."""
        contragent = await self._session.get(Contragent, contragent_id)
        if contragent is None:
            raise NotFoundIdError(f"Contragent {contragent_id} not found")
        if contragent.is_deleted:
            return
        contragent.is_deleted = True
        await self._session.flush()
        logger.info("Soft-deleted contragent %s", contragent_id)

    def _link(
        self,
        *,
        address: Address | None,
        search_name: str,
        person: Person | None = None,
        organization: Organization | None = None,
        employee: bool = False,
        position: str | None = None,
    ) -> Contragent:
        contragent = Contragent(
            contragent_id=uuid4(),
            person_id=person.person_id if person else None,
            organization_id=organization.organization_id if organization else None,
            address_id=address.address_id if address else None,
            person=person,
            organization=organization,
            address=address,
            search_name=search_name,
            person_position=position,
            is_employee=employee,
            is_deleted=False,
        )
        self._session.add(contragent)
        return contragent
