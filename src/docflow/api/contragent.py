"""Counterparty endpoints: search, creation and the person/company editors.

Deleting an address, an employee or a person's address under ``/edit/...``
removes the Contragent link (ids returned by the listing endpoints are link
ids), never the shared address or person row.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from docflow.db import get_session
from docflow.schemas import (
    AddressBind,
    AddressOut,
    AddressUpdate,
    ContragentCreate,
    ContragentOut,
    EmployeeAddressBind,
    EmployeeIn,
    EmployeeOut,
    OrganizationOut,
    OrganizationUpdate,
    PersonOut,
    PersonUpdate,
)
from docflow.services.address import AddressService
from docflow.services.contragent import ContragentService
from docflow.services.filters import AddressQuery, PersonQuery
from docflow.services.organization import OrganizationService
from docflow.services.person import PersonService

router = APIRouter(prefix="/contragent", tags=["contragent"])

SessionDep = Annotated[AsyncSession, Depends(get_session)]
OptionalQuery = Annotated[str | None, Query()]


def _address_query(address: AddressBind | AddressUpdate) -> AddressQuery:
    return AddressQuery.from_raw(
        postal_index=address.postal_index,
        country=address.country,
        city=address.city,
        street=address.street,
        house_number=address.house_number,
        apartment_number=address.apartment_number,
    )


# -----------------------------------------------------------------------------
# Search / create
# -----------------------------------------------------------------------------


@router.get("")
async def search_contragents(
    session: SessionDep,
    search_name: Annotated[str | None, Query(alias="searchName")] = None,
) -> list[ContragentOut]:
    found = await ContragentService(session).search_contragents(search_name)
    return [ContragentOut.from_model(c) for c in found]


@router.post("/add")
async def add_contragent(dto: ContragentCreate, session: SessionDep) -> list[ContragentOut]:
    links = await ContragentService(session).save(dto)
    return [ContragentOut.from_model(c) for c in links]


# -----------------------------------------------------------------------------
# Persons
# -----------------------------------------------------------------------------


@router.get("/edit/person")
async def find_persons(
    session: SessionDep,
    first_name: OptionalQuery = None,
    middle_name: OptionalQuery = None,
    last_name: OptionalQuery = None,
) -> list[PersonOut]:
    persons = await PersonService(session).find_all(
        first_name=first_name, middle_name=middle_name, last_name=last_name
    )
    return [PersonOut.from_model(p) for p in persons]


@router.post("/edit/person")
async def edit_person(person: PersonUpdate, session: SessionDep) -> PersonOut:
    updated = await PersonService(session).update(
        person.id,
        PersonQuery.from_raw(
            first_name=person.first_name,
            middle_name=person.middle_name,
            last_name=person.last_name,
        ),
    )
    return PersonOut.from_model(updated)


@router.delete("/edit/person/{person_id}")
async def delete_person(person_id: UUID, session: SessionDep) -> None:
    await PersonService(session).delete(person_id)


@router.get("/edit/person/{person_id}/address")
async def get_person_addresses(person_id: UUID, session: SessionDep) -> list[AddressOut]:
    return await PersonService(session).get_addresses(person_id)


@router.post("/edit/person/address")
async def add_person_address(address: AddressBind, session: SessionDep) -> ContragentOut:
    """Attach an address to a person; ``address.id`` is the person id."""
    link = await ContragentService(session).bind_address_with_person(address.id, address)
    return ContragentOut.from_model(link)


@router.delete("/edit/person/address/{contragent_id}")
async def delete_person_address(contragent_id: UUID, session: SessionDep) -> None:
    await ContragentService(session).delete(contragent_id)


# -----------------------------------------------------------------------------
# Addresses
# -----------------------------------------------------------------------------


@router.get("/edit/address")
async def find_addresses(
    session: SessionDep,
    country: OptionalQuery = None,
    city: OptionalQuery = None,
    street: OptionalQuery = None,
    post_index: OptionalQuery = None,
    house_number: OptionalQuery = None,
    apartment_number: OptionalQuery = None,
) -> list[AddressOut]:
    addresses = await AddressService(session).find_all(
        postal_index=post_index,
        country=country,
        city=city,
        street=street,
        house_number=house_number,
        apartment_number=apartment_number,
    )
    return [AddressOut.from_model(a) for a in addresses]


@router.post("/edit/address")
async def edit_address(address: AddressUpdate, session: SessionDep) -> AddressOut:
    updated = await AddressService(session).update(address.id, _address_query(address))
    return AddressOut.from_model(updated)


@router.delete("/edit/address/{address_id}")
async def delete_address(address_id: UUID, session: SessionDep) -> None:
    await AddressService(session).delete(address_id)


# -----------------------------------------------------------------------------
# Companies
# -----------------------------------------------------------------------------


@router.get("/edit/company")
async def find_companies(
    session: SessionDep,
    name_company: OptionalQuery = None,
) -> list[OrganizationOut]:
    organizations = await OrganizationService(session).find_all(name_company)
    return [OrganizationOut.from_model(o) for o in organizations]


@router.post("/edit/company")
async def edit_company(organization: OrganizationUpdate, session: SessionDep) -> OrganizationOut:
    updated = await OrganizationService(session).update(organization.id, organization.name)
    return OrganizationOut.from_model(updated)


@router.delete("/edit/company/{organization_id}")
async def delete_company(organization_id: UUID, session: SessionDep) -> None:
    await OrganizationService(session).delete(organization_id)


@router.get("/edit/company/{organization_id}/address")
async def get_company_addresses(organization_id: UUID, session: SessionDep) -> list[AddressOut]:
    return await OrganizationService(session).get_addresses(organization_id)


@router.post("/edit/company/address")
async def add_company_address(address: AddressBind, session: SessionDep) -> ContragentOut:
    """Attach an address to a company; ``address.id`` is the organization id."""
    link = await ContragentService(session).bind_address_with_organization(address.id, address)
    return ContragentOut.from_model(link)


@router.delete("/edit/company/address/{contragent_id}")
async def delete_company_address(contragent_id: UUID, session: SessionDep) -> None:
    await ContragentService(session).delete(contragent_id)


@router.get("/edit/company/{organization_id}/employee")
async def get_company_employees(organization_id: UUID, session: SessionDep) -> list[EmployeeOut]:
    return await OrganizationService(session).get_employees(organization_id)


@router.post("/edit/company/employee")
async def add_company_employee(employee: EmployeeIn, session: SessionDep) -> EmployeeOut:
    """Add an employee to a company; ``employee.id`` is the organization id."""
    return await ContragentService(session).bind_employee_with_organization(employee.id, employee)


@router.post("/edit/company/employee_and_address")
async def add_company_employee_and_address(
    dto: EmployeeAddressBind, session: SessionDep
) -> ContragentOut:
    link = await ContragentService(session).bind_employee_with_address(dto)
    return ContragentOut.from_model(link)


@router.delete("/edit/company/employee/{contragent_id}")
async def delete_company_employee(contragent_id: UUID, session: SessionDep) -> None:
    await ContragentService(session).delete(contragent_id)


# -----------------------------------------------------------------------------
# Employees
# -----------------------------------------------------------------------------


@router.get("/edit/employee")
async def find_employees(
    session: SessionDep,
    first_name: OptionalQuery = None,
    middle_name: OptionalQuery = None,
    last_name: OptionalQuery = None,
    position: OptionalQuery = None,
) -> list[EmployeeOut]:
    return await ContragentService(session).search_employees(
        first_name=first_name,
        middle_name=middle_name,
        last_name=last_name,
        position=position,
    )


@router.post("/edit/employee")
async def edit_employee(employee: EmployeeIn, session: SessionDep) -> ContragentOut:
    link = await ContragentService(session).update_employee(employee)
    return ContragentOut.from_model(link)


@router.delete("/edit/employee/{contragent_id}")
async def delete_employee(contragent_id: UUID, session: SessionDep) -> None:
    await ContragentService(session).delete(contragent_id)
