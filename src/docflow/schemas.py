"""Pydantic schemas for the HTTP surface.

Request models mirror the forms of the counterparty editor: a new
counterparty arrives as one ``ContragentCreate`` carrying its identifying
parameters, addresses and (for companies) employees. Response models are
flat projections of the ORM rows; related rows are embedded, never linked.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Annotated, Any, Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, Field

from docflow.models.enums import ContragentKind, DocStateKey

if TYPE_CHECKING:
    from docflow.models import Address, Contragent, DocIn, DocOut, Organization, Person


def _coerce_to_optional_string(v: Any) -> str | None:
    """Coerce scalar form values to strings.

    Postal indexes and house numbers often arrive as JSON numbers.
    """
    if v is None:
        return None
    return str(v)


OptionalStr = Annotated[str | None, BeforeValidator(_coerce_to_optional_string)]


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


# -----------------------------------------------------------------------------
# Addresses
# -----------------------------------------------------------------------------


class AddressIn(BaseModel):
    """A postal address as entered by the user."""

    postal_index: OptionalStr = None
    country: OptionalStr = None
    city: OptionalStr = None
    street: OptionalStr = None
    house_number: OptionalStr = None
    apartment_number: OptionalStr = None

    def is_empty(self) -> bool:
        return all(
            _blank(v)
            for v in (
                self.postal_index,
                self.country,
                self.city,
                self.street,
                self.house_number,
                self.apartment_number,
            )
        )


class AddressBind(AddressIn):
    """An address to attach to an existing person or organization.

    ``id`` carries the id of the owner (person or organization), not of the
    address.
    """

    id: UUID | None = None


class AddressUpdate(AddressIn):
    """Replacement values for a stored address."""

    id: UUID


class AddressOut(BaseModel):
    """A stored address.

    When listed for a person or organization, ``id`` is the id of the
    Contragent link, so the entry can be deleted without touching the
    shared address row.
    """

    id: UUID
    postal_index: str | None = None
    country: str | None = None
    city: str | None = None
    street: str | None = None
    house_number: str | None = None
    apartment_number: str | None = None

    @classmethod
    def from_model(cls, address: Address, *, id: UUID | None = None) -> AddressOut:
        return cls(
            id=id or address.address_id,
            postal_index=address.postal_index,
            country=address.country,
            city=address.city,
            street=address.street,
            house_number=address.house_number,
            apartment_number=address.apartment_number,
        )


# -----------------------------------------------------------------------------
# Persons and organizations
# -----------------------------------------------------------------------------


class ContragentParameters(BaseModel):
    """Identifying parameters of a new counterparty."""

    first_name: str | None = None
    middle_name: str | None = None
    last_name: str | None = None
    name_company: str | None = None

    def has_person_name(self) -> bool:
        return not all(_blank(v) for v in (self.first_name, self.middle_name, self.last_name))

    def is_empty(self) -> bool:
        return not self.has_person_name() and _blank(self.name_company)


class PersonUpdate(BaseModel):
    """New name parts for an existing person."""

    id: UUID | None = None
    first_name: str | None = None
    middle_name: str | None = None
    last_name: str | None = None


class PersonOut(BaseModel):
    id: UUID
    first_name: str | None = None
    middle_name: str | None = None
    last_name: str | None = None

    @classmethod
    def from_model(cls, person: Person) -> PersonOut:
        return cls(
            id=person.person_id,
            first_name=person.first_name,
            middle_name=person.middle_name,
            last_name=person.last_name,
        )


class OrganizationUpdate(BaseModel):
    id: UUID | None = None
    name: str | None = None


class OrganizationOut(BaseModel):
    id: UUID
    name: str

    @classmethod
    def from_model(cls, organization: Organization) -> OrganizationOut:
        return cls(id=organization.organization_id, name=organization.name)


# -----------------------------------------------------------------------------
# Employees
# -----------------------------------------------------------------------------


class EmployeeIn(BaseModel):
    """An employee of a company.

    Depending on the endpoint ``id`` is the organization id (binding a new
    employee) or the employee's Contragent id (updating one).
    """

    id: UUID | None = None
    first_name: str | None = None
    middle_name: str | None = None
    last_name: str | None = None
    person_position: str | None = None

    def is_empty(self) -> bool:
        return all(
            _blank(v)
            for v in (self.first_name, self.middle_name, self.last_name, self.person_position)
        )


class EmployeeOut(BaseModel):
    """An employee projected from its Contragent link (``id`` is the link id)."""

    id: UUID
    first_name: str | None = None
    middle_name: str | None = None
    last_name: str | None = None
    person_position: str | None = None

    @classmethod
    def from_model(cls, contragent: Contragent) -> EmployeeOut:
        person = contragent.person
        return cls(
            id=contragent.contragent_id,
            first_name=person.first_name if person else None,
            middle_name=person.middle_name if person else None,
            last_name=person.last_name if person else None,
            person_position=contragent.person_position,
        )


class EmployeeAddressBind(BaseModel):
    """A new employee of a known organization together with their address."""

    id: UUID | None = Field(default=None, description="Organization id")
    employee: EmployeeIn
    address: AddressIn


# -----------------------------------------------------------------------------
# Contragents
# -----------------------------------------------------------------------------


class ContragentCreate(BaseModel):
    """A new counterparty: a person or a company with nested data."""

    type: ContragentKind
    parameters: ContragentParameters
    addresses: list[AddressIn] = Field(default_factory=list)
    employees: list[EmployeeIn] = Field(default_factory=list)


class ContragentOut(BaseModel):
    id: UUID
    search_name: str
    person_position: str | None = None
    is_deleted: bool = False
    person: PersonOut | None = None
    organization: OrganizationOut | None = None
    address: AddressOut | None = None

    @classmethod
    def from_model(cls, contragent: Contragent) -> ContragentOut:
        return cls(
            id=contragent.contragent_id,
            search_name=contragent.search_name,
            person_position=contragent.person_position,
            is_deleted=contragent.is_deleted,
            person=PersonOut.from_model(contragent.person) if contragent.person else None,
            organization=(
                OrganizationOut.from_model(contragent.organization)
                if contragent.organization
                else None
            ),
            address=AddressOut.from_model(contragent.address) if contragent.address else None,
        )


# -----------------------------------------------------------------------------
# Documents
# -----------------------------------------------------------------------------

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One page of a listing."""

    items: list[T]
    page: int
    page_size: int
    total: int


class DocInCreate(BaseModel):
    doc_type_id: int | None = None
    contragent_id: UUID | None = None
    reg_date: date | None = None
    outer_number: str | None = None
    outer_date: date | None = None
    summary: str | None = None


class DocInOut(BaseModel):
    id: UUID
    reg_number: str
    reg_date: date
    doc_type: str | None = None
    contragent_id: UUID | None = None
    outer_number: str | None = None
    outer_date: date | None = None
    summary: str | None = None
    state: DocStateKey

    @classmethod
    def from_model(cls, doc: DocIn) -> DocInOut:
        return cls(
            id=doc.doc_id,
            reg_number=doc.reg_number,
            reg_date=doc.reg_date,
            doc_type=doc.doc_type.name if doc.doc_type else None,
            contragent_id=doc.contragent_id,
            outer_number=doc.outer_number,
            outer_date=doc.outer_date,
            summary=doc.summary,
            state=doc.state.business_key,
        )


class DocOutSave(BaseModel):
    """A new outgoing draft (``id`` empty) or edits to an existing one."""

    id: UUID | None = None
    doc_type_id: int | None = None
    contragent_id: UUID | None = None
    reply_to_id: UUID | None = None
    summary: str | None = None
    appendix: str | None = None


class DocOutFilter(BaseModel):
    state: DocStateKey | None = None
    doc_type_id: int | None = None
    contragent_id: UUID | None = None
    summary: str | None = None


class DocOutOut(BaseModel):
    id: UUID
    reg_number: str | None = None
    create_date: datetime
    doc_type: str | None = None
    contragent_id: UUID | None = None
    reply_to_id: UUID | None = None
    summary: str | None = None
    appendix: str | None = None
    state: DocStateKey

    @classmethod
    def from_model(cls, doc: DocOut) -> DocOutOut:
        return cls(
            id=doc.doc_id,
            reg_number=doc.reg_number,
            create_date=doc.create_date,
            doc_type=doc.doc_type.name if doc.doc_type else None,
            contragent_id=doc.contragent_id,
            reply_to_id=doc.reply_to_id,
            summary=doc.summary,
            appendix=doc.appendix,
            state=doc.state.business_key,
        )


class StateChange(BaseModel):
    state: DocStateKey


class DocIdRequest(BaseModel):
    id: UUID
