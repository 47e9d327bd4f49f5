"""Organization registry: companies, their addresses and employees."""

from __future__ import annotations

import logging
from uuid import UUID, uuid4

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from docflow.errors import InvalidArgumentError, NotFoundIdError
from docflow.models.address import Address
from docflow.models.contragent import Contragent
from docflow.models.organization import Organization
from docflow.schemas import AddressOut, EmployeeOut
from docflow.services.filters import active, build_search_name, normalize_plain

logger = logging.getLogger(__name__)


class OrganizationService:
    """Service for organizations.

    An organization's own addresses are its non-employee links (they may
    carry the company's contact person); its employees are the links
    flagged ``is_employee``.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the service with a database session."""
        self._session = session

    async def get(self, organization_id: UUID) -> Organization:
        organization = await self._session.get(Organization, organization_id)
        if organization is None or organization.is_deleted:
            raise NotFoundIdError(f"Organization {organization_id} not found")
        return organization

    async def find_all(self, name: str | None) -> list[Organization]:
        """Case-insensitive substring search over organization names."""
        name = normalize_plain(name)
        if name is None:
            raise InvalidArgumentError("Company name is empty")

        stmt = (
            select(Organization)
            .where(Organization.is_deleted.is_(False))
            .where(func.upper(Organization.name).contains(name.upper(), autoescape=True))
            .order_by(Organization.name)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def strong_find(self, name: str) -> Organization | None:
        """Exact, case-insensitive name match among organizations not deleted."""
        stmt = (
            select(Organization)
            .where(Organization.is_deleted.is_(False))
            .where(func.upper(Organization.name) == name.upper())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def get_or_create(self, name: str | None) -> Organization:
        name = normalize_plain(name)
        if name is None:
            raise InvalidArgumentError("Company name is empty")

        existing = await self.strong_find(name)
        if existing is not None:
            logger.debug("Organization dedup hit: %s", existing.organization_id)
            return existing

        organization = Organization(organization_id=uuid4(), name=name, is_deleted=False)
        self._session.add(organization)
        await self._session.flush()
        logger.info("Created organization %s", organization.organization_id)
        return organization

    async def get_addresses(self, organization_id: UUID) -> list[AddressOut]:
        """The organization's own active addresses, identified by link id."""
        await self.get(organization_id)
        stmt = active(
            select(Contragent)
            .options(joinedload(Contragent.address))
            .where(Contragent.organization_id == organization_id)
            .where(Contragent.is_employee.is_(False))
            .order_by(Contragent.created_at)
        )
        result = await self._session.execute(stmt)
        return [
            AddressOut.from_model(c.address, id=c.contragent_id)
            for c in result.scalars().all()
            if c.address is not None
        ]

    async def get_employees(self, organization_id: UUID) -> list[EmployeeOut]:
        """Active employees of the organization, identified by link id."""
        await self.get(organization_id)
        stmt = active(
            select(Contragent)
            .options(joinedload(Contragent.person))
            .where(Contragent.organization_id == organization_id)
            .where(Contragent.is_employee.is_(True))
            .order_by(Contragent.created_at)
        )
        result = await self._session.execute(stmt)
        return [EmployeeOut.from_model(c) for c in result.scalars().all()]

    async def primary_address(self, organization_id: UUID) -> Address | None:
        """Address of the most recently added active organization-address link."""
        stmt = active(
            select(Address)
            .join(Contragent, Contragent.address_id == Address.address_id)
            .where(Contragent.organization_id == organization_id)
            .where(Contragent.is_employee.is_(False))
            .order_by(Contragent.created_at.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def update(self, organization_id: UUID | None, name: str | None) -> Organization:
        """Rename an organization and rebuild its address links' search names."""
        if organization_id is None:
            raise NotFoundIdError("Organization id is empty")
        organization = await self.get(organization_id)
        name = normalize_plain(name)
        if name is None:
            raise InvalidArgumentError("Company name is empty")

        organization.name = name
        stmt = select(Contragent).where(
            Contragent.organization_id == organization_id,
            Contragent.is_employee.is_(False),
        )
        result = await self._session.execute(stmt)
        for contragent in result.scalars().all():
            contragent.search_name = build_search_name(name)

        await self._session.flush()
        logger.info("Renamed organization %s", organization_id)
        return organization

    async def delete(self, organization_id: UUID) -> None:
        """Mark the organization deleted and soft-delete every link it has."""
        organization = await self.get(organization_id)
        organization.is_deleted = True

        stmt = active(select(Contragent).where(Contragent.organization_id == organization_id))
        result = await self._session.execute(stmt)
        links = result.scalars().all()
        for contragent in links:
            contragent.is_deleted = True

        await self._session.flush()
        logger.info("Deleted organization %s (%d links)", organization_id, len(links))
