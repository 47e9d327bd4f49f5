"""Contragent model: the link binding a person and/or organization to an address."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from docflow.models.address import Address
from docflow.models.base import Base, utcnow
from docflow.models.organization import Organization
from docflow.models.person import Person


class Contragent(Base):
    """One counterparty role instance.

    Three shapes exist:
    - person link: person + address, search_name is the person's FIO
    - organization address link: organization + address, search_name is
      the uppercased organization name; carries the company's contact
      person when one was given at creation
    - employee link (``is_employee``): person + organization, search_name
      is FIO + position; the address is NULL when the organization had
      none at bind time

    Links are never hard-deleted by the service layer; ``is_deleted`` is a
    one-way ACTIVE -> DELETED transition. Related rows are never lazy-loaded:
    queries must ask for them with ``joinedload``/``selectinload``.
    """

    __tablename__ = "contragents"
    __table_args__ = (
        CheckConstraint(
            "person_id IS NOT NULL OR organization_id IS NOT NULL",
            name="ck_contragents_person_or_organization",
        ),
        CheckConstraint(
            "NOT is_employee OR (person_id IS NOT NULL AND organization_id IS NOT NULL)",
            name="ck_contragents_employee_shape",
        ),
    )

    contragent_id: Mapped[UUID] = mapped_column(primary_key=True)
    person_id: Mapped[UUID | None] = mapped_column(ForeignKey("persons.person_id"), index=True)
    organization_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("organizations.organization_id"), index=True
    )
    address_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("addresses.address_id", ondelete="SET NULL"), index=True
    )
    search_name: Mapped[str] = mapped_column(String(1024), index=True)
    person_position: Mapped[str | None] = mapped_column(String(255))
    is_employee: Mapped[bool] = mapped_column(Boolean, default=False)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Relationships (many-to-one only, loaded explicitly)
    person: Mapped[Person | None] = relationship(lazy="raise")
    organization: Mapped[Organization | None] = relationship(lazy="raise")
    address: Mapped[Address | None] = relationship(lazy="raise")
