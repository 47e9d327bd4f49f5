"""Address model for postal addresses."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from docflow.models.base import Base


class Address(Base):
    """A postal address shared by any number of Contragent links.

    Postal index, country, city and street are stored uppercased; house and
    apartment numbers are stored as entered (stripped). Blank parts are NULL,
    which is what exact-match dedup compares against.
    """

    __tablename__ = "addresses"

    address_id: Mapped[UUID] = mapped_column(primary_key=True)
    postal_index: Mapped[str | None] = mapped_column(String(32))
    country: Mapped[str] = mapped_column(String(255), index=True)
    city: Mapped[str] = mapped_column(String(255), index=True)
    street: Mapped[str] = mapped_column(String(255), index=True)
    house_number: Mapped[str | None] = mapped_column(String(32))
    apartment_number: Mapped[str | None] = mapped_column(String(32))
