"""Person model for natural persons."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from docflow.models.base import Base


class Person(Base):
    """A natural person. Name parts are stored uppercased.

    Several Person rows may share a name. Persons are never deleted: removing
    a person soft-deletes its Contragent links.
    """

    __tablename__ = "persons"

    person_id: Mapped[UUID] = mapped_column(primary_key=True)
    first_name: Mapped[str | None] = mapped_column(String(255))
    middle_name: Mapped[str | None] = mapped_column(String(255))
    last_name: Mapped[str | None] = mapped_column(String(255), index=True)

    @property
    def fio(self) -> str:
        """First, middle and last name concatenated without separators."""
        return "".join(part for part in (self.first_name, self.middle_name, self.last_name) if part)
