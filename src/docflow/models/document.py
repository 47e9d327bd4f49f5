"""Document registration models: incoming/outgoing documents and their lookups."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from docflow.models.base import Base, utcnow
from docflow.models.contragent import Contragent
from docflow.models.enums import DocStateKey


class State(Base):
    """Row of the fixed document state lookup table."""

    __tablename__ = "states"

    state_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    business_key: Mapped[DocStateKey] = mapped_column(unique=True)
    title: Mapped[str] = mapped_column(String(255))


class DocType(Base):
    """Kind of document (letter, contract, order...)."""

    __tablename__ = "doc_types"

    doc_type_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True)


class DocIn(Base):
    """An incoming document, registered on arrival."""

    __tablename__ = "docs_in"

    doc_id: Mapped[UUID] = mapped_column(primary_key=True)
    reg_number: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    reg_date: Mapped[date] = mapped_column(Date, index=True)
    doc_type_id: Mapped[int | None] = mapped_column(ForeignKey("doc_types.doc_type_id"))
    contragent_id: Mapped[UUID | None] = mapped_column(ForeignKey("contragents.contragent_id"))
    outer_number: Mapped[str | None] = mapped_column(String(64))
    outer_date: Mapped[date | None] = mapped_column(Date)
    summary: Mapped[str | None] = mapped_column(Text)
    state_id: Mapped[int] = mapped_column(ForeignKey("states.state_id"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    state: Mapped[State] = relationship(lazy="raise")
    doc_type: Mapped[DocType | None] = relationship(lazy="raise")
    contragent: Mapped[Contragent | None] = relationship(lazy="raise")


class DocOut(Base):
    """An outgoing document, drafted and then moved through signing."""

    __tablename__ = "docs_out"

    doc_id: Mapped[UUID] = mapped_column(primary_key=True)
    reg_number: Mapped[str | None] = mapped_column(String(64), unique=True, index=True)
    create_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    doc_type_id: Mapped[int | None] = mapped_column(ForeignKey("doc_types.doc_type_id"))
    contragent_id: Mapped[UUID | None] = mapped_column(ForeignKey("contragents.contragent_id"))
    reply_to_id: Mapped[UUID | None] = mapped_column(ForeignKey("docs_in.doc_id"))
    summary: Mapped[str | None] = mapped_column(Text)
    appendix: Mapped[str | None] = mapped_column(Text)
    state_id: Mapped[int] = mapped_column(ForeignKey("states.state_id"))

    state: Mapped[State] = relationship(lazy="raise")
    doc_type: Mapped[DocType | None] = relationship(lazy="raise")
    contragent: Mapped[Contragent | None] = relationship(lazy="raise")
