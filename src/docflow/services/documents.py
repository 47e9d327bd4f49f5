"""Incoming/outgoing document registration and state workflow.

Documents carry a registration number assigned at registration and a state
from the fixed ``states`` lookup table. State changes are checked against
``ALLOWED_TRANSITIONS``; any other change raises
``InvalidStateTransitionError``.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from docflow.config import settings
from docflow.errors import InvalidStateTransitionError, NotFoundIdError
from docflow.models.contragent import Contragent
from docflow.models.document import DocIn, DocOut, DocType, State
from docflow.models.enums import ALLOWED_TRANSITIONS, STATE_TITLES, DocStateKey
from docflow.schemas import DocInCreate, DocOutFilter, DocOutSave

logger = logging.getLogger(__name__)


def normalize_page(page: int | None) -> int:
    """Pages are 1-based; anything missing or below 1 means the first page."""
    if page is None or page < 1:
        return 1
    return page


def format_reg_number(prefix: str, year: int, sequence: int) -> str:
    return f"{prefix}-{year}-{sequence:06d}"


def check_transition(current: DocStateKey, target: DocStateKey) -> None:
    """Raise if a document may not move from ``current`` to ``target``."""
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidStateTransitionError(
            f"Cannot change state from {current.value} to {target.value}"
        )


async def next_reg_number(
    session: AsyncSession, model: type[DocIn] | type[DocOut], prefix: str
) -> str:
    """Next free registration number for ``prefix`` in the current year.

    The sequence continues from the highest number issued with the same
    prefix and year, so deleting a document never makes the sequence fall
    back onto a number still in use. Sequences are zero-padded, so the
    highest number is also the greatest string. Concurrent registrations
    may race; the unique constraint on ``reg_number`` rejects the loser.
    """
    year = date.today().year
    pattern = f"{prefix}-{year}-%"
    stmt = select(func.max(model.reg_number)).where(model.reg_number.like(pattern))
    last = (await session.execute(stmt)).scalar_one_or_none()
    issued = int(last.rsplit("-", 1)[1]) if last else 0
    return format_reg_number(prefix, year, issued + 1)


class StateService:
    """Access to the document state lookup table."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def seed(self) -> None:
        """Insert any missing state rows."""
        result = await self._session.execute(select(State.business_key))
        present = set(result.scalars().all())
        for key in DocStateKey:
            if key not in present:
                self._session.add(State(business_key=key, title=STATE_TITLES[key]))
        await self._session.flush()

    async def get_by_key(self, key: DocStateKey) -> State:
        stmt = select(State).where(State.business_key == key)
        state = (await self._session.execute(stmt)).scalar_one_or_none()
        if state is None:
            raise NotFoundIdError(f"State {key.value} is not seeded")
        return state

    async def list_states(self) -> list[State]:
        result = await self._session.execute(select(State).order_by(State.state_id))
        return list(result.scalars().all())


class DocTypeService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_doc_types(self) -> list[DocType]:
        result = await self._session.execute(select(DocType).order_by(DocType.name))
        return list(result.scalars().all())

    async def get(self, doc_type_id: int) -> DocType:
        doc_type = await self._session.get(DocType, doc_type_id)
        if doc_type is None:
            raise NotFoundIdError(f"Document type {doc_type_id} not found")
        return doc_type

    async def get_or_create(self, name: str) -> DocType:
        stmt = select(DocType).where(DocType.name == name)
        doc_type = (await self._session.execute(stmt)).scalar_one_or_none()
        if doc_type is None:
            doc_type = DocType(name=name)
            self._session.add(doc_type)
            await self._session.flush()
        return doc_type


class _DocumentService:
    """Lookups shared by the incoming and outgoing document services."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self.states = StateService(session)
        self.doc_types = DocTypeService(session)

    async def _check_refs(self, doc_type_id: int | None, contragent_id: UUID | None) -> None:
        if doc_type_id is not None:
            await self.doc_types.get(doc_type_id)
        if contragent_id is not None and await self._session.get(Contragent, contragent_id) is None:
            raise NotFoundIdError(f"Contragent {contragent_id} not found")


class DocInService(_DocumentService):
    """Incoming documents: registered on arrival, listed by registration date."""

    async def list_page(self, page: int | None) -> tuple[list[DocIn], int]:
        """One page of incoming documents, oldest registration first.

        Returns:
            Tuple of (documents on the page, total count).
        """
        page = normalize_page(page)
        total = (await self._session.execute(select(func.count()).select_from(DocIn))).scalar_one()
        stmt = (
            select(DocIn)
            .options(joinedload(DocIn.state), joinedload(DocIn.doc_type))
            .order_by(DocIn.reg_date, DocIn.reg_number)
            .offset((page - 1) * settings.page_size)
            .limit(settings.page_size)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all()), total

    async def get(self, doc_id: UUID) -> DocIn:
        stmt = (
            select(DocIn)
            .options(joinedload(DocIn.state), joinedload(DocIn.doc_type))
            .where(DocIn.doc_id == doc_id)
        )
        doc = (await self._session.execute(stmt)).scalar_one_or_none()
        if doc is None:
            raise NotFoundIdError(f"Incoming document {doc_id} not found")
        return doc

    async def register(self, dto: DocInCreate) -> DocIn:
        """Register an incoming document: new number, state ``registered``."""
        await self._check_refs(dto.doc_type_id, dto.contragent_id)
        state = await self.states.get_by_key(DocStateKey.REGISTERED)
        doc = DocIn(
            doc_id=uuid4(),
            reg_number=await next_reg_number(self._session, DocIn, settings.reg_number_prefix_in),
            reg_date=dto.reg_date or date.today(),
            doc_type_id=dto.doc_type_id,
            contragent_id=dto.contragent_id,
            outer_number=dto.outer_number,
            outer_date=dto.outer_date,
            summary=dto.summary,
            state_id=state.state_id,
        )
        self._session.add(doc)
        await self._session.flush()
        logger.info("Registered incoming document %s as %s", doc.doc_id, doc.reg_number)
        return await self.get(doc.doc_id)

    async def delete(self, doc_id: UUID) -> None:
        doc = await self.get(doc_id)
        await self._session.delete(doc)
        await self._session.flush()
        logger.info("Deleted incoming document %s", doc_id)


class DocOutService(_DocumentService):
    """Outgoing documents: drafted, signed and sent, listed newest first."""

    async def list_page(
        self, page: int | None, filters: DocOutFilter | None = None
    ) -> tuple[list[DocOut], int]:
        page = normalize_page(page)
        conditions: list[Any] = []
        if filters is not None:
            if filters.state is not None:
                conditions.append(State.business_key == filters.state)
            if filters.doc_type_id is not None:
                conditions.append(DocOut.doc_type_id == filters.doc_type_id)
            if filters.contragent_id is not None:
                conditions.append(DocOut.contragent_id == filters.contragent_id)
            if filters.summary:
                conditions.append(
                    func.upper(DocOut.summary).contains(filters.summary.upper(), autoescape=True)
                )

        count_stmt = (
            select(func.count())
            .select_from(DocOut)
            .join(State, State.state_id == DocOut.state_id)
            .where(*conditions)
        )
        total = (await self._session.execute(count_stmt)).scalar_one()

        stmt = (
            select(DocOut)
            .join(State, State.state_id == DocOut.state_id)
            .options(joinedload(DocOut.state), joinedload(DocOut.doc_type))
            .where(*conditions)
            .order_by(DocOut.create_date.desc())
            .offset((page - 1) * settings.page_size)
            .limit(settings.page_size)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all()), total

    async def get(self, doc_id: UUID) -> DocOut:
        stmt = (
            select(DocOut)
            .options(joinedload(DocOut.state), joinedload(DocOut.doc_type))
            .where(DocOut.doc_id == doc_id)
        )
        doc = (await self._session.execute(stmt)).scalar_one_or_none()
        if doc is None:
            raise NotFoundIdError(f"Outgoing document {doc_id} not found")
        return doc

    async def save(self, dto: DocOutSave) -> DocOut:
        """Create a new outgoing document or edit an existing one.

        New documents are registered right away. Documents in a terminal
        state cannot be edited.
        """
        await self._check_refs(dto.doc_type_id, dto.contragent_id)
        if dto.reply_to_id is not None and await self._session.get(DocIn, dto.reply_to_id) is None:
            raise NotFoundIdError(f"Incoming document {dto.reply_to_id} not found")

        if dto.id is None:
            state = await self.states.get_by_key(DocStateKey.REGISTERED)
            doc = DocOut(
                doc_id=uuid4(),
                reg_number=await next_reg_number(
                    self._session, DocOut, settings.reg_number_prefix_out
                ),
                state_id=state.state_id,
            )
            self._session.add(doc)
            logger.info("Registered outgoing document %s as %s", doc.doc_id, doc.reg_number)
        else:
            doc = await self.get(dto.id)
            if not ALLOWED_TRANSITIONS[doc.state.business_key]:
                raise InvalidStateTransitionError(
                    f"Document in state {doc.state.business_key.value} cannot be edited"
                )

        doc.doc_type_id = dto.doc_type_id
        doc.contragent_id = dto.contragent_id
        doc.reply_to_id = dto.reply_to_id
        doc.summary = dto.summary
        doc.appendix = dto.appendix
        await self._session.flush()
        # Reload so the response carries fresh state/doc type rows.
        self._session.expire(doc, ["state", "doc_type"])
        return await self.get(doc.doc_id)

    async def change_state(self, doc_id: UUID, target: DocStateKey) -> DocOut:
        doc = await self.get(doc_id)
        current = doc.state.business_key
        check_transition(current, target)

        state = await self.states.get_by_key(target)
        doc.state_id = state.state_id
        doc.state = state
        await self._session.flush()
        logger.info("Outgoing document %s: %s -> %s", doc_id, current.value, target.value)
        return doc

    async def delete(self, doc_id: UUID) -> DocOut:
        """Outgoing documents are never removed, only moved to ``deleted``."""
        return await self.change_state(doc_id, DocStateKey.DELETED)
