"""Incoming and outgoing document endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from docflow.config import settings
from docflow.db import get_session
from docflow.models.enums import DocStateKey
from docflow.schemas import (
    DocIdRequest,
    DocInCreate,
    DocInOut,
    DocOutFilter,
    DocOutOut,
    DocOutSave,
    Page,
    StateChange,
)
from docflow.services.documents import DocInService, DocOutService, normalize_page

router_in = APIRouter(prefix="/docs/in", tags=["docs-in"])
router_out = APIRouter(prefix="/docs/out", tags=["docs-out"])

SessionDep = Annotated[AsyncSession, Depends(get_session)]
CurrentPage = Annotated[int | None, Query(alias="currentPage")]


# -----------------------------------------------------------------------------
# Incoming
# -----------------------------------------------------------------------------


@router_in.get("")
async def list_docs_in(session: SessionDep, current_page: CurrentPage = None) -> Page[DocInOut]:
    page = normalize_page(current_page)
    docs, total = await DocInService(session).list_page(page)
    return Page[DocInOut](
        items=[DocInOut.from_model(d) for d in docs],
        page=page,
        page_size=settings.page_size,
        total=total,
    )


@router_in.get("/card/{doc_id}")
async def get_doc_in(doc_id: UUID, session: SessionDep) -> DocInOut:
    return DocInOut.from_model(await DocInService(session).get(doc_id))


@router_in.post("/card")
async def register_doc_in(dto: DocInCreate, session: SessionDep) -> DocInOut:
    return DocInOut.from_model(await DocInService(session).register(dto))


@router_in.delete("/{doc_id}")
async def delete_doc_in(doc_id: UUID, session: SessionDep) -> None:
    await DocInService(session).delete(doc_id)


# -----------------------------------------------------------------------------
# Outgoing
# -----------------------------------------------------------------------------


@router_out.get("")
async def list_docs_out(
    session: SessionDep,
    current_page: CurrentPage = None,
    state: DocStateKey | None = None,
    doc_type_id: int | None = None,
    contragent_id: UUID | None = None,
    summary: str | None = None,
) -> Page[DocOutOut]:
    page = normalize_page(current_page)
    filters = DocOutFilter(
        state=state, doc_type_id=doc_type_id, contragent_id=contragent_id, summary=summary
    )
    docs, total = await DocOutService(session).list_page(page, filters)
    return Page[DocOutOut](
        items=[DocOutOut.from_model(d) for d in docs],
        page=page,
        page_size=settings.page_size,
        total=total,
    )


@router_out.get("/card/{doc_id}")
async def get_doc_out(doc_id: UUID, session: SessionDep) -> DocOutOut:
    return DocOutOut.from_model(await DocOutService(session).get(doc_id))


@router_out.post("/card")
async def save_doc_out(dto: DocOutSave, session: SessionDep) -> DocOutOut:
    return DocOutOut.from_model(await DocOutService(session).save(dto))


@router_out.post("/{doc_id}/state")
async def change_doc_out_state(
    doc_id: UUID, change: StateChange, session: SessionDep
) -> DocOutOut:
    return DocOutOut.from_model(await DocOutService(session).change_state(doc_id, change.state))


@router_out.post("/delete")
async def delete_doc_out(request: DocIdRequest, session: SessionDep) -> DocOutOut:
    return DocOutOut.from_model(await DocOutService(session).delete(request.id))
