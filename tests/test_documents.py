"""Tests for document registration, listing and the outgoing state workflow."""

from __future__ import annotations

from datetime import date
from uuid import uuid4

import pytest

from docflow.config import settings
from docflow.errors import InvalidStateTransitionError, NotFoundIdError
from docflow.models.enums import ALLOWED_TRANSITIONS, DocStateKey
from docflow.schemas import DocInCreate, DocOutFilter, DocOutSave
from docflow.services.contragent import ContragentService
from docflow.services.documents import (
    DocInService,
    DocOutService,
    DocTypeService,
    StateService,
    check_transition,
    format_reg_number,
    normalize_page,
)


class TestHelpers:
    @pytest.mark.parametrize(("page", "expected"), [(None, 1), (0, 1), (-3, 1), (1, 1), (7, 7)])
    def test_normalize_page(self, page, expected) -> None:
        assert normalize_page(page) == expected

    def test_format_reg_number(self) -> None:
        assert format_reg_number("IN", 2026, 42) == "IN-2026-000042"

    @pytest.mark.parametrize("target", [DocStateKey.REGISTERED, DocStateKey.SIGNED])
    def test_deleted_is_terminal(self, target) -> None:
        with pytest.raises(InvalidStateTransitionError):
            check_transition(DocStateKey.DELETED, target)

    def test_every_state_has_transitions(self) -> None:
        assert set(ALLOWED_TRANSITIONS) == set(DocStateKey)


class TestStates:
    async def test_seed_is_idempotent(self, db_session) -> None:
        service = StateService(db_session)
        await service.seed()
        states = await service.list_states()
        assert [s.business_key for s in states] == list(DocStateKey)

    async def test_get_by_key(self, db_session) -> None:
        state = await StateService(db_session).get_by_key(DocStateKey.ON_SIGNING)
        assert state.title == "On signing"


async def test_doc_types_sorted_and_deduplicated(db_session) -> None:
    service = DocTypeService(db_session)
    await service.get_or_create("Order")
    await service.get_or_create("Letter")
    await service.get_or_create("Order")

    assert [t.name for t in await service.list_doc_types()] == ["Letter", "Order"]


class TestDocIn:
    async def test_register_assigns_sequential_numbers(self, db_session) -> None:
        service = DocInService(db_session)
        year = date.today().year

        first = await service.register(DocInCreate(summary="First"))
        second = await service.register(DocInCreate(summary="Second"))

        assert first.reg_number == f"IN-{year}-000001"
        assert second.reg_number == f"IN-{year}-000002"
        assert first.state.business_key is DocStateKey.REGISTERED
        assert first.reg_date == date.today()

    async def test_number_after_delete_is_not_reused(self, db_session) -> None:
        service = DocInService(db_session)
        year = date.today().year
        first = await service.register(DocInCreate())
        await service.register(DocInCreate())

        await service.delete(first.doc_id)
        third = await service.register(DocInCreate())

        assert third.reg_number == f"IN-{year}-000003"

    async def test_register_with_type_and_contragent(self, db_session, make_person_dto) -> None:
        doc_type = await DocTypeService(db_session).get_or_create("Letter")
        [link] = await ContragentService(db_session).save(make_person_dto())

        doc = await DocInService(db_session).register(
            DocInCreate(
                doc_type_id=doc_type.doc_type_id,
                contragent_id=link.contragent_id,
                outer_number="17/3",
                outer_date=date(2026, 1, 15),
            )
        )

        assert doc.doc_type.name == "Letter"
        assert doc.contragent_id == link.contragent_id
        assert doc.outer_number == "17/3"

    async def test_register_unknown_refs(self, db_session) -> None:
        service = DocInService(db_session)
        with pytest.raises(NotFoundIdError):
            await service.register(DocInCreate(doc_type_id=999))
        with pytest.raises(NotFoundIdError):
            await service.register(DocInCreate(contragent_id=uuid4()))

    async def test_list_page(self, db_session, monkeypatch) -> None:
        monkeypatch.setattr(settings, "page_size", 2)
        service = DocInService(db_session)
        for day in (3, 1, 2):
            await service.register(DocInCreate(reg_date=date(2026, 1, day)))

        docs, total = await service.list_page(1)
        assert total == 3
        assert [d.reg_date.day for d in docs] == [1, 2]

        docs, _ = await service.list_page(2)
        assert [d.reg_date.day for d in docs] == [3]

        docs, _ = await service.list_page(0)
        assert len(docs) == 2

    async def test_delete(self, db_session) -> None:
        service = DocInService(db_session)
        doc = await service.register(DocInCreate())
        await service.delete(doc.doc_id)
        with pytest.raises(NotFoundIdError):
            await service.get(doc.doc_id)


class TestDocOut:
    async def test_new_draft_is_registered(self, db_session) -> None:
        doc = await DocOutService(db_session).save(DocOutSave(summary="Reply"))

        assert doc.reg_number == f"OUT-{date.today().year}-000001"
        assert doc.state.business_key is DocStateKey.REGISTERED
        assert doc.summary == "Reply"

    async def test_edit_keeps_number(self, db_session) -> None:
        service = DocOutService(db_session)
        doc = await service.save(DocOutSave(summary="Draft"))
        doc_type = await DocTypeService(db_session).get_or_create("Contract")

        edited = await service.save(
            DocOutSave(id=doc.doc_id, summary="Final", doc_type_id=doc_type.doc_type_id)
        )

        assert edited.doc_id == doc.doc_id
        assert edited.reg_number == doc.reg_number
        assert edited.summary == "Final"
        assert edited.doc_type.name == "Contract"

    async def test_reply_to_unknown_incoming(self, db_session) -> None:
        with pytest.raises(NotFoundIdError):
            await DocOutService(db_session).save(DocOutSave(reply_to_id=uuid4()))

    async def test_full_workflow(self, db_session) -> None:
        service = DocOutService(db_session)
        doc = await service.save(DocOutSave())

        for target in (
            DocStateKey.ON_SIGNING,
            DocStateKey.SIGNED,
            DocStateKey.SENT,
            DocStateKey.EXECUTED,
        ):
            doc = await service.change_state(doc.doc_id, target)
            assert doc.state.business_key is target

        with pytest.raises(InvalidStateTransitionError):
            await service.save(DocOutSave(id=doc.doc_id, summary="Too late"))

    async def test_invalid_transition_leaves_state(self, db_session) -> None:
        service = DocOutService(db_session)
        doc = await service.save(DocOutSave())

        with pytest.raises(InvalidStateTransitionError):
            await service.change_state(doc.doc_id, DocStateKey.SENT)

        assert (await service.get(doc.doc_id)).state.business_key is DocStateKey.REGISTERED

    async def test_delete_moves_to_deleted(self, db_session) -> None:
        service = DocOutService(db_session)
        doc = await service.save(DocOutSave())

        deleted = await service.delete(doc.doc_id)

        assert deleted.state.business_key is DocStateKey.DELETED
        with pytest.raises(InvalidStateTransitionError):
            await service.delete(doc.doc_id)

    async def test_sent_document_cannot_be_deleted(self, db_session) -> None:
        service = DocOutService(db_session)
        doc = await service.save(DocOutSave())
        for target in (DocStateKey.ON_SIGNING, DocStateKey.SIGNED, DocStateKey.SENT):
            await service.change_state(doc.doc_id, target)

        with pytest.raises(InvalidStateTransitionError):
            await service.delete(doc.doc_id)

    async def test_list_filters(self, db_session) -> None:
        service = DocOutService(db_session)
        letter = await service.save(DocOutSave(summary="Letter to the bank"))
        await service.save(DocOutSave(summary="Contract"))
        await service.change_state(letter.doc_id, DocStateKey.ON_SIGNING)

        docs, total = await service.list_page(1)
        assert total == 2
        assert {d.summary for d in docs} == {"Letter to the bank", "Contract"}

        docs, total = await service.list_page(1, DocOutFilter(state=DocStateKey.ON_SIGNING))
        assert total == 1
        assert docs[0].doc_id == letter.doc_id

        docs, total = await service.list_page(1, DocOutFilter(summary="BANK"))
        assert [d.doc_id for d in docs] == [letter.doc_id]
