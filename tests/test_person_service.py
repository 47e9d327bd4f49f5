"""Tests for the person registry: search, rename propagation, soft delete."""

from __future__ import annotations

from uuid import uuid4

import pytest

from docflow.errors import InvalidArgumentError, NotFoundIdError, NotFoundPersonError
from docflow.services.contragent import ContragentService
from docflow.services.filters import PersonQuery


class TestFindAll:
    async def test_last_name_required(self, db_session) -> None:
        with pytest.raises(InvalidArgumentError):
            await ContragentService(db_session).persons.find_all(last_name=" ")

    async def test_finds_plain_persons_case_insensitively(
        self, db_session, make_person_dto
    ) -> None:
        service = ContragentService(db_session)
        [link] = await service.save(make_person_dto())

        found = await service.persons.find_all(first_name="ivan", last_name="ivanov")
        assert [p.person_id for p in found] == [link.person_id]

    async def test_excludes_employees(self, db_session, make_company_dto) -> None:
        service = ContragentService(db_session)
        await service.save(make_company_dto())

        assert await service.persons.find_all(last_name="Petrov") == []

    async def test_excludes_persons_with_only_deleted_links(
        self, db_session, make_person_dto
    ) -> None:
        service = ContragentService(db_session)
        [link] = await service.save(make_person_dto())
        await service.delete(link.contragent_id)

        assert await service.persons.find_all(last_name="Ivanov") == []


class TestStrongFind:
    async def test_missing_middle_name_must_be_null(self, db_session) -> None:
        persons = ContragentService(db_session).persons
        await persons.save(
            PersonQuery.from_raw(first_name="Ivan", middle_name="I", last_name="Ivanov")
        )

        assert (
            await persons.strong_find(PersonQuery.from_raw(first_name="Ivan", last_name="Ivanov"))
            is None
        )

        plain = await persons.save(PersonQuery.from_raw(first_name="Ivan", last_name="Ivanov"))
        found = await persons.strong_find(
            PersonQuery.from_raw(first_name="IVAN", last_name="ivanov")
        )
        assert found is not None
        assert found.person_id == plain.person_id

    async def test_save_does_not_dedup(self, db_session) -> None:
        persons = ContragentService(db_session).persons
        query = PersonQuery.from_raw(first_name="Ivan", last_name="Ivanov")
        first = await persons.save(query)
        second = await persons.save(query)
        assert first.person_id != second.person_id


class TestUpdate:
    async def test_rename_rewrites_search_name(self, db_session, make_address) -> None:
        service = ContragentService(db_session)
        person = await service.persons.save(
            PersonQuery.from_raw(first_name="Ivan", middle_name="Ivanovich", last_name="Ivanov")
        )
        link = await service.bind_address_with_person(
            person.person_id,
            make_address(postal_index=None, country="RU", city="MOSCOW", house_number=None),
        )
        assert link.search_name == "IVANIVANOVICHIVANOV"

        await service.persons.update(
            person.person_id,
            PersonQuery.from_raw(first_name="Petr", middle_name="Ivanovich", last_name="Ivanov"),
        )

        assert "IVANIVANOVICHIVANOV" not in link.search_name
        assert "PETRIVANOVICHIVANOV" in link.search_name
        assert person.first_name == "PETR"

    async def test_rename_leaves_mismatching_search_name_unchanged(
        self, db_session, make_person_dto
    ) -> None:
        service = ContragentService(db_session)
        [link] = await service.save(make_person_dto())
        link.search_name = "SOMETHING ELSE"
        await db_session.flush()

        await service.persons.update(
            link.person_id, PersonQuery.from_raw(first_name="Petr", last_name="Ivanov")
        )

        assert link.search_name == "SOMETHING ELSE"

    async def test_rename_reaches_deleted_links(self, db_session, make_person_dto) -> None:
        service = ContragentService(db_session)
        [link] = await service.save(make_person_dto())
        await service.delete(link.contragent_id)

        await service.persons.update(
            link.person_id,
            PersonQuery.from_raw(first_name="Petr", middle_name="Ivanovich", last_name="Ivanov"),
        )
        assert link.search_name == "PETRIVANOVICHIVANOV"

    async def test_missing_id(self, db_session) -> None:
        with pytest.raises(NotFoundIdError):
            await ContragentService(db_session).persons.update(
                None, PersonQuery.from_raw(last_name="X")
            )

    async def test_unknown_id(self, db_session) -> None:
        with pytest.raises(NotFoundPersonError):
            await ContragentService(db_session).persons.update(
                uuid4(), PersonQuery.from_raw(last_name="X")
            )


class TestDeleteAndAddresses:
    async def test_delete_soft_deletes_all_links(
        self, db_session, make_person_dto, make_address
    ) -> None:
        service = ContragentService(db_session)
        links = await service.save(
            make_person_dto(addresses=[make_address(), make_address(street="Mira")])
        )
        person_id = links[0].person_id

        await service.persons.delete(person_id)

        assert await service.persons.get_addresses(person_id) == []
        assert await service.search_contragents("IVANOV") == []
        # Still stored, reachable by id, flagged deleted
        for link in links:
            reloaded = await service.get(link.contragent_id)
            assert reloaded.is_deleted is True
        assert (await service.persons.get(person_id)).last_name == "IVANOV"

    async def test_delete_unknown(self, db_session) -> None:
        with pytest.raises(NotFoundPersonError):
            await ContragentService(db_session).persons.delete(uuid4())

    async def test_addresses_carry_link_ids(self, db_session, make_address) -> None:
        service = ContragentService(db_session)
        first = await service.persons.save(PersonQuery.from_raw(first_name="A", last_name="One"))
        second = await service.persons.save(PersonQuery.from_raw(first_name="B", last_name="Two"))
        shared = make_address()

        link_one = await service.bind_address_with_person(first.person_id, shared)
        link_two = await service.bind_address_with_person(second.person_id, shared)
        assert link_one.address_id == link_two.address_id

        [addr_one] = await service.persons.get_addresses(first.person_id)
        [addr_two] = await service.persons.get_addresses(second.person_id)
        assert addr_one.id == link_one.contragent_id
        assert addr_two.id == link_two.contragent_id
        assert addr_one.id != addr_two.id
        assert addr_one.id != link_one.address_id

    async def test_addresses_skip_deleted_links(
        self, db_session, make_person_dto, make_address
    ) -> None:
        service = ContragentService(db_session)
        links = await service.save(
            make_person_dto(addresses=[make_address(), make_address(street="Mira")])
        )
        await service.delete(links[0].contragent_id)

        addresses = await service.persons.get_addresses(links[0].person_id)
        assert [a.id for a in addresses] == [links[1].contragent_id]

