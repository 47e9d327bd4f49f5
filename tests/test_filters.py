"""Tests for normalization and predicate builders (no database needed)."""

from __future__ import annotations

import pytest
from sqlalchemy import select

from docflow.models import Contragent
from docflow.services.filters import (
    AddressQuery,
    PersonQuery,
    active,
    build_fio,
    build_search_name,
    normalize_plain,
    normalize_upper,
)


def _sql(predicates) -> list[str]:
    return [str(p) for p in predicates]


class TestNormalization:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (None, None),
            ("", None),
            ("   ", None),
            (" moscow ", "MOSCOW"),
            ("Lenina", "LENINA"),
            (101000, "101000"),
        ],
    )
    def test_normalize_upper(self, raw, expected) -> None:
        assert normalize_upper(raw) == expected

    def test_normalize_plain_keeps_case(self) -> None:
        assert normalize_plain(" 12a ") == "12a"
        assert normalize_plain("  ") is None

    def test_build_fio_order_matters(self) -> None:
        assert build_fio("Ivan", "Ivanovich", "Ivanov") == "IVANIVANOVICHIVANOV"
        assert build_fio("Ivanov", "Ivanovich", "Ivan") != build_fio("Ivan", "Ivanovich", "Ivanov")

    def test_build_fio_skips_missing_parts(self) -> None:
        assert build_fio(None, "", "Ivanov") == "IVANOV"

    def test_build_search_name_with_position(self) -> None:
        assert build_search_name("Petr", None, "Petrov", "Director") == "PETRPETROVDIRECTOR"


class TestAddressQuery:
    def test_from_raw_uppercases_all_but_numbers(self) -> None:
        query = AddressQuery.from_raw(
            postal_index=" 101000 ",
            country="ru",
            city="Moscow",
            street="lenina",
            house_number="12a",
            apartment_number=" 5b ",
        )
        assert query.country == "RU"
        assert query.city == "MOSCOW"
        assert query.street == "LENINA"
        assert query.house_number == "12a"
        assert query.apartment_number == "5b"

    def test_predicates_only_constrain_present_fields(self) -> None:
        query = AddressQuery.from_raw(country="RU", city="Moscow", street="Lenina")
        sql = _sql(query.predicates())
        assert len(sql) == 3
        assert all("IS NULL" not in s for s in sql)

    def test_strong_predicates_turn_missing_fields_into_is_null(self) -> None:
        query = AddressQuery.from_raw(country="RU", city="Moscow", street="Lenina")
        sql = _sql(query.strong_predicates())
        assert len(sql) == 6
        assert "addresses.postal_index IS NULL" in sql
        assert "addresses.house_number IS NULL" in sql
        assert "addresses.apartment_number IS NULL" in sql

    def test_strong_predicates_blank_is_null(self) -> None:
        query = AddressQuery.from_raw(
            country="RU", city="Moscow", street="Lenina", apartment_number="   "
        )
        assert "addresses.apartment_number IS NULL" in _sql(query.strong_predicates())


class TestPersonQuery:
    def test_predicates_only_constrain_present_fields(self) -> None:
        query = PersonQuery.from_raw(last_name="Ivanov")
        sql = _sql(query.predicates())
        assert sql == ["persons.last_name = :last_name_1"]

    def test_strong_predicates_null_branch_for_first_and_middle(self) -> None:
        query = PersonQuery.from_raw(last_name="Ivanov")
        sql = _sql(query.strong_predicates())
        assert "persons.first_name IS NULL" in sql
        assert "persons.middle_name IS NULL" in sql
        assert "persons.last_name = :last_name_1" in sql

    def test_strong_predicates_no_null_branch_for_last_name(self) -> None:
        query = PersonQuery.from_raw(first_name="Ivan")
        sql = _sql(query.strong_predicates())
        assert len(sql) == 2
        assert all("last_name" not in s for s in sql)

    def test_fio(self) -> None:
        assert PersonQuery.from_raw(first_name="petr", last_name="petrov").fio == "PETRPETROV"


def test_active_filters_deleted_links() -> None:
    stmt = active(select(Contragent))
    assert "contragents.is_deleted IS" in str(stmt)
