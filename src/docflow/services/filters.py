"""Normalization and query predicate builders.

Everything here is pure: values in, normalized values or SQLAlchemy
expressions out. Registries compose these into statements, so the rules for
"which fields constrain a query" can be tested without a database.

Two matching modes exist:
- ``predicates()``: optional-field conjunction. Only fields that are present
  constrain the query; absent fields mean "don't care".
- ``strong_predicates()``: exact match used for dedup. Present fields must be
  equal, absent fields must be NULL in the stored row.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy import ColumnElement, Select

from docflow.models.address import Address
from docflow.models.contragent import Contragent
from docflow.models.person import Person

if TYPE_CHECKING:
    from sqlalchemy.orm import InstrumentedAttribute

S = TypeVar("S", bound=Select[Any])


def normalize_plain(value: Any) -> str | None:
    """Strip a value; blank becomes None."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def normalize_upper(value: Any) -> str | None:
    """Strip and uppercase a value; blank becomes None."""
    value = normalize_plain(value)
    return value.upper() if value else None


def build_search_name(*parts: str | None) -> str:
    """Concatenate the non-empty parts, uppercased, in argument order.

    Examples:
        ("Ivan", None, "Ivanov") -> "IVANIVANOV"
        ("Ivan", "Ivanovich", "Ivanov", "Manager") -> "IVANIVANOVICHIVANOVMANAGER"
    """
    return "".join(p for p in (normalize_upper(part) for part in parts) if p)


def build_fio(first_name: str | None, middle_name: str | None, last_name: str | None) -> str:
    """First + middle + last name; the order matters for search name rewrites."""
    return build_search_name(first_name, middle_name, last_name)


def _eq_or_null(column: InstrumentedAttribute[Any], value: str | None) -> ColumnElement[bool]:
    if value is None:
        return column.is_(None)
    return column == value


def active(stmt: S) -> S:
    """Restrict a statement over Contragent to links that are not soft-deleted."""
    return stmt.where(Contragent.is_deleted.is_(False))


@dataclass(frozen=True)
class AddressQuery:
    """Normalized address fields used for lookup and dedup."""

    postal_index: str | None = None
    country: str | None = None
    city: str | None = None
    street: str | None = None
    house_number: str | None = None
    apartment_number: str | None = None

    @classmethod
    def from_raw(
        cls,
        *,
        postal_index: Any = None,
        country: Any = None,
        city: Any = None,
        street: Any = None,
        house_number: Any = None,
        apartment_number: Any = None,
    ) -> AddressQuery:
        """Normalize raw input: uppercase everything except house/apartment numbers."""
        return cls(
            postal_index=normalize_upper(postal_index),
            country=normalize_upper(country),
            city=normalize_upper(city),
            street=normalize_upper(street),
            house_number=normalize_plain(house_number),
            apartment_number=normalize_plain(apartment_number),
        )

    def _pairs(self) -> list[tuple[InstrumentedAttribute[Any], str | None]]:
        return [
            (Address.postal_index, self.postal_index),
            (Address.country, self.country),
            (Address.city, self.city),
            (Address.street, self.street),
            (Address.house_number, self.house_number),
            (Address.apartment_number, self.apartment_number),
        ]

    def predicates(self) -> list[ColumnElement[bool]]:
        return [column == value for column, value in self._pairs() if value is not None]

    def strong_predicates(self) -> list[ColumnElement[bool]]:
        return [_eq_or_null(column, value) for column, value in self._pairs()]

    def to_model_fields(self) -> dict[str, str | None]:
        return {
            "postal_index": self.postal_index,
            "country": self.country,
            "city": self.city,
            "street": self.street,
            "house_number": self.house_number,
            "apartment_number": self.apartment_number,
        }


@dataclass(frozen=True)
class PersonQuery:
    """Normalized person name parts used for lookup and dedup."""

    first_name: str | None = None
    middle_name: str | None = None
    last_name: str | None = None

    @classmethod
    def from_raw(
        cls, *, first_name: Any = None, middle_name: Any = None, last_name: Any = None
    ) -> PersonQuery:
        return cls(
            first_name=normalize_upper(first_name),
            middle_name=normalize_upper(middle_name),
            last_name=normalize_upper(last_name),
        )

    @property
    def fio(self) -> str:
        return build_fio(self.first_name, self.middle_name, self.last_name)

    def predicates(self) -> list[ColumnElement[bool]]:
        pairs = [
            (Person.first_name, self.first_name),
            (Person.middle_name, self.middle_name),
            (Person.last_name, self.last_name),
        ]
        return [column == value for column, value in pairs if value is not None]

    def strong_predicates(self) -> list[ColumnElement[bool]]:
        # Last name has no IS NULL branch: an absent last name does not constrain.
        preds = [
            _eq_or_null(Person.first_name, self.first_name),
            _eq_or_null(Person.middle_name, self.middle_name),
        ]
        if self.last_name is not None:
            preds.append(Person.last_name == self.last_name)
        return preds

    def to_model_fields(self) -> dict[str, str | None]:
        return {
            "first_name": self.first_name,
            "middle_name": self.middle_name,
            "last_name": self.last_name,
        }
