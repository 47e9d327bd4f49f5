"""Enumerations for DocFlow data model."""

from enum import Enum


class ContragentKind(str, Enum):
    """What a new counterparty represents when it is created."""

    PERSON = "person"  # Natural person with one or more addresses
    COMPANY = "company"  # Organization with addresses and employees


class DocStateKey(str, Enum):
    """Business keys of the document state lookup table."""

    REGISTERED = "registered"
    ON_SIGNING = "on_signing"
    SIGNED = "signed"
    SENT = "sent"
    EXECUTED = "executed"
    DELETED = "deleted"


STATE_TITLES: dict[DocStateKey, str] = {
    DocStateKey.REGISTERED: "Registered",
    DocStateKey.ON_SIGNING: "On signing",
    DocStateKey.SIGNED: "Signed",
    DocStateKey.SENT: "Sent",
    DocStateKey.EXECUTED: "Executed",
    DocStateKey.DELETED: "Deleted",
}

# Which states a document may move to from each state.
# DELETED and EXECUTED are terminal.
ALLOWED_TRANSITIONS: dict[DocStateKey, frozenset[DocStateKey]] = {
    DocStateKey.REGISTERED: frozenset({DocStateKey.ON_SIGNING, DocStateKey.DELETED}),
    DocStateKey.ON_SIGNING: frozenset(
        {DocStateKey.SIGNED, DocStateKey.REGISTERED, DocStateKey.DELETED}
    ),
    DocStateKey.SIGNED: frozenset({DocStateKey.SENT, DocStateKey.DELETED}),
    DocStateKey.SENT: frozenset({DocStateKey.EXECUTED}),
    DocStateKey.EXECUTED: frozenset(),
    DocStateKey.DELETED: frozenset(),
}
