"""Database models for DocFlow."""

from docflow.models.address import Address
from docflow.models.base import Base
from docflow.models.contragent import Contragent
from docflow.models.document import DocIn, DocOut, DocType, State
from docflow.models.enums import ALLOWED_TRANSITIONS, ContragentKind, DocStateKey
from docflow.models.organization import Organization
from docflow.models.person import Person

__all__ = [
    "ALLOWED_TRANSITIONS",
    "Address",
    "Base",
    "Contragent",
    "ContragentKind",
    "DocIn",
    "DocOut",
    "DocStateKey",
    "DocType",
    "Organization",
    "Person",
    "State",
]
