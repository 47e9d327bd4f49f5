"""Business logic services for DocFlow."""

from docflow.services.address import AddressService
from docflow.services.contragent import ContragentService
from docflow.services.documents import DocInService, DocOutService, DocTypeService, StateService
from docflow.services.organization import OrganizationService
from docflow.services.person import PersonService

__all__ = [
    "AddressService",
    "ContragentService",
    "DocInService",
    "DocOutService",
    "DocTypeService",
    "OrganizationService",
    "PersonService",
    "StateService",
]
