"""Exception taxonomy for DocFlow.

Services raise these; the HTTP layer turns ``InvalidArgumentError`` into a
400 response and ``NotFoundError`` into a 404 response.
"""


class DocflowError(Exception):
    """Base class for all DocFlow errors."""

    default_message = "DocFlow error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidArgumentError(DocflowError, ValueError):
    """A required field is missing or empty."""

    default_message = "Invalid argument"


class InvalidStateTransitionError(InvalidArgumentError):
    """A document cannot move from its current state to the requested one."""

    default_message = "State transition is not allowed"


class NotFoundError(DocflowError, LookupError):
    """An identifier did not resolve to a stored record."""

    default_message = "Not found"


class NotFoundIdError(NotFoundError):
    """An id was missing or unknown."""

    default_message = "Record with this id was not found"


class NotFoundPersonError(NotFoundError):
    """A person id did not resolve."""

    default_message = "Person not found"
