class UnknownEntityKindError(Exception):
    """Raised when an entity kind identifier does not resolve to a registered
    creatable type."""


class UnknownOperationError(AttributeError):
    """Raised when a call name matches no generated factory method and none
    of the define/create patterns."""


class CreationFailedError(Exception):
    """Raised when a backend rejects the construction of an entity."""


class NameAlreadyRegisteredError(Exception):
    """Raised when a given name is already registered in an entity."""


class UnexpectedParameterError(Exception):
    """Raised when an operation did get an unexpected parameter."""


class InvalidFileFormatError(Exception):
    """Raised when a file's format is not in the expected format."""
