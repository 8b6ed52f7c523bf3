"""Exceptions raised by attribute-declarations.

All exceptions share ``AttributeDeclarationError`` so callers can catch
plugin failures with a single ``except`` clause.
"""


class AttributeDeclarationError(Exception):
    """Base class for all attribute-declarations errors."""

    pass


class InvalidAttributeType(AttributeDeclarationError):
    """Raised when an attribute is declared with an unsupported type."""

    pass


class UnknownAttributeOption(AttributeDeclarationError):
    """Raised when an attribute declaration carries an unrecognised option."""

    pass


class ReadOnlyAttributeError(AttributeDeclarationError):
    """Raised when a ``read_only`` attribute is assigned a second time."""

    pass


class SerializationTypeMismatch(AttributeDeclarationError):
    """Raised when a serialized attribute holds a value of the wrong class."""

    pass


class RecordInvalid(AttributeDeclarationError):
    """Raised by ``Model.validate_or_raise()`` when validation fails.

    The failing ``ValidationErrors`` are available as ``errors``.
    """

    def __init__(self, errors) -> None:
        self.errors = errors
        super().__init__(f"Validation failed: {', '.join(errors.full_messages())}")


class ModelNotFoundError(AttributeDeclarationError):
    """Raised when a model name cannot be resolved from the registry."""

    pass


class MultipleHeadsError(AttributeDeclarationError):
    """Raised when the versions directory has more than one head revision."""

    pass
