"""Pydantic models for attribute and association declarations.

An ``AttributeDeclaration`` records what a model says a column should look
like: its name, its type and the options given at declaration time. Options
are split by where they are used:

- Migration options: shape the generated column (``null``, ``default``, ...)
- Attribute options: change how the model reads and writes the value
- Validation options: add validators to the model
"""

from typing import Any, Literal, get_args

from pydantic import BaseModel, Field

from attribute_declarations.errors import InvalidAttributeType, UnknownAttributeOption


# ============================================================================
# Declaration vocabulary
# ============================================================================

AttributeType = Literal[
    "string",
    "text",
    "integer",
    "float",
    "decimal",
    "datetime",
    "timestamp",
    "time",
    "date",
    "binary",
    "boolean",
]

ATTRIBUTE_TYPES: tuple[str, ...] = get_args(AttributeType)

MIGRATION_OPTIONS = ("null", "default", "limit", "scale", "precision")
ATTRIBUTE_OPTIONS = ("protected", "read_only", "serialize", "composed_of")
VALIDATION_OPTIONS = (
    "confirmation",
    "required",
    "acceptance_required",
    "length",
    "min_length",
    "max_length",
    "unique",
    "format",
    "within",
    "not_in",
    "minimum",
    "maximum",
)
DECLARATION_OPTIONS = ATTRIBUTE_OPTIONS + MIGRATION_OPTIONS + VALIDATION_OPTIONS

BELONGS_TO_OPTIONS = ("foreign_key", "class_name")


# ============================================================================
# Declarations
# ============================================================================


class AttributeDeclaration(BaseModel):
    """A declared attribute of a model.

    Example:
        >>> decl = AttributeDeclaration.build("age", "integer", {"null": False})
        >>> decl.migration_options
        {'null': False}
    """

    name: str
    type: AttributeType
    options: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def build(
        cls, name: str, type_: str, options: dict[str, Any] | None = None
    ) -> "AttributeDeclaration":
        """Check type and options, then build a declaration.

        Raises:
            InvalidAttributeType: If ``type_`` is not a supported type.
            UnknownAttributeOption: If any option is not recognised.
        """
        options = dict(options or {})
        type_ = str(type_)
        if type_ not in ATTRIBUTE_TYPES:
            raise InvalidAttributeType(
                f"Unsupported type '{type_}' for attribute '{name}'. "
                f"Expected one of: {', '.join(ATTRIBUTE_TYPES)}"
            )
        unknown = sorted(set(options) - set(DECLARATION_OPTIONS))
        if unknown:
            raise UnknownAttributeOption(
                f"Unknown option(s) for attribute '{name}': {', '.join(unknown)}"
            )
        return cls(name=str(name), type=type_, options=options)

    def option(self, key: str, default: Any = None) -> Any:
        """Return a declared option, or ``default`` when it was not given."""
        return self.options.get(key, default)

    @property
    def migration_options(self) -> dict[str, Any]:
        """Migration options that were given a non-``None`` value."""
        return {
            key: self.options[key]
            for key in MIGRATION_OPTIONS
            if self.options.get(key) is not None
        }


class BelongsToDeclaration(BaseModel):
    """A ``belongs_to`` association implying a foreign-key column."""

    name: str
    foreign_key: str | None = None
    class_name: str | None = None

    @classmethod
    def build(cls, name: str, options: dict[str, Any] | None = None) -> "BelongsToDeclaration":
        """Check options, then build an association declaration."""
        options = dict(options or {})
        unknown = sorted(set(options) - set(BELONGS_TO_OPTIONS))
        if unknown:
            raise UnknownAttributeOption(
                f"Unknown option(s) for association '{name}': {', '.join(unknown)}"
            )
        return cls(name=str(name), **options)

    @property
    def column_name(self) -> str:
        """Name of the foreign-key column (``<name>_id`` unless overridden)."""
        return self.foreign_key or f"{self.name}_id"
