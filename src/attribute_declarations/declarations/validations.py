"""Validators derived from attribute declarations.

Each declared option that implies a rule (``required``, ``unique``,
``length`` and so on) becomes a small validator object. A model keeps the
validators for each attribute and runs them from ``Model.validate()``.

Validators skip ``None`` values except presence, which exists to reject
them.

Usage:
    from attribute_declarations.declarations.validations import validators_for

    for validator in validators_for(declaration):
        validator.validate(record, declaration.name, value, errors)
"""

import logging
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field
from sqlalchemy import column, func, select, table

from attribute_declarations.declarations.models import AttributeDeclaration

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection

logger = logging.getLogger(__name__)


# ============================================================================
# Error collection
# ============================================================================


def humanize(name: str) -> str:
    """Turn an attribute name into a label (``first_name`` -> ``First name``)."""
    label = name[:-3] if name.endswith("_id") else name
    return label.replace("_", " ").strip().capitalize()


class ValidationErrors(BaseModel):
    """Error messages collected while validating a record.

    Example:
        >>> errors = ValidationErrors()
        >>> errors.add("name", "can't be blank")
        >>> errors.full_messages()
        ["Name can't be blank"]
    """

    messages: dict[str, list[str]] = Field(default_factory=dict)

    def add(self, attribute: str, message: str) -> None:
        """Record an error message against an attribute."""
        self.messages.setdefault(attribute, []).append(message)

    def on(self, attribute: str) -> list[str]:
        """Messages recorded against ``attribute`` (empty list if none)."""
        return list(self.messages.get(attribute, []))

    @property
    def is_empty(self) -> bool:
        """True when no errors were recorded."""
        return not self.messages

    @property
    def error_count(self) -> int:
        """Total number of messages across all attributes."""
        return sum(len(msgs) for msgs in self.messages.values())

    def full_messages(self) -> list[str]:
        """Messages prefixed with the humanized attribute name."""
        return [
            f"{humanize(attribute)} {message}"
            for attribute, msgs in self.messages.items()
            for message in msgs
        ]

    def format_report(self) -> str:
        """Format errors as a human-readable report."""
        if self.is_empty:
            return "Record valid"
        lines = [f"Record invalid ({self.error_count} errors):"]
        for message in self.full_messages():
            lines.append(f"  - {message}")
        return "\n".join(lines)


# ============================================================================
# Validators
# ============================================================================


def _as_number(value: Any) -> Decimal | None:
    """Parse ``value`` as a number, or return None if it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        return Decimal(str(value))
    if isinstance(value, str):
        try:
            return Decimal(value.strip())
        except InvalidOperation:
            return None
    return None


_INTEGER_PATTERN = re.compile(r"\A[+-]?\d+\Z")


@dataclass
class NumericalityValidator:
    """Value must be numeric, optionally an integer and within bounds."""

    only_integer: bool = False
    greater_than_or_equal_to: Any = None
    less_than_or_equal_to: Any = None

    def validate(self, record, name: str, value: Any, errors: ValidationErrors, connection=None) -> None:
        if value is None:
            return
        number = _as_number(value)
        if number is None or not number.is_finite():
            errors.add(name, "is not a number")
            return
        if self.only_integer and not _INTEGER_PATTERN.match(str(value).strip()):
            errors.add(name, "must be an integer")
            return
        if self.greater_than_or_equal_to is not None and number < Decimal(str(self.greater_than_or_equal_to)):
            errors.add(name, f"must be greater than or equal to {self.greater_than_or_equal_to}")
        if self.less_than_or_equal_to is not None and number > Decimal(str(self.less_than_or_equal_to)):
            errors.add(name, f"must be less than or equal to {self.less_than_or_equal_to}")


@dataclass
class PresenceValidator:
    """Value must not be None, blank or empty."""

    def validate(self, record, name: str, value: Any, errors: ValidationErrors, connection=None) -> None:
        blank = value is None or (isinstance(value, str) and not value.strip())
        if not blank and isinstance(value, (list, tuple, dict, set)):
            blank = len(value) == 0
        if blank:
            errors.add(name, "can't be blank")


@dataclass
class UniquenessValidator:
    """No other row of the model's table may hold the same value.

    Needs a SQLAlchemy connection; without one the check is skipped.
    """

    def validate(self, record, name: str, value: Any, errors: ValidationErrors, connection=None) -> None:
        if value is None:
            return
        if connection is None:
            logger.debug(
                "Skipping uniqueness check of %s.%s: no connection given",
                type(record).__name__,
                name,
            )
            return

        pk_name = type(record).__primary_key__
        rows = table(type(record).__tablename__, column(name), column(pk_name))
        query = select(func.count()).select_from(rows).where(rows.c[name] == value)
        pk_value = getattr(record, pk_name, None)
        if pk_value is not None:
            query = query.where(rows.c[pk_name] != pk_value)

        if connection.execute(query).scalar_one() > 0:
            errors.add(name, "has already been taken")


@dataclass
class ConfirmationValidator:
    """``<name>_confirmation``, when set, must equal the value."""

    def validate(self, record, name: str, value: Any, errors: ValidationErrors, connection=None) -> None:
        confirmation = getattr(record, f"{name}_confirmation", None)
        if confirmation is not None and confirmation != value:
            errors.add(name, "doesn't match confirmation")


@dataclass
class AcceptanceValidator:
    """Value, when set, must be an accepted marker (``True``, ``1``, ``"1"``)."""

    accept: tuple[Any, ...] = (True, 1, "1", "true")

    def validate(self, record, name: str, value: Any, errors: ValidationErrors, connection=None) -> None:
        if value is None:
            return
        if value not in self.accept:
            errors.add(name, "must be accepted")


@dataclass
class LengthValidator:
    """Length of the value must fall within the given bounds."""

    minimum: int | None = None
    maximum: int | None = None

    def validate(self, record, name: str, value: Any, errors: ValidationErrors, connection=None) -> None:
        if value is None:
            return
        size = len(value) if hasattr(value, "__len__") else len(str(value))
        if self.minimum is not None and size < self.minimum:
            errors.add(name, f"is too short (minimum is {self.minimum} characters)")
        if self.maximum is not None and size > self.maximum:
            errors.add(name, f"is too long (maximum is {self.maximum} characters)")


@dataclass
class FormatValidator:
    """String form of the value must match a regular expression."""

    pattern: re.Pattern

    def validate(self, record, name: str, value: Any, errors: ValidationErrors, connection=None) -> None:
        if value is None:
            return
        if not self.pattern.search(str(value)):
            errors.add(name, "is invalid")


@dataclass
class InclusionValidator:
    """Value must be one of the given choices."""

    choices: Any

    def validate(self, record, name: str, value: Any, errors: ValidationErrors, connection=None) -> None:
        if value is None:
            return
        if value not in self.choices:
            errors.add(name, "is not included in the list")


@dataclass
class ExclusionValidator:
    """Value must not be one of the given choices."""

    choices: Any

    def validate(self, record, name: str, value: Any, errors: ValidationErrors, connection=None) -> None:
        if value is None:
            return
        if value in self.choices:
            errors.add(name, "is reserved")


# ============================================================================
# Declaration -> validators
# ============================================================================


def _length_bounds(length: Any) -> tuple[int | None, int | None]:
    """Accept ``range``, ``(min, max)`` or a single exact length."""
    if isinstance(length, range):
        return length.start, length.stop - 1
    if isinstance(length, (tuple, list)):
        low, high = length
        return low, high
    return int(length), int(length)


def validators_for(declaration: AttributeDeclaration) -> list:
    """Build the validators implied by a declaration, in a stable order."""
    opts = declaration.options
    validators: list = []

    if declaration.type == "integer":
        validators.append(NumericalityValidator(only_integer=True))
    elif declaration.type in ("float", "decimal"):
        validators.append(NumericalityValidator())
    if opts.get("unique"):
        validators.append(UniquenessValidator())
    if opts.get("required"):
        validators.append(PresenceValidator())
    if opts.get("confirmation"):
        validators.append(ConfirmationValidator())
    if opts.get("acceptance_required"):
        validators.append(AcceptanceValidator())
    if opts.get("length") is not None:
        low, high = _length_bounds(opts["length"])
        validators.append(LengthValidator(minimum=low, maximum=high))
    if opts.get("min_length") is not None:
        validators.append(LengthValidator(minimum=opts["min_length"]))
    if opts.get("max_length") is not None:
        validators.append(LengthValidator(maximum=opts["max_length"]))
    if opts.get("format") is not None:
        validators.append(FormatValidator(pattern=re.compile(opts["format"])))
    if opts.get("within") is not None:
        validators.append(InclusionValidator(choices=opts["within"]))
    if opts.get("not_in") is not None:
        validators.append(ExclusionValidator(choices=opts["not_in"]))
    if opts.get("minimum") is not None:
        validators.append(NumericalityValidator(greater_than_or_equal_to=opts["minimum"]))
    if opts.get("maximum") is not None:
        validators.append(NumericalityValidator(less_than_or_equal_to=opts["maximum"]))

    return validators
