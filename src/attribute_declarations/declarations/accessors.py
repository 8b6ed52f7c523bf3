"""Attribute descriptors and the accessor behavior declared through options.

``DeclaredAttribute`` is what ``attribute()`` returns inside a class body.
Reads and writes of a model instance go through it so that the attribute
options take effect:

- ``read_only``: a value can be set once; a second assignment raises.
- ``serialize``: ``True`` stores any JSON value; a class restricts values to
  instances of that class. Rows carry the value as JSON text.
- ``composed_of``: values are exposed as a value object built from the raw
  column value.

``protected`` is enforced by ``Model.assign_attributes()``, not here.
"""

import json
from typing import Any

from attribute_declarations.errors import ReadOnlyAttributeError, SerializationTypeMismatch


class Composition:
    """Value-object mapping for a ``composed_of`` attribute.

    Args:
        class_name: Value class; called with the raw column value.
        mapping: Attribute of the value object holding the raw value.
        converter: Optional callable turning other values into a value object.

    Example:
        >>> comp = Composition(Money, mapping="cents")
        >>> comp.wrap(250).cents
        250
    """

    def __init__(self, class_name: type, mapping: str | None = None, converter=None) -> None:
        self.class_name = class_name
        self.mapping = mapping
        self.converter = converter

    @classmethod
    def from_option(cls, option: Any, attribute_name: str) -> "Composition":
        """Build from a ``composed_of`` option (a class or a dict)."""
        if isinstance(option, Composition):
            return option
        if isinstance(option, dict):
            return cls(
                option["class_name"],
                mapping=option.get("mapping") or attribute_name,
                converter=option.get("converter"),
            )
        return cls(option, mapping=attribute_name)

    def wrap(self, raw: Any) -> Any:
        """Raw column value -> value object."""
        if raw is None:
            return None
        return self.class_name(raw)

    def unwrap(self, value: Any, attribute_name: str) -> Any:
        """Value object (or convertible value) -> raw column value."""
        if value is None:
            return None
        if not isinstance(value, self.class_name) and self.converter is not None:
            value = self.converter(value)
        if not isinstance(value, self.class_name):
            raise TypeError(
                f"{attribute_name} expects a {self.class_name.__name__}, "
                f"got {type(value).__name__}"
            )
        return getattr(value, self.mapping)


class DeclaredAttribute:
    """Descriptor for a declared attribute.

    Created by ``attribute()`` and bound to the owning model when the class
    is built. Values are kept in the instance's ``_attributes`` dict.
    """

    def __init__(self, type_: str, options: dict[str, Any]) -> None:
        self.type = type_
        self.options = options
        self.name: str | None = None
        self._composition: Composition | None = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name
        composed_of = self.options.get("composed_of")
        if composed_of is not None:
            self._composition = Composition.from_option(composed_of, name)

    def __repr__(self) -> str:
        return f"<DeclaredAttribute {self.name}: {self.type}>"

    def __get__(self, instance: Any, owner: type) -> Any:
        if instance is None:
            return self
        raw = instance._attributes.get(self.name)
        if self._composition is not None:
            return self._composition.wrap(raw)
        return raw

    def __set__(self, instance: Any, value: Any) -> None:
        if self.options.get("read_only") and instance._attributes.get(self.name) is not None:
            raise ReadOnlyAttributeError(
                f"{self.name} is read-only on {type(instance).__name__}"
            )
        if self._composition is not None:
            value = self._composition.unwrap(value, self.name)
        if self.options.get("serialize"):
            self.check_serialized(value)
        instance._attributes[self.name] = value

    def check_serialized(self, value: Any) -> None:
        """Raise if a serialized value is not of the declared class."""
        expected = self.options.get("serialize")
        if value is None or expected is True:
            return
        if not isinstance(value, expected):
            raise SerializationTypeMismatch(
                f"{self.name} was supposed to be a {expected.__name__}, "
                f"but was a {type(value).__name__}"
            )

    def dump(self, raw: Any) -> Any:
        """Raw value -> storage value (JSON text for serialized attributes)."""
        if self.options.get("serialize") and raw is not None:
            return json.dumps(raw)
        return raw

    def load(self, stored: Any) -> Any:
        """Storage value -> raw value."""
        if self.options.get("serialize") and isinstance(stored, str):
            value = json.loads(stored)
            self.check_serialized(value)
            return value
        return stored


class BelongsTo:
    """Descriptor for a ``belongs_to`` association.

    Assigning an object also sets the foreign-key attribute from the
    object's primary key.
    """

    def __init__(self, options: dict[str, Any]) -> None:
        self.options = options
        self.name: str | None = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"<BelongsTo {self.name}>"

    @property
    def foreign_key(self) -> str:
        return self.options.get("foreign_key") or f"{self.name}_id"

    def __get__(self, instance: Any, owner: type) -> Any:
        if instance is None:
            return self
        return instance._associations.get(self.name)

    def __set__(self, instance: Any, value: Any) -> None:
        instance._associations[self.name] = value
        if value is None:
            fk_value = None
        else:
            fk_value = getattr(value, getattr(type(value), "__primary_key__", "id"), None)
        setattr(instance, self.foreign_key, fk_value)
