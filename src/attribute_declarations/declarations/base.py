"""Declarative model base for attribute declarations.

Models say which attributes they should have directly in the class body::

    class Person(Model):
        __tablename__ = "people"

        name = attribute("string", unique=True, required=True, limit=100)
        age = attribute("integer", required=True, minimum=0)
        company = belongs_to()
        created_at, updated_at = timestamps()

Every subclass is registered so the schema check and the migration
generator can find it; ``load_all_models()`` imports a package so that all of
its models get registered.
"""

from __future__ import annotations

import importlib
import logging
import pkgutil
import typing
from collections.abc import Iterable
from typing import Any, ClassVar

from attribute_declarations.declarations.accessors import BelongsTo, DeclaredAttribute
from attribute_declarations.declarations.models import AttributeDeclaration, BelongsToDeclaration
from attribute_declarations.declarations.validations import ValidationErrors, validators_for
from attribute_declarations.errors import ModelNotFoundError, RecordInvalid
from attribute_declarations.inflections import tableize

if typing.TYPE_CHECKING:
    from sqlalchemy.engine import Connection

logger = logging.getLogger(__name__)

# Process-wide registry, keyed by "module.QualName"
_model_registry: dict[str, type[Model]] = {}


# ============================================================================
# Class-body declaration helpers
# ============================================================================


def attribute(type_: str, **options: Any) -> DeclaredAttribute:
    """Declare an attribute in a model class body.

    Args:
        type_: One of the declaration types (``"string"``, ``"integer"``, ...).
        **options: Migration, attribute and validation options.

    Example:
        >>> class Person(Model):
        ...     name = attribute("string", required=True)
    """
    return DeclaredAttribute(type_, dict(options))


def timestamps(**options: Any) -> tuple[DeclaredAttribute, DeclaredAttribute]:
    """Declare a pair of ``datetime`` attributes.

    Unpack into the conventional names::

        created_at, updated_at = timestamps()
    """
    return DeclaredAttribute("datetime", dict(options)), DeclaredAttribute("datetime", dict(options))


def belongs_to(**options: Any) -> BelongsTo:
    """Declare a ``belongs_to`` association (implies a ``<name>_id`` column)."""
    return BelongsTo(dict(options))


# ============================================================================
# Model base
# ============================================================================


class _DeclarationNamespace(dict):
    """Class-body namespace that warns when a declaration is rebound."""

    def __init__(self, model_name: str) -> None:
        super().__init__()
        self.model_name = model_name

    def __setitem__(self, key: str, value: Any) -> None:
        if isinstance(value, DeclaredAttribute) and isinstance(self.get(key), DeclaredAttribute):
            logger.warning(
                "Duplicate declaration of attribute '%s' in %s model.", key, self.model_name
            )
        super().__setitem__(key, value)


class ModelMeta(type):
    """Metaclass of ``Model``; only supplies the class-body namespace."""

    @classmethod
    def __prepare__(mcs, name: str, bases: tuple[type, ...], **kwargs: Any) -> _DeclarationNamespace:
        return _DeclarationNamespace(name)


class Model(metaclass=ModelMeta):
    """Base class for models carrying attribute declarations.

    Class attributes:
        __tablename__: Backing table (default: underscored class name + "s").
        __primary_key__: Primary-key column, never declared (default "id").
        __abstract__: Abstract models have no table and always match.
    """

    __tablename__: ClassVar[str]
    __primary_key__: ClassVar[str] = "id"
    __abstract__: ClassVar[bool] = True

    attribute_declarations: ClassVar[dict[str, AttributeDeclaration]] = {}
    association_declarations: ClassVar[dict[str, BelongsToDeclaration]] = {}
    _attribute_descriptors: ClassVar[dict[str, DeclaredAttribute]] = {}
    _validators: ClassVar[dict[str, list]] = {}
    _declared_here: ClassVar[set[str]] = set()

    _attributes: dict[str, Any]
    _associations: dict[str, Any]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)

        if "__abstract__" not in cls.__dict__:
            cls.__abstract__ = False
        if "__tablename__" not in cls.__dict__:
            cls.__tablename__ = tableize(cls.__name__)

        # Copy inherited declarations so subclasses never share state
        cls.attribute_declarations = dict(cls.attribute_declarations)
        cls.association_declarations = dict(cls.association_declarations)
        cls._attribute_descriptors = dict(cls._attribute_descriptors)
        cls._validators = dict(cls._validators)
        cls._declared_here = set()

        for name, value in list(cls.__dict__.items()):
            if isinstance(value, DeclaredAttribute):
                cls._register_attribute(name, value)
            elif isinstance(value, BelongsTo):
                cls._register_association(name, value)

        register_model(cls)

    # ------------------------------------------------------------------
    # Declaration API
    # ------------------------------------------------------------------

    @classmethod
    def _register_attribute(cls, name: str, descriptor: DeclaredAttribute) -> None:
        declaration = AttributeDeclaration.build(name, descriptor.type, descriptor.options)
        if name in cls._declared_here:
            logger.warning(
                "Duplicate declaration of attribute '%s' in %s model.", name, cls.__name__
            )
        cls._declared_here.add(name)
        cls.attribute_declarations[name] = declaration
        cls._attribute_descriptors[name] = descriptor
        cls._validators[name] = validators_for(declaration)

    @classmethod
    def _register_association(cls, name: str, descriptor: BelongsTo) -> None:
        cls.association_declarations[name] = BelongsToDeclaration.build(name, descriptor.options)

    @classmethod
    def attribute(cls, name: str, type_: str, **options: Any) -> AttributeDeclaration:
        """Declare (or redeclare) an attribute after the class is built.

        Redeclaring a name this class already declared logs a warning and
        replaces the earlier declaration.
        """
        descriptor = DeclaredAttribute(type_, dict(options))
        descriptor.__set_name__(cls, name)
        cls._register_attribute(name, descriptor)
        setattr(cls, name, descriptor)
        return cls.attribute_declarations[name]

    @classmethod
    def timestamps(cls, **options: Any) -> None:
        """Declare ``created_at`` and ``updated_at`` datetime attributes."""
        cls.attribute("created_at", "datetime", **options)
        cls.attribute("updated_at", "datetime", **options)

    @classmethod
    def belongs_to(cls, name: str, **options: Any) -> BelongsToDeclaration:
        """Declare a ``belongs_to`` association after the class is built."""
        descriptor = BelongsTo(dict(options))
        descriptor.__set_name__(cls, name)
        cls._register_association(name, descriptor)
        setattr(cls, name, descriptor)
        return cls.association_declarations[name]

    @classmethod
    def attribute_names(cls) -> list[str]:
        """Declared attribute names, in declaration order."""
        return list(cls.attribute_declarations)

    @classmethod
    def belongs_to_names(cls) -> list[str]:
        """Foreign-key column names implied by ``belongs_to`` associations."""
        return [assoc.column_name for assoc in cls.association_declarations.values()]

    @classmethod
    def attribute_names_plus(cls) -> list[str]:
        """Declared attribute names plus foreign-key column names."""
        return cls.attribute_names() + cls.belongs_to_names()

    # ------------------------------------------------------------------
    # Instances
    # ------------------------------------------------------------------

    def __init__(self, **values: Any) -> None:
        self._attributes = {}
        self._associations = {}
        setattr(self, self.__primary_key__, None)
        for fk_name in self.belongs_to_names():
            setattr(self, fk_name, None)
        self.assign_attributes(values)

    def __repr__(self) -> str:
        pk = self.__primary_key__
        pk_val = getattr(self, pk, None)
        if pk_val is not None:
            return f"<{type(self).__name__} {pk}={pk_val!r}>"
        return f"<{type(self).__name__}>"

    @classmethod
    def _assignable_names(cls) -> set[str]:
        names = set(cls.attribute_declarations)
        names.update(cls.association_declarations)
        names.update(cls.belongs_to_names())
        names.add(cls.__primary_key__)
        names.update(
            f"{name}_confirmation"
            for name, decl in cls.attribute_declarations.items()
            if decl.option("confirmation")
        )
        return names

    def assign_attributes(self, values: dict[str, Any]) -> None:
        """Mass-assign values, dropping ``protected`` attributes.

        Raises:
            TypeError: If a key is not an attribute, association or
                foreign key of the model.
        """
        cls = type(self)
        assignable = cls._assignable_names()
        for key, value in values.items():
            declaration = cls.attribute_declarations.get(key)
            if declaration is not None and declaration.option("protected"):
                logger.warning(
                    "Can't mass-assign protected attribute '%s' on %s", key, cls.__name__
                )
                continue
            if key not in assignable:
                raise TypeError(f"Unknown attribute for {cls.__name__}: {key}")
            setattr(self, key, value)

    def validate(self, connection: Connection | None = None) -> ValidationErrors:
        """Run every declared validation and return the collected errors.

        Args:
            connection: Optional SQLAlchemy connection, needed for ``unique``.
        """
        errors = ValidationErrors()
        for name, validators in type(self)._validators.items():
            value = self._attributes.get(name)
            for validator in validators:
                validator.validate(self, name, value, errors, connection)
        return errors

    def is_valid(self, connection: Connection | None = None) -> bool:
        return self.validate(connection).is_empty

    def validate_or_raise(self, connection: Connection | None = None) -> None:
        """Validate and raise ``RecordInvalid`` if there are errors."""
        errors = self.validate(connection)
        if not errors.is_empty:
            raise RecordInvalid(errors)

    def to_row(self) -> dict[str, Any]:
        """Column values ready for storage (serialized attributes as JSON)."""
        cls = type(self)
        row: dict[str, Any] = {}
        pk_value = getattr(self, cls.__primary_key__, None)
        if pk_value is not None:
            row[cls.__primary_key__] = pk_value
        for name, descriptor in cls._attribute_descriptors.items():
            row[name] = descriptor.dump(self._attributes.get(name))
        for fk_name in cls.belongs_to_names():
            row[fk_name] = getattr(self, fk_name, None)
        return row

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Model:
        """Build an instance from stored column values.

        Bypasses mass-assignment protection and read-only checks; columns the
        model does not declare are ignored.
        """
        instance = cls.__new__(cls)
        instance._attributes = {}
        instance._associations = {}
        setattr(instance, cls.__primary_key__, row.get(cls.__primary_key__))
        fk_names = set(cls.belongs_to_names())
        for fk_name in fk_names:
            setattr(instance, fk_name, None)
        for key, value in row.items():
            descriptor = cls._attribute_descriptors.get(key)
            if descriptor is not None:
                instance._attributes[key] = descriptor.load(value)
            elif key in fk_names:
                setattr(instance, key, value)
        return instance


# ============================================================================
# Model registry
# ============================================================================


def register_model(model: type[Model]) -> None:
    """Add a model to the registry (re-definitions replace earlier ones)."""
    _model_registry[f"{model.__module__}.{model.__qualname__}"] = model


def _in_package(model: type[Model], package: str) -> bool:
    return model.__module__ == package or model.__module__.startswith(package + ".")


def registered_models(package: str | None = None) -> list[type[Model]]:
    """Registered concrete models, optionally limited to a package."""
    models = []
    for model in _model_registry.values():
        if model.__abstract__:
            continue
        if package and not _in_package(model, package):
            continue
        models.append(model)
    return models


def get_model(name: str, package: str | Iterable[str] | None = None) -> type[Model]:
    """Find a registered model by class name or ``module.ClassName``.

    Args:
        name: Class name or ``module.ClassName``.
        package: Module or package (or several) to search; default all.

    Raises:
        ModelNotFoundError: If no model, or more than one, matches.
    """
    candidates = [
        model
        for key, model in _model_registry.items()
        if key == name or model.__name__ == name
    ]
    if package:
        packages = [package] if isinstance(package, str) else list(package)
        candidates = [m for m in candidates if any(_in_package(m, p) for p in packages)]
    if not candidates:
        raise ModelNotFoundError(f"Model '{name}' is not registered")
    if len(candidates) > 1:
        raise ModelNotFoundError(
            f"Model name '{name}' is ambiguous: "
            + ", ".join(f"{m.__module__}.{m.__qualname__}" for m in candidates)
        )
    return candidates[0]


def load_all_models(package: str) -> list[type[Model]]:
    """Import a module or package (recursively) and return its models.

    Example:
        >>> models = load_all_models("app.models")
    """
    module = importlib.import_module(package)
    if hasattr(module, "__path__"):
        for info in pkgutil.walk_packages(module.__path__, prefix=f"{module.__name__}."):
            importlib.import_module(info.name)
    models = registered_models(package)
    logger.debug("Loaded %d model(s) from %s", len(models), package)
    return models
