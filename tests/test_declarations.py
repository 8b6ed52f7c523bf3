"""Tests for model declarations.

Verifies that:
- Class-body and classmethod declarations register attribute declarations
- Unknown types and options are rejected when the class is built
- Duplicate declarations warn and replace the earlier one
- ``belongs_to`` implies a ``<name>_id`` column
- Subclasses inherit declarations without sharing state with their parent
- The model registry finds and loads models by name and package
"""

import logging

import pytest

from attribute_declarations import Model, attribute, belongs_to, timestamps
from attribute_declarations.declarations import base
from attribute_declarations.declarations.base import get_model, load_all_models, registered_models
from attribute_declarations.declarations.models import AttributeDeclaration, BelongsToDeclaration
from attribute_declarations.errors import InvalidAttributeType, ModelNotFoundError, UnknownAttributeOption
from attribute_declarations.inflections import camelize, tableize, underscore


class TestClassBodyDeclarations:
    """Declarations made with ``attribute()`` in the class body."""

    def test_attributes_registered_in_order(self) -> None:
        """Declared names come back in declaration order."""

        class Person(Model):
            name = attribute("string")
            age = attribute("integer")
            born_on = attribute("date")

        assert Person.attribute_names() == ["name", "age", "born_on"]

    def test_declaration_keeps_type_and_options(self) -> None:
        """The stored declaration carries the type and every option."""

        class Person(Model):
            name = attribute("string", limit=100, null=False, required=True)

        decl = Person.attribute_declarations["name"]
        assert isinstance(decl, AttributeDeclaration)
        assert decl.type == "string"
        assert decl.options == {"limit": 100, "null": False, "required": True}
        assert decl.migration_options == {"limit": 100, "null": False}

    def test_timestamps_declare_two_datetimes(self) -> None:
        """``timestamps()`` unpacks into two datetime attributes."""

        class Post(Model):
            title = attribute("string")
            created_at, updated_at = timestamps()

        assert Post.attribute_names() == ["title", "created_at", "updated_at"]
        assert Post.attribute_declarations["created_at"].type == "datetime"
        assert Post.attribute_declarations["updated_at"].type == "datetime"

    def test_invalid_type_rejected(self) -> None:
        """An unsupported type fails when the class is built."""
        with pytest.raises(InvalidAttributeType, match="strng"):

            class Broken(Model):
                name = attribute("strng")

    def test_unknown_option_rejected(self) -> None:
        """An unrecognised option fails when the class is built."""
        with pytest.raises(UnknownAttributeOption, match="colour"):

            class Broken(Model):
                name = attribute("string", colour="red")

    def test_default_tablename(self) -> None:
        """Table name defaults to the underscored class name plus ``s``."""

        class LineItem(Model):
            quantity = attribute("integer")

        assert LineItem.__tablename__ == "line_items"

    def test_explicit_tablename_kept(self) -> None:
        """An explicit ``__tablename__`` wins over the default."""

        class Person(Model):
            __tablename__ = "people"
            name = attribute("string")

        assert Person.__tablename__ == "people"


class TestClassmethodDeclarations:
    """Declarations made after the class is built."""

    def test_attribute_classmethod(self) -> None:
        """``Model.attribute()`` adds a declaration and an accessor."""

        class Person(Model):
            pass

        Person.attribute("name", "string", required=True)
        person = Person(name="Ada")

        assert Person.attribute_names() == ["name"]
        assert person.name == "Ada"

    def test_timestamps_classmethod(self) -> None:
        """``Model.timestamps()`` declares created_at and updated_at."""

        class Person(Model):
            name = attribute("string")

        Person.timestamps()

        assert Person.attribute_names() == ["name", "created_at", "updated_at"]

    def test_duplicate_declaration_warns_and_replaces(self, caplog) -> None:
        """Redeclaring a name logs a warning and the later declaration wins."""

        class Person(Model):
            name = attribute("string")

        with caplog.at_level(logging.WARNING):
            Person.attribute("name", "text")

        assert "Duplicate declaration of attribute 'name' in Person model." in caplog.text
        assert Person.attribute_declarations["name"].type == "text"
        assert Person.attribute_names() == ["name"]

    def test_duplicate_in_class_body_warns(self, caplog) -> None:
        """Declaring a name twice in the class body logs a warning; the later one wins."""
        with caplog.at_level(logging.WARNING):

            class Person(Model):
                name = attribute("string")
                name = attribute("integer")

        assert "Duplicate declaration of attribute 'name' in Person model." in caplog.text
        assert Person.attribute_declarations["name"].type == "integer"
        assert Person.attribute_names() == ["name"]

    def test_distinct_names_do_not_warn(self, caplog) -> None:
        with caplog.at_level(logging.WARNING):

            class Person(Model):
                name = attribute("string")
                created_at, updated_at = timestamps()

        assert "Duplicate declaration" not in caplog.text


class TestBelongsTo:
    """``belongs_to`` associations and their foreign-key columns."""

    def test_implies_foreign_key_column(self) -> None:
        """A ``company`` association implies ``company_id``."""

        class Employee(Model):
            name = attribute("string")
            company = belongs_to()

        assert Employee.belongs_to_names() == ["company_id"]
        assert Employee.attribute_names_plus() == ["name", "company_id"]
        assert isinstance(Employee.association_declarations["company"], BelongsToDeclaration)

    def test_custom_foreign_key(self) -> None:
        """``foreign_key=`` overrides the column name."""

        class Employee(Model):
            employer = belongs_to(foreign_key="company_id")

        assert Employee.belongs_to_names() == ["company_id"]

    def test_classmethod_declaration(self) -> None:
        """``Model.belongs_to()`` works after the class is built."""

        class Employee(Model):
            name = attribute("string")

        Employee.belongs_to("team")

        assert Employee.attribute_names_plus() == ["name", "team_id"]

    def test_unknown_association_option_rejected(self) -> None:
        """Only foreign_key and class_name are accepted."""
        with pytest.raises(UnknownAttributeOption):

            class Employee(Model):
                company = belongs_to(dependent="destroy")

    def test_assigning_object_sets_foreign_key(self) -> None:
        """Setting the association copies the object's primary key."""

        class Company(Model):
            name = attribute("string")

        class Employee(Model):
            company = belongs_to()

        company = Company(id=7, name="Acme")
        employee = Employee(company=company)

        assert employee.company is company
        assert employee.company_id == 7

        employee.company = None
        assert employee.company_id is None


class TestInheritance:
    """Subclasses see parent declarations without sharing them."""

    def test_subclass_inherits_and_extends(self) -> None:
        """A subclass adds declarations on top of its parent's."""

        class Person(Model):
            name = attribute("string")

        class Customer(Person):
            loyalty_points = attribute("integer")

        assert Customer.attribute_names() == ["name", "loyalty_points"]
        assert Person.attribute_names() == ["name"]

    def test_inherited_override_does_not_warn(self, caplog) -> None:
        """Redeclaring an inherited attribute in a subclass is silent."""

        class Person(Model):
            name = attribute("string")

        with caplog.at_level(logging.WARNING):

            class Customer(Person):
                name = attribute("text")

        assert "Duplicate declaration" not in caplog.text
        assert Customer.attribute_declarations["name"].type == "text"
        assert Person.attribute_declarations["name"].type == "string"

    def test_abstract_flag_not_inherited(self) -> None:
        """Concrete subclasses of an abstract model are concrete."""

        class Base(Model):
            __abstract__ = True
            created_at, updated_at = timestamps()

        class Thing(Base):
            name = attribute("string")

        assert Base.__abstract__ is True
        assert Thing.__abstract__ is False
        assert Thing.attribute_names() == ["created_at", "updated_at", "name"]


class TestRegistry:
    """Model registry lookups and package loading."""

    def test_load_all_models_imports_module(self) -> None:
        """Concrete models of a module are returned; abstract ones are not."""
        models = load_all_models("sample_models")
        names = {model.__name__ for model in models}

        assert names == {"Publisher", "Author"}

    def test_registered_models_filters_by_package(self) -> None:
        """Only models from the given package are listed."""
        load_all_models("sample_models")

        for model in registered_models("sample_models"):
            assert model.__module__ == "sample_models"

    def test_get_model_by_name(self) -> None:
        """A model can be found by its class name."""
        load_all_models("sample_models")

        model = get_model("Author")

        assert model.__tablename__ == "authors"

    def test_get_model_by_qualified_name(self) -> None:
        """A model can be found by ``module.ClassName``."""
        load_all_models("sample_models")

        assert get_model("sample_models.Publisher").__name__ == "Publisher"

    def test_get_model_unknown(self) -> None:
        """An unknown name raises ModelNotFoundError."""
        with pytest.raises(ModelNotFoundError, match="NoSuchModel"):
            get_model("NoSuchModel")

    def test_get_model_limited_to_packages(self, monkeypatch) -> None:
        """Same-named models elsewhere are ignored when packages are given."""
        monkeypatch.setattr(base, "_model_registry", dict(base._model_registry))
        load_all_models("sample_models")

        class Author(Model):
            pen_name = attribute("string")

        with pytest.raises(ModelNotFoundError, match="ambiguous"):
            get_model("Author")

        assert get_model("Author", package=["sample_models"]).__module__ == "sample_models"
        assert get_model("Author", package=("other_models", "test_declarations")) is Author


class TestInflections:
    """Name helpers used for tables, migration names and file names."""

    def test_underscore(self) -> None:
        assert underscore("PersonAddress") == "person_address"
        assert underscore("HTTPLog") == "http_log"
        assert underscore("CreatePeople") == "create_people"

    def test_camelize(self) -> None:
        assert camelize("person_addresses") == "PersonAddresses"
        assert camelize("people") == "People"

    def test_tableize(self) -> None:
        assert tableize("Person") == "persons"
        assert tableize("LineItem") == "line_items"
