"""Tests for accessor behavior declared through attribute options.

Verifies ``protected``, ``read_only``, ``serialize`` and ``composed_of``,
plus conversion to and from stored rows.
"""

import json
import logging

import pytest

from attribute_declarations import Model, attribute, belongs_to
from attribute_declarations.declarations.accessors import Composition, DeclaredAttribute
from attribute_declarations.errors import ReadOnlyAttributeError, SerializationTypeMismatch


class Money:
    def __init__(self, cents):
        self.cents = cents

    def __eq__(self, other):
        return isinstance(other, Money) and other.cents == self.cents


class TestProtected:
    """``protected`` attributes are skipped by mass assignment."""

    def test_mass_assignment_drops_protected(self, caplog) -> None:
        """The value is ignored and a warning is logged."""

        class Account(Model):
            name = attribute("string")
            role = attribute("string", protected=True)

        with caplog.at_level(logging.WARNING):
            account = Account(name="ada", role="admin")

        assert account.name == "ada"
        assert account.role is None
        assert "Can't mass-assign protected attribute 'role' on Account" in caplog.text

    def test_direct_assignment_allowed(self) -> None:
        """Protection only applies to mass assignment."""

        class Account(Model):
            role = attribute("string", protected=True)

        account = Account()
        account.role = "admin"

        assert account.role == "admin"

    def test_unknown_key_rejected(self) -> None:
        """Mass assignment of an undeclared name raises TypeError."""

        class Account(Model):
            name = attribute("string")

        with pytest.raises(TypeError, match="nickname"):
            Account(nickname="ada")


class TestReadOnly:
    """``read_only`` attributes can be set once."""

    def test_second_assignment_raises(self) -> None:

        class Order(Model):
            number = attribute("string", read_only=True)

        order = Order(number="A-1")

        with pytest.raises(ReadOnlyAttributeError, match="number"):
            order.number = "A-2"
        assert order.number == "A-1"

    def test_first_assignment_allowed(self) -> None:
        """An unset read-only attribute accepts a value."""

        class Order(Model):
            number = attribute("string", read_only=True)

        order = Order()
        order.number = "A-1"

        assert order.number == "A-1"

    def test_loading_from_row_bypasses_check(self) -> None:

        class Order(Model):
            number = attribute("string", read_only=True)

        order = Order.from_row({"id": 3, "number": "A-1"})

        assert order.id == 3
        assert order.number == "A-1"


class TestSerialize:
    """``serialize`` stores structured values as JSON."""

    def test_any_json_value(self) -> None:
        """``serialize=True`` accepts any JSON-compatible value."""

        class Profile(Model):
            settings = attribute("text", serialize=True)

        profile = Profile(settings={"theme": "dark", "tabs": [1, 2]})
        row = profile.to_row()

        assert json.loads(row["settings"]) == {"theme": "dark", "tabs": [1, 2]}
        assert Profile.from_row(row).settings == {"theme": "dark", "tabs": [1, 2]}

    def test_class_restriction(self) -> None:
        """A class restricts values to instances of that class."""

        class Profile(Model):
            settings = attribute("text", serialize=dict)

        profile = Profile(settings={"theme": "dark"})

        with pytest.raises(SerializationTypeMismatch, match="supposed to be a dict"):
            profile.settings = ["dark"]

    def test_loading_checks_class(self) -> None:
        """A stored value of the wrong class fails on load."""

        class Profile(Model):
            settings = attribute("text", serialize=dict)

        with pytest.raises(SerializationTypeMismatch):
            Profile.from_row({"settings": "[1, 2]"})

    def test_none_stored_as_none(self) -> None:

        class Profile(Model):
            settings = attribute("text", serialize=True)

        assert Profile().to_row()["settings"] is None


class TestComposedOf:
    """``composed_of`` exposes a value object over the raw column."""

    def test_wraps_and_unwraps(self) -> None:
        """Reads build the value object; writes store the mapped attribute."""

        class Product(Model):
            price = attribute("integer", composed_of={"class_name": Money, "mapping": "cents"})

        product = Product(price=Money(250))

        assert product.price == Money(250)
        assert product.to_row()["price"] == 250

    def test_class_shorthand_maps_attribute_name(self) -> None:
        """Passing a bare class maps the attribute of the same name."""

        class Balance:
            def __init__(self, amount):
                self.amount = amount

        class Wallet(Model):
            amount = attribute("integer", composed_of=Balance)

        wallet = Wallet.from_row({"amount": 40})

        assert isinstance(wallet.amount, Balance)
        assert wallet.amount.amount == 40

    def test_converter(self) -> None:
        """A converter turns plain values into value objects."""

        class Product(Model):
            price = attribute(
                "integer",
                composed_of={"class_name": Money, "mapping": "cents", "converter": Money},
            )

        product = Product(price=99)

        assert product.price == Money(99)

    def test_wrong_type_rejected(self) -> None:

        class Product(Model):
            price = attribute("integer", composed_of={"class_name": Money, "mapping": "cents"})

        with pytest.raises(TypeError, match="expects a Money"):
            Product(price="free")

    def test_composition_from_option(self) -> None:
        comp = Composition.from_option(Money, "cents")
        assert comp.mapping == "cents"
        assert comp.wrap(None) is None
        assert comp.unwrap(Money(5), "price") == 5


class TestRows:
    """Conversion between instances and stored rows."""

    def test_to_row_includes_foreign_keys(self) -> None:

        class Employee(Model):
            name = attribute("string")
            company = belongs_to()

        employee = Employee(id=5, name="Ada", company_id=2)

        assert employee.to_row() == {"id": 5, "name": "Ada", "company_id": 2}

    def test_from_row_ignores_unknown_columns(self) -> None:

        class Employee(Model):
            name = attribute("string")

        employee = Employee.from_row({"id": 1, "name": "Ada", "legacy": "x"})

        assert employee.name == "Ada"
        assert not hasattr(employee, "legacy")

    def test_class_access_returns_descriptor(self) -> None:

        class Employee(Model):
            name = attribute("string")

        assert isinstance(Employee.name, DeclaredAttribute)
