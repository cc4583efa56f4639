"""Tests for compiled property accessors."""

import concurrent.futures
from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar, Optional

import pytest

from fluentmasker.compilation.property_accessor import (
    PropertyAccessor,
    clear_accessor_cache,
    get_property_accessor,
)
from fluentmasker.core.exceptions import (
    ImmutablePropertyError,
    InvalidArgumentError,
    PropertyNotFoundError,
)
from tests.utils.records import (
    Account,
    Address,
    Employee,
    Empty,
    FrozenEmployee,
    FrozenPerson,
    Person,
    Untyped,
)


class TestDataclassAccess:
    def test_property_names_in_declaration_order(self):
        accessor = get_property_accessor(Person)
        assert accessor.get_property_names() == ("name", "email", "age", "phone", "address")

    def test_get_and_set(self, person):
        accessor = get_property_accessor(Person)
        assert accessor.get_value(person, "email") == "john.doe@example.com"
        accessor.set_value(person, "email", "x@example.com")
        assert person.email == "x@example.com"

    def test_property_info(self):
        accessor = get_property_accessor(Person)
        phone = accessor.get_property_info("phone")
        assert phone.value_type is str
        assert phone.nullable
        assert phone.writable
        assert accessor.get_property_info("address").base_type is Address
        assert accessor.get_property_info("age").base_type is int

    def test_unknown_property(self, person):
        accessor = get_property_accessor(Person)
        assert not accessor.has_property("ssn")
        with pytest.raises(PropertyNotFoundError, match="'ssn' not found on Person"):
            accessor.get_value(person, "ssn")

    def test_frozen_dataclass_is_read_only(self):
        accessor = get_property_accessor(FrozenPerson)
        instance = FrozenPerson(name="Ann", email="ann@example.com")
        assert accessor.get_value(instance, "name") == "Ann"
        assert not accessor.is_writable("name")
        with pytest.raises(ImmutablePropertyError, match="read-only"):
            accessor.set_value(instance, "name", "Bob")
        assert instance.name == "Ann"

    def test_to_dict(self, person):
        data = get_property_accessor(Person).to_dict(person)
        assert data["age"] == 37
        assert data["address"] is person.address


class TestPlainClassAccess:
    def test_annotated_attributes_and_properties(self):
        accessor = get_property_accessor(Account)
        assert accessor.get_property_names() == ("owner", "balance", "display_name")
        assert accessor.get_property_info("balance").value_type is Decimal
        assert accessor.get_property_info("display_name").source == "property"

    def test_computed_property_is_read_only(self):
        accessor = get_property_accessor(Account)
        account = Account("jane doe", Decimal("10"))
        assert accessor.get_value(account, "display_name") == "Jane Doe"
        with pytest.raises(ImmutablePropertyError):
            accessor.set_value(account, "display_name", "X")
        assert accessor.get_value(account, "display_name") == "Jane Doe"

    def test_property_with_setter_is_writable(self):
        class Temperature:
            def __init__(self) -> None:
                self._celsius = 0.0

            @property
            def celsius(self) -> float:
                return self._celsius

            @celsius.setter
            def celsius(self, value: float) -> None:
                self._celsius = value

        accessor = PropertyAccessor(Temperature)
        reading = Temperature()
        accessor.set_value(reading, "celsius", 21.5)
        assert reading.celsius == 21.5
        assert accessor.get_property_info("celsius").value_type is float

    def test_classvar_and_private_names_skipped(self):
        class Config:
            registry: ClassVar[dict] = {}
            _secret: str
            visible: Optional[int]

        assert PropertyAccessor(Config).get_property_names() == ("visible",)

    def test_empty_type(self):
        accessor = get_property_accessor(Empty)
        assert accessor.get_property_names() == ()
        assert len(accessor) == 0

    def test_undeclared_types(self):
        accessor = get_property_accessor(Untyped)
        assert accessor.get_property_info("label").value_type is None
        assert accessor.get_property_info("label").base_type is None

    def test_requires_a_class(self):
        with pytest.raises(InvalidArgumentError, match="requires a class"):
            PropertyAccessor("Person")


class TestPydanticAccess:
    def test_model_fields(self):
        accessor = get_property_accessor(Employee)
        employee = Employee(name="Ann", salary=100, ssn="123-45-6789")
        assert accessor.get_property_names() == ("name", "salary", "ssn")
        assert accessor.get_value(employee, "salary") == 100
        accessor.set_value(employee, "salary", 200)
        assert employee.salary == 200

    def test_frozen_model_is_read_only(self):
        accessor = get_property_accessor(FrozenEmployee)
        assert not accessor.is_writable("salary")


class TestAccessorCache:
    def test_cached_per_type(self):
        assert get_property_accessor(Person) is get_property_accessor(Person)
        assert PropertyAccessor.for_type(Person) is get_property_accessor(Person)

    def test_clear_cache(self):
        first = get_property_accessor(Person)
        clear_accessor_cache()
        assert get_property_accessor(Person) is not first

    def test_concurrent_compilation_yields_one_accessor(self):
        @dataclass
        class Fresh:
            a: int
            b: str

        with concurrent.futures.ThreadPoolExecutor(max_workers=16) as executor:
            accessors = list(executor.map(lambda _: get_property_accessor(Fresh), range(64)))
        assert len({id(accessor) for accessor in accessors}) == 1
