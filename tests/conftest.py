"""Shared fixtures for FluentMasker tests."""

import logging
import random
from collections.abc import Generator
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import pytest

from fluentmasker.compilation.property_accessor import clear_accessor_cache
from fluentmasker.converters.registry import TypeConverterRegistry, reset_default_registry
from fluentmasker.core.config import reset_masker_config
from tests.utils.records import Address, Appointment, Customer, Order, Person


@pytest.fixture(autouse=True)
def reset_fluentmasker_state() -> Generator[None, None, None]:
    """Start every test from fresh config, registry, accessor cache and RNG."""
    reset_masker_config()
    reset_default_registry()
    clear_accessor_cache()
    random.seed(42)

    package_logger = logging.getLogger("fluentmasker")
    handlers = list(package_logger.handlers)
    level = package_logger.level
    propagate = package_logger.propagate

    yield

    package_logger.handlers[:] = handlers
    package_logger.setLevel(level)
    package_logger.propagate = propagate
    reset_masker_config()
    reset_default_registry()
    clear_accessor_cache()


@pytest.fixture
def person() -> Person:
    return Person(
        name="John Doe",
        email="john.doe@example.com",
        age=37,
        phone="+1 (555) 123-4567",
        address=Address(street="12 Main Street", city="Springfield", postcode="12345"),
    )


@pytest.fixture
def customer() -> Customer:
    return Customer(
        customer_id="C-1001",
        email="jane.roe@mail.example.org",
        orders=[
            Order(order_id="O-1", card_number="4111 1111 1111 1111", amount=Decimal("19.99")),
            Order(order_id="O-2", card_number="5500-0000-0000-0004", amount=Decimal("250.00")),
        ],
    )


@pytest.fixture
def appointment() -> Appointment:
    return Appointment(
        patient="Mary Major",
        scheduled_at=datetime(2024, 5, 17, 14, 30, 15),
        birth_date=date(1985, 3, 15),
        visits=4,
    )


@pytest.fixture
def registry() -> TypeConverterRegistry:
    """Fresh registry with built-in converters, isolated from the default one."""
    return TypeConverterRegistry.with_builtins()


@pytest.fixture
def profile_path(tmp_path: Path) -> Path:
    path = tmp_path / "customers.yaml"
    path.write_text(
        """
name: customers
record: Customer
coverage: exclude
fields:
  - name: customer_id
  - name: email
    rules:
      - email_mask: {local_keep: 2}
  - name: age
    type: int
    bucketize: age
  - name: signup
    type: date
    seed: 7
    rules:
      - date_shift: {days_range: 30}
  - name: orders
    type: list
    each:
      record: Order
      coverage: include
      fields:
        - name: order_id
        - name: card
          rules: [card_mask]
""",
        encoding="utf-8",
    )
    return path
