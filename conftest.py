import pytest
from model_bakery import baker
from rest_framework.test import APIClient


@pytest.fixture
def anonymous_client():
    client = APIClient()
    return client


@pytest.fixture
def di_container():
    """Fixture to create a DI container."""
    from di_core.containers import container

    return container


@pytest.fixture
def customer():
    from customers.models import Customer

    return baker.make(Customer, name="Ada Lovelace", email="ada@example.com")


@pytest.fixture
def other_customer():
    from customers.models import Customer

    return baker.make(Customer, name="Grace Hopper", email="grace@example.com")


@pytest.fixture
def scheduling_service(di_container):
    return di_container.scheduling_service()
