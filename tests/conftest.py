import pytest

from tests.fakes import FakeGateway


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def ada(fake_gateway):
    return fake_gateway.add_account("ada@example.com", "analytical", full_name="Ada Lovelace")


@pytest.fixture
def grace(fake_gateway):
    return fake_gateway.add_account("grace@example.com", "compiler", full_name="Grace Hopper")


@pytest.fixture(autouse=True)
def _local_gateway(settings):
    settings.BLOG_GATEWAY = "local"
