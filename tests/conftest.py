import pytest

from typed_http.clients.http import TypedHttpClient
from typed_http.clients.types import ResponseEnvelope

from tests.fakes import FakeTransport


@pytest.fixture
def transport():
    return FakeTransport(ResponseEnvelope(status=200, body=b"{}"))


@pytest.fixture
def client(transport):
    c = TypedHttpClient(transport=transport)
    yield c
    c.close()
