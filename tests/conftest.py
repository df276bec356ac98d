import pytest

from fakes import FakeUploadServer


@pytest.fixture
def fake_server() -> FakeUploadServer:
    return FakeUploadServer()
