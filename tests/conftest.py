import io

import pytest

from fake_server import FakeMCPServer, make_settings


@pytest.fixture
def server():
    return FakeMCPServer()


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def stdout():
    return io.BytesIO()
