"""
Test bootstrap:
- Make the shared helpers importable
- Reset process-wide defaults between tests
- Provide mock collaborators as fixtures
"""
import sys
import pathlib

import pytest

TESTS_DIR = pathlib.Path(__file__).parent

if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from helpers import FakeClock, MockRefresher, MockTransport, RecordingSleep, mk_client  # noqa: E402

from zoho_client.auth.token_cache import set_default_token_cache  # noqa: E402
from zoho_client.client import set_default_client  # noqa: E402
from zoho_client.transport.http import set_default_transport  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_defaults():
    yield
    set_default_client(None)
    set_default_token_cache(None)
    set_default_transport(None)


@pytest.fixture
def transport():
    """Scripted transport answering 200 with an empty data list by default."""
    return MockTransport()


@pytest.fixture
def refresher():
    return MockRefresher()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def client(transport, refresher):
    """Client wired to the mock transport and refresher."""
    return mk_client(transport, refresher)
