from .mocks import (
    MockTransport, MockRefresher, FakeClock, RecordingSleep, network_error, refresh_failure,
)
from .factories import mk_service_config, mk_credentials, mk_input, mk_client

__all__ = [
    "MockTransport",
    "MockRefresher",
    "FakeClock",
    "RecordingSleep",
    "network_error",
    "refresh_failure",
    "mk_service_config",
    "mk_credentials",
    "mk_input",
    "mk_client",
]
