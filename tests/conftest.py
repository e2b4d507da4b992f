import pytest

from commerce_kernel.events.bus import EventBus
from commerce_kernel.testing import coordinator, engine, session_factory, tx_log  # noqa: F401


@pytest.fixture()
def event_bus():
    return EventBus()


@pytest.fixture()
def received(event_bus):
    """(event_name, data) pairs delivered to subscribers, in order."""
    seen = []

    def record(data, event_name):
        seen.append((event_name, data))

    for name in ("currency.created", "currency.updated"):
        event_bus.subscribe(name, record)
    return seen
