from __future__ import annotations

import pytest

from app.price_monitor.config import get_price_monitor_settings
from tests.support import InMemoryObservationStore


@pytest.fixture()
def observation_store() -> InMemoryObservationStore:
    return InMemoryObservationStore()


@pytest.fixture()
def clear_settings_cache():
    get_price_monitor_settings.cache_clear()
    yield
    get_price_monitor_settings.cache_clear()
