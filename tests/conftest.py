from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from booking_engine.infrastructure.cache.memory_wizard_cache import MemoryWizardCache
from booking_engine.infrastructure.directory.memory_directory import MemoryPractitionerDirectory
from booking_engine.infrastructure.store.memory_reservation_store import MemoryReservationStore

TZ = ZoneInfo("America/Los_Angeles")


def fixed_clock(year: int = 2025, month: int = 3, day: int = 10, hour: int = 8, minute: int = 0):
    moment = datetime(year, month, day, hour, minute, tzinfo=TZ)
    return lambda: moment


@pytest.fixture
def directory() -> MemoryPractitionerDirectory:
    return MemoryPractitionerDirectory()


@pytest.fixture
def store(directory) -> MemoryReservationStore:
    return MemoryReservationStore(directory=directory)


@pytest.fixture
def cache() -> MemoryWizardCache:
    return MemoryWizardCache()
