import logging
from zoneinfo import ZoneInfo

from booking_engine.application.ports.practitioner_directory import PractitionerDirectoryPort
from booking_engine.application.ports.reservation_store import ReservationStorePort
from booking_engine.application.ports.wizard_cache import WizardCachePort
from booking_engine.application.use_cases.booking_flow import BookingFlowUseCase
from booking_engine.application.utils.clock import Clock, business_clock
from booking_engine.core.config import settings
from booking_engine.infrastructure.cache.json_wizard_cache import JsonWizardCache
from booking_engine.infrastructure.cache.memory_wizard_cache import MemoryWizardCache
from booking_engine.infrastructure.directory.http_directory import HttpPractitionerDirectory
from booking_engine.infrastructure.directory.memory_directory import MemoryPractitionerDirectory
from booking_engine.infrastructure.store.http_reservation_store import HttpReservationStore
from booking_engine.infrastructure.store.memory_reservation_store import MemoryReservationStore


_directory: PractitionerDirectoryPort | None = None
_reservation_store: ReservationStorePort | None = None
_wizard_cache: WizardCachePort | None = None

logger = logging.getLogger(__name__)


def _is_local() -> bool:
    return settings.ENV.lower() in {"dev", "local"}


def get_directory() -> PractitionerDirectoryPort:
    global _directory
    if _directory is None:
        if not settings.DIRECTORY_URL or _is_local():
            logger.info("Using MemoryPractitionerDirectory (DIRECTORY_URL missing or ENV=dev/local)")
            _directory = MemoryPractitionerDirectory()
        else:
            _directory = HttpPractitionerDirectory(
                base_url=settings.DIRECTORY_URL,
                timeout=settings.HTTP_TIMEOUT_SECONDS,
            )
    return _directory


def get_reservation_store() -> ReservationStorePort:
    global _reservation_store
    if _reservation_store is None:
        if not settings.RESERVATION_STORE_URL or _is_local():
            logger.info("Using MemoryReservationStore (RESERVATION_STORE_URL missing or ENV=dev/local)")
            _reservation_store = MemoryReservationStore(directory=get_directory())
        else:
            _reservation_store = HttpReservationStore(
                base_url=settings.RESERVATION_STORE_URL,
                timeout=settings.HTTP_TIMEOUT_SECONDS,
            )
    return _reservation_store


def get_wizard_cache() -> WizardCachePort:
    global _wizard_cache
    if _wizard_cache is None:
        backend = (settings.WIZARD_CACHE_BACKEND or ("json" if _is_local() else "memory")).lower()
        if backend == "json":
            logger.info("Using JsonWizardCache at %s", settings.WIZARD_CACHE_DIR)
            _wizard_cache = JsonWizardCache(data_dir=settings.WIZARD_CACHE_DIR)
        else:
            _wizard_cache = MemoryWizardCache()
    return _wizard_cache


def get_timezone() -> ZoneInfo:
    return ZoneInfo(settings.BUSINESS_TIMEZONE)


def get_clock() -> Clock:
    return business_clock(get_timezone())


def get_booking_flow() -> BookingFlowUseCase:
    return BookingFlowUseCase(
        store=get_reservation_store(),
        directory=get_directory(),
        cache=get_wizard_cache(),
        clock=get_clock(),
        timezone=get_timezone(),
        morning_cutoff_hour=settings.MORNING_CUTOFF_HOUR,
        default_rate=settings.DEFAULT_BASE_RATE,
    )
