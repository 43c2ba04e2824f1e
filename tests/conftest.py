from __future__ import annotations

from datetime import datetime, timezone

import pytest

from storebot.application.use_cases.booking import BookingUseCase
from storebot.application.use_cases.catalog import CatalogUseCase
from storebot.application.use_cases.data_gateway import DataGateway
from storebot.application.use_cases.function_executor import FunctionExecutor
from storebot.application.use_cases.leads import SubmitLeadUseCase
from storebot.application.use_cases.recommendations import RecommendationsUseCase
from storebot.infrastructure.cache.database_cache import DatabaseCache
from storebot.infrastructure.cache.memory_cache import MemoryCache
from storebot.infrastructure.cache.tiered_cache import TieredCache
from storebot.infrastructure.sheets.memory_sheet_source import InMemorySheetSource

STORE = "store-1"

BOOKING_HEADERS = ["service", "date", "time", "customerName", "email", "phone", "status", "createdAt", "confirmation"]


class FakeClock:
    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def store_tabs() -> dict:
    return {
        "Services": [
            {"serviceName": "Haircut", "category": "Hair", "price": "35", "duration": "60 minutes", "description": "Classic cut"},
            {"serviceName": "Beginner Pottery", "category": "Class", "price": "45", "duration": "90 minutes", "description": "Intro wheel class for beginners"},
            {"serviceName": "Advanced Glazing", "category": "Class", "price": "120", "duration": "120 minutes", "description": "Expert glazing techniques"},
        ],
        "Products": [
            {"name": "Shampoo", "category": "Hair", "price": "18", "description": "Sulfate-free"},
            {"name": "Clay Kit", "category": "Pottery", "price": "60", "description": "Clay for beginners"},
        ],
        "Hours": [
            {"day": "Monday", "openTime": "09:00", "closeTime": "17:00", "closed": True},
            {"day": "Tuesday", "openTime": "09:00", "closeTime": "17:00", "closed": False},
        ],
        "FAQ": [
            {"question": "Do you take walk-ins?", "answer": "Yes"},
            {"question": "Parking?", "answer": "Street parking only"},
        ],
    }


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def source() -> InMemorySheetSource:
    src = InMemorySheetSource({STORE: store_tabs()})
    src.load_tab(STORE, "Bookings", [], headers=list(BOOKING_HEADERS))
    src.load_tab(STORE, "Leads", [], headers=["Date", "Name", "Email", "Phone", "Message", "Status"])
    return src


@pytest.fixture
def caches(clock: FakeClock) -> dict:
    memory = MemoryCache(default_ttl_seconds=300, clock=clock)
    database = DatabaseCache(database_url="sqlite:///:memory:", default_ttl_seconds=3600, clock=clock)
    return {"memory": memory, "database": database, "tiered": TieredCache(memory=memory, persistent=database)}


@pytest.fixture
def gateway(source: InMemorySheetSource, caches: dict, clock: FakeClock) -> DataGateway:
    return DataGateway(source=source, caches=caches, default_cache_type="tiered", clock=clock)


@pytest.fixture
def executor(gateway: DataGateway) -> FunctionExecutor:
    fixed_now = lambda: datetime(2025, 3, 10, 17, 0, tzinfo=timezone.utc)  # noqa: E731
    return FunctionExecutor(
        booking=BookingUseCase(gateway=gateway, clock=fixed_now),
        catalog=CatalogUseCase(gateway=gateway),
        leads=SubmitLeadUseCase(gateway=gateway, clock=fixed_now),
        recommendations=RecommendationsUseCase(gateway=gateway),
    )
