from functools import lru_cache
import logging
from zoneinfo import ZoneInfo

from storebot.core.config import settings
from storebot.application.ports.cache import CachePort
from storebot.application.ports.debug_recorder import DebugRecorderPort
from storebot.application.ports.llm import LLMPort
from storebot.application.ports.sheet_source import SheetSourcePort
from storebot.application.use_cases.booking import BookingUseCase
from storebot.application.use_cases.catalog import CatalogUseCase
from storebot.application.use_cases.classify_message import ClassifyMessageUseCase
from storebot.application.use_cases.data_gateway import DataGateway
from storebot.application.use_cases.direct_call import DirectCallRouter
from storebot.application.use_cases.function_executor import FunctionExecutor
from storebot.application.use_cases.handle_chat_message import HandleChatMessageUseCase
from storebot.application.use_cases.leads import SubmitLeadUseCase
from storebot.application.use_cases.recommendations import RecommendationsUseCase
from storebot.application.use_cases.reply_composer import ReplyComposer
from storebot.application.utils.slots import build_slot_strategy
from storebot.infrastructure.cache.database_cache import DatabaseCache
from storebot.infrastructure.cache.memory_cache import MemoryCache
from storebot.infrastructure.cache.tiered_cache import TieredCache
from storebot.infrastructure.llm.mock_llm import MockLLM
from storebot.infrastructure.llm.openai_llm import OpenAILLM
from storebot.infrastructure.sheets.demo_data import DEMO_HEADERS, DEMO_STORE_ID, DEMO_TABS
from storebot.infrastructure.sheets.http_sheet_source import HttpSheetSource
from storebot.infrastructure.sheets.memory_sheet_source import InMemorySheetSource
from storebot.infrastructure.telemetry.debug_recorder import DebugRecorder


@lru_cache
def get_llm() -> LLMPort:
    if settings.OPENAI_API_KEY and settings.OPENAI_API_KEY.strip():
        return OpenAILLM()
    return MockLLM(timezone=get_timezone())


@lru_cache
def get_timezone() -> ZoneInfo:
    return ZoneInfo(settings.BUSINESS_TIMEZONE)


@lru_cache
def get_sheet_source() -> SheetSourcePort:
    logger = logging.getLogger(__name__)
    if settings.SHEETS_API_URL:
        logger.info("Using HttpSheetSource")
        return HttpSheetSource()

    if settings.ENV.lower() in {"dev", "local"}:
        logger.info("Using InMemorySheetSource with demo store (SHEETS_API_URL missing, ENV=dev/local)")
        source = InMemorySheetSource()
        for tab_name, rows in DEMO_TABS.items():
            source.load_tab(DEMO_STORE_ID, tab_name, rows, headers=DEMO_HEADERS.get(tab_name))
        return source
    raise ValueError("SHEETS_API_URL is required outside dev/local.")


@lru_cache
def get_caches() -> dict[str, CachePort]:
    memory = MemoryCache(default_ttl_seconds=settings.MEMORY_CACHE_TTL_SECONDS)
    caches: dict[str, CachePort] = {"memory": memory}
    if settings.CACHE_STRATEGY.lower() in {"database", "tiered"}:
        database = DatabaseCache(
            database_url=settings.CACHE_DATABASE_URL,
            default_ttl_seconds=settings.DATABASE_CACHE_TTL_SECONDS,
        )
        caches["database"] = database
        caches["tiered"] = TieredCache(memory=memory, persistent=database)
    return caches


@lru_cache
def get_data_gateway() -> DataGateway:
    return DataGateway(
        source=get_sheet_source(),
        caches=get_caches(),
        default_cache_type=settings.CACHE_STRATEGY,
        single_flight=settings.CACHE_SINGLE_FLIGHT,
    )


@lru_cache
def get_debug_recorder() -> DebugRecorderPort:
    return DebugRecorder(max_requests=settings.DEBUG_MAX_REQUESTS, queue_size=settings.DEBUG_QUEUE_SIZE)


@lru_cache
def get_function_executor() -> FunctionExecutor:
    gateway = get_data_gateway()
    return FunctionExecutor(
        booking=BookingUseCase(
            gateway=gateway,
            slot_strategy=build_slot_strategy(settings.SLOT_STRATEGY),
            timezone=get_timezone(),
            booking_slot_days=settings.BOOKING_SLOT_DAYS,
        ),
        catalog=CatalogUseCase(gateway=gateway),
        leads=SubmitLeadUseCase(gateway=gateway),
        recommendations=RecommendationsUseCase(gateway=gateway),
    )


@lru_cache
def get_chat_use_case() -> HandleChatMessageUseCase:
    return HandleChatMessageUseCase(
        classifier=ClassifyMessageUseCase(llm=get_llm(), history_turns=settings.HISTORY_TURNS),
        executor=get_function_executor(),
        router=DirectCallRouter(),
        composer=ReplyComposer(),
        recorder=get_debug_recorder(),
        timezone=get_timezone(),
        cost_input_per_1k=settings.OPENAI_COST_INPUT_PER_1K,
        cost_output_per_1k=settings.OPENAI_COST_OUTPUT_PER_1K,
    )
