from fastapi import APIRouter, Depends, HTTPException, Query

from storebot.api.v1.schemas import (
    CacheClearResponseSchema,
    CachePrecacheResponseSchema,
    CacheStatsResponseSchema,
)
from storebot.application.exceptions import InvalidDataError
from storebot.application.use_cases.data_gateway import DataGateway
from storebot.core.config import settings
from storebot.wiring.dependencies import get_data_gateway

router = APIRouter()


@router.get("/cache/{store_id}/stats", response_model=CacheStatsResponseSchema)
def cache_stats(
    store_id: str,
    cache_type: str | None = Query(default=None),
    gateway: DataGateway = Depends(get_data_gateway),
):
    try:
        tabs = gateway.stats(store_id, cache_type=cache_type)
    except InvalidDataError as e:
        raise HTTPException(status_code=400, detail=e.message)
    return CacheStatsResponseSchema(
        store_id=store_id,
        cache_type=(cache_type or settings.CACHE_STRATEGY).lower(),
        tabs=tabs,
    )


@router.delete("/cache/{store_id}", response_model=CacheClearResponseSchema)
def clear_cache(
    store_id: str,
    gateway: DataGateway = Depends(get_data_gateway),
):
    removed = gateway.clear_store(store_id)
    return CacheClearResponseSchema(store_id=store_id, removed=removed)


@router.post("/cache/{store_id}/precache", response_model=CachePrecacheResponseSchema)
def precache_store(
    store_id: str,
    cache_type: str | None = Query(default=None),
    gateway: DataGateway = Depends(get_data_gateway),
):
    try:
        result = gateway.precache(store_id, cache_type=cache_type)
    except InvalidDataError as e:
        raise HTTPException(status_code=400, detail=e.message)
    return CachePrecacheResponseSchema(**result)
