from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Callable

from sqlalchemy import Column, Float, String, Text, create_engine, delete, select
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from storebot.application.ports.cache import CachePort
from storebot.domain.entities.cache_entry import CacheEntry
from storebot.domain.entities.tab_dataset import CacheKey, TabDataset

Base = declarative_base()


class SheetCacheRow(Base):
    __tablename__ = "sheet_cache"

    store_id = Column(String, primary_key=True)
    tab_name = Column(String, primary_key=True)
    payload = Column(Text, nullable=False)
    cached_at = Column(Float, nullable=False)
    expiry = Column(Float, nullable=False, index=True)


def create_cache_engine(database_url: str):
    if database_url.startswith("sqlite"):
        if ":memory:" in database_url or database_url.rstrip("/") == "sqlite:":
            return create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        path = make_url(database_url).database
        if path:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(database_url, pool_pre_ping=True)


class DatabaseCache(CachePort):
    """
    Persistent TTL cache in a shared SQL table; survives restarts and is visible to every instance.

    Datastore failures are logged and treated as a miss (reads) or a no-op (writes),
    so a broken cache never fails a gateway read.
    """

    name = "database"

    def __init__(
        self,
        database_url: str = "sqlite:///:memory:",
        default_ttl_seconds: float = 3600,
        clock: Callable[[], float] = time.time,
        engine=None,
    ) -> None:
        self._engine = engine or create_cache_engine(database_url)
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
        self._default_ttl = default_ttl_seconds
        self._clock = clock
        self._logger = logging.getLogger(__name__)
        Base.metadata.create_all(bind=self._engine)

    def get_entry(self, key: CacheKey) -> CacheEntry | None:
        now = self._clock()
        try:
            with self._session_factory() as session:
                row = session.execute(
                    select(SheetCacheRow).where(
                        SheetCacheRow.store_id == key.store_id,
                        SheetCacheRow.tab_name == key.tab_name,
                        SheetCacheRow.expiry > now,
                    )
                ).scalar_one_or_none()
                if row is None:
                    self._logger.debug("Database cache miss", extra={"cache": key.as_string()})
                    return None
                entry = CacheEntry(
                    key=key,
                    payload=json.loads(row.payload),
                    cached_at=row.cached_at,
                    expiry=row.expiry,
                )
        except (SQLAlchemyError, ValueError) as e:
            self._logger.warning("Database cache read failed", extra={"cache": key.as_string(), "error": str(e)})
            return None
        self._logger.debug("Database cache hit", extra={"cache": key.as_string()})
        return entry

    def set(self, key: CacheKey, payload: TabDataset, ttl_seconds: float | None = None) -> CacheEntry:
        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            raise ValueError("ttl_seconds must be positive")
        now = self._clock()
        entry = CacheEntry(key=key, payload=[dict(r) for r in payload], cached_at=now, expiry=now + ttl)
        try:
            with self._session_factory() as session:
                session.merge(
                    SheetCacheRow(
                        store_id=key.store_id,
                        tab_name=key.tab_name,
                        payload=json.dumps(entry.payload, ensure_ascii=False),
                        cached_at=entry.cached_at,
                        expiry=entry.expiry,
                    )
                )
                session.commit()
        except SQLAlchemyError as e:
            self._logger.warning("Database cache write failed", extra={"cache": key.as_string(), "error": str(e)})
        return entry

    def invalidate(self, key: CacheKey) -> None:
        try:
            with self._session_factory() as session:
                session.execute(
                    delete(SheetCacheRow).where(
                        SheetCacheRow.store_id == key.store_id,
                        SheetCacheRow.tab_name == key.tab_name,
                    )
                )
                session.commit()
        except SQLAlchemyError as e:
            self._logger.error("Database cache invalidate failed", extra={"cache": key.as_string(), "error": str(e)})
            raise

    def invalidate_store(self, store_id: str) -> int:
        try:
            with self._session_factory() as session:
                result = session.execute(delete(SheetCacheRow).where(SheetCacheRow.store_id == store_id))
                session.commit()
                return int(result.rowcount or 0)
        except SQLAlchemyError as e:
            self._logger.error("Database cache clear failed", extra={"store_id": store_id, "error": str(e)})
            raise

    def entries(self, store_id: str) -> list[CacheEntry]:
        now = self._clock()
        try:
            with self._session_factory() as session:
                rows = session.execute(
                    select(SheetCacheRow).where(
                        SheetCacheRow.store_id == store_id,
                        SheetCacheRow.expiry > now,
                    )
                ).scalars().all()
                return [
                    CacheEntry(
                        key=CacheKey(store_id=r.store_id, tab_name=r.tab_name),
                        payload=json.loads(r.payload),
                        cached_at=r.cached_at,
                        expiry=r.expiry,
                    )
                    for r in rows
                ]
        except (SQLAlchemyError, ValueError) as e:
            self._logger.warning("Database cache stats failed", extra={"store_id": store_id, "error": str(e)})
            return []
