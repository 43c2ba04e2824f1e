from __future__ import annotations

from dataclasses import dataclass

from storebot.domain.entities.tab_dataset import CacheKey, TabDataset


@dataclass(frozen=True)
class CacheEntry:
    key: CacheKey
    payload: TabDataset
    cached_at: float
    expiry: float

    def is_valid(self, now: float) -> bool:
        return now < self.expiry

    def remaining_seconds(self, now: float) -> float:
        return max(0.0, self.expiry - now)

    def age_seconds(self, now: float) -> float:
        return max(0.0, now - self.cached_at)
