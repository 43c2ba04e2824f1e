from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from storebot.domain.entities.debug_record import DebugRequestRecord, DebugStep


class DebugRecorderPort(ABC):
    """Fire-and-forget pipeline telemetry. No method may raise or block the caller."""

    @abstractmethod
    def start_request(self, user_message: str, mode: str = "classified", request_id: str | None = None) -> str:
        raise NotImplementedError

    @abstractmethod
    def record(self, request_id: str, step: DebugStep) -> None:
        raise NotImplementedError

    @abstractmethod
    def add_usage(self, request_id: str, input_tokens: int, output_tokens: int, cost: float) -> None:
        raise NotImplementedError

    @abstractmethod
    def finish(self, request_id: str, status: str, error: str | None = None, timings: dict[str, Any] | None = None) -> None:
        raise NotImplementedError

    @abstractmethod
    def list_requests(self, limit: int | None = None) -> list[DebugRequestRecord]:
        raise NotImplementedError

    @abstractmethod
    def get(self, request_id: str) -> DebugRequestRecord | None:
        raise NotImplementedError

    def flush(self, timeout: float = 1.0) -> bool:
        return True
