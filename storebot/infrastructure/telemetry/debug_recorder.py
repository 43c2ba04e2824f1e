from __future__ import annotations

import copy
import logging
import queue
import threading
import time
import uuid
from collections import deque
from typing import Any

from storebot.application.ports.debug_recorder import DebugRecorderPort
from storebot.domain.entities.debug_record import DebugRequestRecord, DebugStep


class DebugRecorder(DebugRecorderPort):
    """
    Process-wide ring of recent request traces.

    Callers only enqueue (put_nowait); a daemon observer thread applies events to a
    bounded deque, so a slow reader or a burst of requests never blocks the pipeline.
    When the queue is full the event is dropped.
    """

    def __init__(self, max_requests: int = 100, queue_size: int = 1000) -> None:
        self._records: deque[DebugRequestRecord] = deque(maxlen=max_requests)
        self._index: dict[str, DebugRequestRecord] = {}
        self._lock = threading.Lock()
        self._queue: queue.Queue[tuple[str, tuple[Any, ...]]] = queue.Queue(maxsize=queue_size)
        self._logger = logging.getLogger(__name__)
        self._observer = threading.Thread(target=self._drain, name="debug-recorder", daemon=True)
        self._observer.start()

    def start_request(self, user_message: str, mode: str = "classified", request_id: str | None = None) -> str:
        request_id = request_id or uuid.uuid4().hex
        self._emit("start", (request_id, user_message, mode, time.time()))
        return request_id

    def record(self, request_id: str, step: DebugStep) -> None:
        self._emit("step", (request_id, step))

    def add_usage(self, request_id: str, input_tokens: int, output_tokens: int, cost: float) -> None:
        self._emit("usage", (request_id, input_tokens, output_tokens, cost))

    def finish(self, request_id: str, status: str, error: str | None = None, timings: dict[str, Any] | None = None) -> None:
        self._emit("finish", (request_id, status, error, dict(timings or {})))

    def list_requests(self, limit: int | None = None) -> list[DebugRequestRecord]:
        with self._lock:
            records = list(reversed(self._records))
            if limit is not None:
                records = records[: max(limit, 0)]
            return copy.deepcopy(records)

    def get(self, request_id: str) -> DebugRequestRecord | None:
        with self._lock:
            record = self._index.get(request_id)
            return copy.deepcopy(record) if record is not None else None

    def flush(self, timeout: float = 1.0) -> bool:
        """Wait until every event queued so far has been applied."""
        done = threading.Event()
        try:
            self._queue.put(("flush", (done,)), timeout=timeout)
        except queue.Full:
            return False
        return done.wait(timeout)

    def _emit(self, kind: str, payload: tuple[Any, ...]) -> None:
        try:
            self._queue.put_nowait((kind, payload))
        except queue.Full:
            self._logger.debug("Debug queue full, dropping event", extra={"event": kind})

    def _drain(self) -> None:
        while True:
            kind, payload = self._queue.get()
            try:
                self._apply(kind, payload)
            except Exception:
                self._logger.exception("Debug event could not be applied", extra={"event": kind})
            finally:
                self._queue.task_done()

    def _apply(self, kind: str, payload: tuple[Any, ...]) -> None:
        if kind == "flush":
            payload[0].set()
            return

        with self._lock:
            if kind == "start":
                request_id, user_message, mode, ts = payload
                if len(self._records) == self._records.maxlen:
                    evicted = self._records[0]
                    self._index.pop(evicted.id, None)
                record = DebugRequestRecord(id=request_id, timestamp=ts, user_message=user_message, mode=mode)
                self._records.append(record)
                self._index[request_id] = record
                return

            record = self._index.get(payload[0])
            if record is None:
                return
            if kind == "step":
                record.steps.append(payload[1])
            elif kind == "usage":
                _, input_tokens, output_tokens, cost = payload
                record.tokens["input"] += int(input_tokens)
                record.tokens["output"] += int(output_tokens)
                record.cost += float(cost)
            elif kind == "finish":
                _, status, error, timings = payload
                record.status = status
                record.error = error
                record.timings.update(timings)
