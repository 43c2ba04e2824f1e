from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class DebugStep:
    name: str  # "classifier", "executor", "responder", "router", ...
    status: str  # "success", "error", "skipped"
    duration_ms: float = 0.0
    detail: dict[str, Any] = field(default_factory=dict)
    error: str | None = None


@dataclass
class DebugRequestRecord:
    id: str
    timestamp: float
    user_message: str
    mode: str = "classified"  # "classified" or "direct"
    steps: list[DebugStep] = field(default_factory=list)
    timings: dict[str, float] = field(default_factory=dict)
    tokens: dict[str, int] = field(default_factory=lambda: {"input": 0, "output": 0})
    cost: float = 0.0
    status: str = "pending"  # "pending", "complete", "error"
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "user_message": self.user_message,
            "mode": self.mode,
            "steps": [
                {
                    "name": s.name,
                    "status": s.status,
                    "duration_ms": round(s.duration_ms, 2),
                    "detail": s.detail,
                    "error": s.error,
                }
                for s in self.steps
            ],
            "timings": dict(self.timings),
            "tokens": dict(self.tokens),
            "cost": round(self.cost, 6),
            "status": self.status,
            "error": self.error,
        }
