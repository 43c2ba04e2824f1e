from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from storebot.domain.entities.error_kind import ErrorKind


@dataclass(frozen=True)
class FunctionCallResult:
    success: bool
    data: dict[str, Any] | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    message: str | None = None
    components: list[dict[str, Any]] = field(default_factory=list)
    awaiting_input: bool = False

    @classmethod
    def ok(
        cls,
        data: dict[str, Any],
        message: str | None = None,
        components: list[dict[str, Any]] | None = None,
        awaiting_input: bool = False,
    ) -> "FunctionCallResult":
        return cls(
            success=True,
            data=data,
            message=message,
            components=list(components or []),
            awaiting_input=awaiting_input,
        )

    @classmethod
    def fail(cls, kind: ErrorKind, error: str) -> "FunctionCallResult":
        return cls(success=False, error=error, error_kind=kind)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            out["data"] = self.data
        if self.error is not None:
            out["error"] = self.error
        if self.error_kind is not None:
            out["error_kind"] = self.error_kind.value
        if self.message is not None:
            out["message"] = self.message
        if self.components:
            out["components"] = self.components
        if self.awaiting_input:
            out["awaiting_input"] = True
        return out
