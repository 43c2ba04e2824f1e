from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ChatReply:
    """Response of one pipeline turn; same shape for the classified and direct paths."""

    request_id: str
    mode: str  # "classified" | "direct"
    text: str
    language: str = "en"
    function_called: str | None = None
    params: dict[str, Any] = field(default_factory=dict)
    result: dict[str, Any] | None = None
    components: list[dict[str, Any]] = field(default_factory=list)
    needs_clarification: bool = False
    awaiting_input: bool = False
    display_text: str | None = None
