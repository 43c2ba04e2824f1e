from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ClassificationDecision:
    needs_clarification: bool = False
    clarification_question: str | None = None
    function_to_call: str | None = None
    extracted_params: dict[str, Any] = field(default_factory=dict)
    user_language: str = "en"
    reply: str | None = None  # conversational text for turns without a function
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def is_conversational(self) -> bool:
        return not self.needs_clarification and not self.function_to_call
