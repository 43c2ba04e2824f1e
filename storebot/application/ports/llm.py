from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class LLMCompletion:
    text: str
    input_tokens: int = 0
    output_tokens: int = 0
    model: str | None = None


class LLMPort(ABC):
    @abstractmethod
    def complete_json(self, prompt: str, request_id: str | None = None) -> LLMCompletion:
        """
        Run a single prompt and return the raw model text, expected to be a JSON object.

        Requirements:
        - Must not parse or validate the JSON; callers own the output contract
        - Should request JSON output mode when the provider supports it

        Raises:
            LLMUpstreamError: networking/provider failures
            LLMContractError: provider returned an empty response
        """
        raise NotImplementedError
