from __future__ import annotations

from openai import OpenAI

from storebot.application.exceptions import LLMContractError, LLMUpstreamError
from storebot.application.ports.llm import LLMCompletion, LLMPort
from storebot.core.config import settings


class OpenAILLM(LLMPort):
    """
    OpenAI-backed adapter implementing LLMPort.

    Contract guarantees:
    - complete_json returns the raw, non-empty model text plus token usage
    - Raises:
        LLMUpstreamError: networking/provider failures
        LLMContractError: empty response
    """

    def __init__(self, client: OpenAI | None = None) -> None:
        self.client = client or OpenAI(api_key=settings.OPENAI_API_KEY, timeout=settings.OPENAI_TIMEOUT_SECONDS)

    def complete_json(self, prompt: str, request_id: str | None = None) -> LLMCompletion:
        model = settings.OPENAI_MODEL_CLASSIFY
        try:
            system_content = "Return only valid JSON. Do not include markdown or extra text."
            if request_id:
                system_content += f" Request ID: {request_id}"

            resp = self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_content},
                    {"role": "user", "content": prompt},
                ],
                temperature=settings.OPENAI_TEMPERATURE_CLASSIFY,
                max_tokens=settings.OPENAI_MAX_TOKENS_CLASSIFY,
                response_format={"type": "json_object"},
            )
        except Exception as e:
            raise LLMUpstreamError(f"OpenAI API error: {e}") from e

        content = (resp.choices[0].message.content or "").strip() if resp.choices else ""
        if not content:
            raise LLMContractError("LLM returned empty response text.")

        usage = getattr(resp, "usage", None)
        return LLMCompletion(
            text=content,
            input_tokens=int(getattr(usage, "prompt_tokens", 0) or 0),
            output_tokens=int(getattr(usage, "completion_tokens", 0) or 0),
            model=getattr(resp, "model", None) or model,
        )
