from __future__ import annotations

import json
import logging
import re
from typing import Any

from storebot.application.exceptions import ClassificationError, LLMContractError
from storebot.application.ports.llm import LLMPort
from storebot.application.use_cases.function_executor import CALLABLE_FUNCTIONS
from storebot.domain.entities.classification import ClassificationDecision
from storebot.domain.entities.message import ChatTurn
from storebot.infrastructure.llm.prompts import build_classification_prompt

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def strip_fences(text: str) -> str:
    return _FENCE_RE.sub("", text.strip()).strip()


def _parse_flag(value: Any) -> bool:
    """JSON boolean, or its string spelling; anything else is a contract error."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ClassificationError(f"needs_clarification must be a boolean, got {value!r}")


def parse_classification(text: str, input_tokens: int = 0, output_tokens: int = 0) -> ClassificationDecision:
    """
    Parse raw classifier output into a decision.

    Accepts `function`/`parameters` as legacy aliases of
    `function_to_call`/`extracted_params`. A function outside CALLABLE_FUNCTIONS
    is rejected so it can never reach the executor.
    """
    try:
        data: Any = json.loads(strip_fences(text))
    except (TypeError, ValueError) as e:
        snippet = str(text)[:200].replace("\n", " ")
        raise ClassificationError(f"Classifier returned invalid JSON. Snippet: {snippet!r}") from e
    if not isinstance(data, dict):
        raise ClassificationError("Classifier output must be a JSON object.")

    function_name = data.get("function_to_call", data.get("function"))
    if function_name in ("", "null", "none"):
        function_name = None
    if function_name is not None and function_name not in CALLABLE_FUNCTIONS:
        raise ClassificationError(f"Classifier chose an unknown function: {function_name!r}")

    params = data.get("extracted_params", data.get("parameters")) or {}
    if not isinstance(params, dict):
        raise ClassificationError("extracted_params must be a JSON object.")

    needs_clarification = _parse_flag(data.get("needs_clarification"))
    question = data.get("clarification_question")
    language = data.get("user_language")
    reply = data.get("reply")

    return ClassificationDecision(
        needs_clarification=needs_clarification,
        clarification_question=str(question) if question else None,
        function_to_call=None if needs_clarification else function_name,
        extracted_params={k: v for k, v in params.items() if v is not None},
        user_language=str(language).strip().lower() if language else "en",
        reply=str(reply) if reply else None,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
    )


class ClassifyMessageUseCase:
    def __init__(self, llm: LLMPort, history_turns: int = 6) -> None:
        self._llm = llm
        self._history_turns = history_turns
        self._logger = logging.getLogger(__name__)

    def execute(
        self,
        history: list[ChatTurn],
        last_message: str,
        today: str,
        tomorrow: str,
        request_id: str | None = None,
    ) -> ClassificationDecision:
        """
        Raises:
            LLMUpstreamError: provider failures
            LLMContractError: empty provider response
            ClassificationError: unparseable output or unknown function
        """
        if not last_message or not last_message.strip():
            raise LLMContractError("Cannot classify an empty message.")
        prompt = build_classification_prompt(history, last_message, today, tomorrow, max_turns=self._history_turns)
        completion = self._llm.complete_json(prompt, request_id=request_id)
        decision = parse_classification(completion.text, completion.input_tokens, completion.output_tokens)
        self._logger.info(
            "Message classified",
            extra={
                "request_id": request_id,
                "function": decision.function_to_call,
                "language": decision.user_language,
                "clarify": decision.needs_clarification,
            },
        )
        return decision
