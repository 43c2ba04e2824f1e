from __future__ import annotations

import json

import pytest

from storebot.application.exceptions import ClassificationError, LLMContractError
from storebot.application.ports.llm import LLMCompletion, LLMPort
from storebot.application.use_cases.classify_message import ClassifyMessageUseCase, parse_classification
from storebot.domain.entities.message import ChatTurn
from storebot.infrastructure.llm.mock_llm import MockLLM
from storebot.infrastructure.llm.prompts import build_classification_prompt


class _CannedLLM(LLMPort):
    def __init__(self, text: str) -> None:
        self.text = text
        self.prompts: list[str] = []

    def complete_json(self, prompt: str, request_id: str | None = None) -> LLMCompletion:
        self.prompts.append(prompt)
        return LLMCompletion(text=self.text, input_tokens=120, output_tokens=30)


def test_parse_strips_markdown_fences_and_accepts_legacy_keys():
    """Test that fenced output and the function/parameters keys are accepted."""
    text = '```json\n{"function": "get_products", "parameters": {"category": "Hair"}}\n```'
    decision = parse_classification(text)

    assert decision.function_to_call == "get_products"
    assert decision.extracted_params == {"category": "Hair"}
    assert decision.user_language == "en"


def test_parse_rejects_function_outside_closed_set():
    """Test that an unknown function name is a ClassificationError."""
    with pytest.raises(ClassificationError):
        parse_classification(json.dumps({"function_to_call": "drop_tables", "extracted_params": {}}))


def test_parse_rejects_non_object_payloads():
    """Test that non-object or malformed output is rejected."""
    with pytest.raises(ClassificationError):
        parse_classification("[1, 2, 3]")
    with pytest.raises(ClassificationError):
        parse_classification("not json")
    with pytest.raises(ClassificationError):
        parse_classification(json.dumps({"function_to_call": "get_services", "extracted_params": "x"}))


def test_clarification_never_carries_a_function():
    """Test that a clarification decision drops any chosen function."""
    decision = parse_classification(
        json.dumps(
            {
                "needs_clarification": True,
                "clarification_question": "Which day?",
                "function_to_call": "check_availability",
                "extracted_params": {},
                "user_language": "ES",
            }
        )
    )
    assert decision.needs_clarification is True
    assert decision.function_to_call is None
    assert decision.user_language == "es"


def test_classifier_sends_history_and_dates_in_prompt():
    """Test that the prompt carries recent history and today/tomorrow."""
    llm = _CannedLLM(json.dumps({"function_to_call": "get_store_info", "extracted_params": {"info_type": "hours"}}))
    uc = ClassifyMessageUseCase(llm=llm, history_turns=2)
    history = [
        ChatTurn("user", "first"),
        ChatTurn("assistant", "second"),
        ChatTurn("user", "third"),
    ]

    decision = uc.execute(history, "when are you open?", "2025-03-10", "2025-03-11")

    prompt = llm.prompts[0]
    assert "TODAY'S DATE: 2025-03-10" in prompt
    assert "TOMORROW'S DATE: 2025-03-11" in prompt
    assert "first" not in prompt
    assert "assistant: second" in prompt
    assert decision.function_to_call == "get_store_info"
    assert decision.input_tokens == 120


def test_classifier_rejects_empty_message():
    """Test that a blank message is a contract error."""
    uc = ClassifyMessageUseCase(llm=_CannedLLM("{}"))
    with pytest.raises(LLMContractError):
        uc.execute([], "   ", "2025-03-10", "2025-03-11")


def test_mock_llm_output_parses_into_a_decision():
    """Test that the mock LLM extracts service and date for availability."""
    llm = MockLLM()
    prompt = build_classification_prompt([], "Is Haircut available on 2025-03-11?", "2025-03-10", "2025-03-11")

    decision = parse_classification(llm.complete_json(prompt).text)

    assert decision.function_to_call == "check_availability"
    assert decision.extracted_params == {"date": "2025-03-11", "service_name": "Haircut"}


def test_mock_llm_greeting_is_conversational():
    """Test that a Spanish greeting gets a conversational reply."""
    prompt = build_classification_prompt([], "hola", "2025-03-10", "2025-03-11")
    decision = parse_classification(MockLLM().complete_json(prompt).text)

    assert decision.is_conversational
    assert decision.user_language == "es"
    assert decision.reply


def test_string_false_flag_keeps_the_chosen_function():
    """Test that needs_clarification given as the string "false" does not drop the function."""
    decision = parse_classification(
        json.dumps(
            {
                "needs_clarification": "false",
                "function_to_call": "get_products",
                "extracted_params": {"category": "Hair"},
            }
        )
    )

    assert decision.needs_clarification is False
    assert decision.function_to_call == "get_products"


def test_string_true_flag_asks_for_clarification():
    """Test that the string "True" is read as a clarification request."""
    decision = parse_classification(
        json.dumps({"needs_clarification": "True", "clarification_question": "Which day?", "function_to_call": "get_products"})
    )

    assert decision.needs_clarification is True
    assert decision.function_to_call is None


def test_non_boolean_flag_is_a_classification_error():
    """Test that an unreadable needs_clarification value is rejected instead of guessed."""
    with pytest.raises(ClassificationError):
        parse_classification(json.dumps({"needs_clarification": "maybe", "function_to_call": "get_products"}))
