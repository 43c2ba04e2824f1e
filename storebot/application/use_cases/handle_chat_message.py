from __future__ import annotations

import logging
import time
from datetime import datetime, timezone as dt_timezone
from typing import Any, Callable
from zoneinfo import ZoneInfo

from storebot.application.exceptions import ClassificationError, LLMContractError, LLMUpstreamError
from storebot.application.ports.debug_recorder import DebugRecorderPort
from storebot.application.use_cases.classify_message import ClassifyMessageUseCase
from storebot.application.use_cases.direct_call import DirectCallRouter
from storebot.application.use_cases.function_executor import FunctionExecutor
from storebot.application.use_cases.reply_composer import ComposedReply, ReplyComposer
from storebot.application.utils.date_parser import today_and_tomorrow
from storebot.domain.entities.debug_record import DebugStep
from storebot.domain.entities.message import ChatTurn
from storebot.domain.entities.reply import ChatReply


def _ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


class HandleChatMessageUseCase:
    """
    One chat turn: classify (or route a known UI action), execute, compose.

    Classifier failures degrade to a clarification turn; executor failures come
    back as failed results. Each step is recorded for the debug view.
    """

    def __init__(
        self,
        classifier: ClassifyMessageUseCase,
        executor: FunctionExecutor,
        router: DirectCallRouter,
        composer: ReplyComposer,
        recorder: DebugRecorderPort,
        timezone: ZoneInfo | None = None,
        cost_input_per_1k: float = 0.0,
        cost_output_per_1k: float = 0.0,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._classifier = classifier
        self._executor = executor
        self._router = router
        self._composer = composer
        self._recorder = recorder
        self._timezone = timezone or ZoneInfo("UTC")
        self._cost_in = cost_input_per_1k
        self._cost_out = cost_output_per_1k
        self._clock = clock or (lambda: datetime.now(dt_timezone.utc))
        self._logger = logging.getLogger(__name__)

    def handle_message(self, store_id: str, history: list[ChatTurn], message: str) -> ChatReply:
        request_id = self._recorder.start_request(message, mode="classified")
        total_started = time.perf_counter()
        today, tomorrow = today_and_tomorrow(self._timezone, now=self._clock())

        started = time.perf_counter()
        try:
            decision = self._classifier.execute(history, message, today, tomorrow, request_id=request_id)
        except (LLMUpstreamError, LLMContractError, ClassificationError) as e:
            self._logger.warning(
                "Classification failed, asking for clarification",
                extra={"request_id": request_id, "store_id": store_id, "error": str(e)},
            )
            self._recorder.record(request_id, DebugStep("classifier", "error", _ms(started), error=str(e)))
            self._recorder.finish(request_id, "error", error=str(e), timings={"total_ms": _ms(total_started)})
            composed = self._composer.clarification(None)
            return ChatReply(request_id=request_id, mode="classified", text=composed.text, needs_clarification=True)

        classify_ms = _ms(started)
        self._recorder.record(
            request_id,
            DebugStep(
                "classifier",
                "success",
                classify_ms,
                detail={
                    "function": decision.function_to_call,
                    "params": decision.extracted_params,
                    "language": decision.user_language,
                    "needs_clarification": decision.needs_clarification,
                },
            ),
        )
        cost = (decision.input_tokens / 1000.0) * self._cost_in + (decision.output_tokens / 1000.0) * self._cost_out
        self._recorder.add_usage(request_id, decision.input_tokens, decision.output_tokens, cost)

        if decision.needs_clarification or not decision.function_to_call:
            composed = (
                self._composer.clarification(decision.clarification_question, decision.user_language)
                if decision.needs_clarification
                else self._composer.conversational(decision.reply, decision.user_language)
            )
            self._recorder.finish(
                request_id, "complete", timings={"classify_ms": classify_ms, "total_ms": _ms(total_started)}
            )
            return ChatReply(
                request_id=request_id,
                mode="classified",
                text=composed.text,
                language=decision.user_language,
                needs_clarification=decision.needs_clarification,
            )

        return self._run(
            request_id=request_id,
            mode="classified",
            store_id=store_id,
            function_name=decision.function_to_call,
            params=dict(decision.extracted_params),
            language=decision.user_language,
            timings={"classify_ms": classify_ms},
            total_started=total_started,
        )

    def handle_action(self, store_id: str, action: str, data: dict[str, Any] | None) -> ChatReply:
        """
        Raises:
            UnknownActionError: action has no direct-call mapping; nothing is executed
        """
        display_text = self._router.action_display_text(action, data)
        function_name, params = self._router.route(action, data)
        request_id = self._recorder.start_request(display_text, mode="direct")
        self._recorder.record(
            request_id, DebugStep("router", "success", 0.0, detail={"action": action, "function": function_name})
        )
        return self._run(
            request_id=request_id,
            mode="direct",
            store_id=store_id,
            function_name=function_name,
            params=params,
            language="en",
            timings={},
            total_started=time.perf_counter(),
            display_text=display_text,
        )

    def _run(
        self,
        request_id: str,
        mode: str,
        store_id: str,
        function_name: str,
        params: dict[str, Any],
        language: str,
        timings: dict[str, float],
        total_started: float,
        display_text: str | None = None,
    ) -> ChatReply:
        started = time.perf_counter()
        result = self._executor.execute(function_name, params, store_id)
        timings["function_ms"] = _ms(started)
        self._recorder.record(
            request_id,
            DebugStep(
                "executor",
                "success" if result.success else "error",
                timings["function_ms"],
                detail={"function": function_name, "params": params},
                error=result.error,
            ),
        )

        started = time.perf_counter()
        composed: ComposedReply = self._composer.compose(function_name, params, result, language)
        timings["compose_ms"] = _ms(started)
        self._recorder.record(request_id, DebugStep("responder", "success", timings["compose_ms"]))
        timings["total_ms"] = _ms(total_started)
        self._recorder.finish(
            request_id,
            "complete" if result.success else "error",
            error=result.error,
            timings=timings,
        )

        self._logger.info(
            "Chat turn handled",
            extra={
                "request_id": request_id,
                "store_id": store_id,
                "function": function_name,
                "mode": mode,
                "success": result.success,
            },
        )
        return ChatReply(
            request_id=request_id,
            mode=mode,
            text=composed.text,
            language=language,
            function_called=function_name,
            params=params,
            result=result.to_dict(),
            components=composed.components,
            awaiting_input=result.awaiting_input,
            display_text=display_text,
        )
