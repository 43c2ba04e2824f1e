from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from storebot.api.v1.schemas import ChatRequestSchema, ChatResponseSchema, DirectRequestSchema
from storebot.application.exceptions import UnknownActionError
from storebot.application.use_cases.handle_chat_message import HandleChatMessageUseCase
from storebot.domain.entities.message import ChatTurn
from storebot.domain.entities.reply import ChatReply
from storebot.wiring.dependencies import get_chat_use_case

router = APIRouter()


def _to_schema(reply: ChatReply) -> ChatResponseSchema:
    return ChatResponseSchema(
        request_id=reply.request_id,
        mode=reply.mode,
        text=reply.text,
        language=reply.language,
        function_called=reply.function_called,
        params=reply.params,
        result=reply.result,
        components=reply.components,
        needs_clarification=reply.needs_clarification,
        awaiting_input=reply.awaiting_input,
        display_text=reply.display_text,
    )


@router.post("/chat", response_model=ChatResponseSchema)
def chat(
    req: ChatRequestSchema,
    uc: HandleChatMessageUseCase = Depends(get_chat_use_case),
):
    history = [ChatTurn(role=t.role.value, content=t.content) for t in req.history]
    reply = uc.handle_message(store_id=req.store_id, history=history, message=req.message)
    return _to_schema(reply)


@router.post("/direct", response_model=ChatResponseSchema)
def direct(
    req: DirectRequestSchema,
    uc: HandleChatMessageUseCase = Depends(get_chat_use_case),
):
    try:
        reply = uc.handle_action(store_id=req.store_id, action=req.action, data=req.data)
    except UnknownActionError as e:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": e.message, "error_kind": e.kind.value},
        )
    return _to_schema(reply)
