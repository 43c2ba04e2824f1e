from enum import Enum
from pydantic import BaseModel, Field
from typing import Any


class Role(str, Enum):
    user = "user"
    assistant = "assistant"


class ChatTurnSchema(BaseModel):
    role: Role
    content: str


class ChatRequestSchema(BaseModel):
    store_id: str = Field(min_length=1)
    message: str = Field(min_length=1)
    history: list[ChatTurnSchema] = Field(default_factory=list)


class DirectRequestSchema(BaseModel):
    store_id: str = Field(min_length=1)
    action: str = Field(min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)


class FunctionResultSchema(BaseModel):
    success: bool
    data: dict[str, Any] | None = None
    error: str | None = None
    error_kind: str | None = None
    message: str | None = None
    components: list[dict[str, Any]] = Field(default_factory=list)
    awaiting_input: bool = False


class ChatResponseSchema(BaseModel):
    request_id: str
    mode: str
    text: str
    language: str = "en"
    function_called: str | None = None
    params: dict[str, Any] = Field(default_factory=dict)
    result: FunctionResultSchema | None = None
    components: list[dict[str, Any]] = Field(default_factory=list)
    needs_clarification: bool = False
    awaiting_input: bool = False
    display_text: str | None = None


class DebugStepSchema(BaseModel):
    name: str
    status: str
    duration_ms: float
    detail: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None


class DebugRequestSchema(BaseModel):
    id: str
    timestamp: float
    user_message: str
    mode: str
    steps: list[DebugStepSchema] = Field(default_factory=list)
    timings: dict[str, float] = Field(default_factory=dict)
    tokens: dict[str, int] = Field(default_factory=dict)
    cost: float = 0.0
    status: str
    error: str | None = None


class DebugListResponseSchema(BaseModel):
    requests: list[DebugRequestSchema]


class TabCacheStatsSchema(BaseModel):
    cached: bool
    rows: int
    age_seconds: int
    expires_in_seconds: int


class CacheStatsResponseSchema(BaseModel):
    store_id: str
    cache_type: str
    tabs: dict[str, TabCacheStatsSchema]


class CacheClearResponseSchema(BaseModel):
    store_id: str
    removed: int


class CachePrecacheResponseSchema(BaseModel):
    store_id: str
    rows: dict[str, int]
    failed: dict[str, str] = Field(default_factory=dict)
    duration_ms: float
