from dataclasses import dataclass


@dataclass(frozen=True)
class ChatTurn:
    role: str  # "user" | "assistant"
    content: str
