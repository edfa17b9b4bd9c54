from pydantic import BaseModel
from datetime import datetime
from typing import Literal, Optional


class MessageCreate(BaseModel):
    content: str


class MessageResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    role: Literal["user", "assistant"]
    content: str
    created_at: datetime
    starred: bool = False


class ChatResponse(BaseModel):
    user_message: MessageResponse
    assistant_message: MessageResponse
    thread_id: str
    questions_today: int


def message_response(message) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        user_id=message.user_id,
        role=message.role,
        content=message.content,
        created_at=message.timestamp,
        starred=message.starred,
    )
