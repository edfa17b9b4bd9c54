from pydantic import BaseModel
from datetime import datetime


class ThreadResponse(BaseModel):
    id: str
    title: str
    created_at: datetime
    message_count: int
    starred: bool


class ThreadStarUpdate(BaseModel):
    starred: bool


def thread_response(thread) -> ThreadResponse:
    return ThreadResponse(
        id=thread.id,
        title=thread.title,
        created_at=thread.start_timestamp,
        message_count=thread.message_count,
        starred=thread.starred,
    )
