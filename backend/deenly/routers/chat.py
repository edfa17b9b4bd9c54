from fastapi import APIRouter, Depends, HTTPException
from deenly.dependencies import get_current_user
from deenly.models.messages import (
    ChatResponse,
    MessageCreate,
    MessageResponse,
    message_response,
)
from deenly.services.memories import memory_texts
from deenly.services.session import get_session

router = APIRouter(prefix="/api", tags=["chat"])


@router.get("/messages", response_model=list[MessageResponse])
async def list_messages(user: dict = Depends(get_current_user)):
    session = get_session(user)
    state = await session.load()
    return [message_response(m) for m in state.messages]


@router.delete("/messages", status_code=204)
async def clear_messages(user: dict = Depends(get_current_user)):
    session = get_session(user)
    await session.clear_all()


@router.post("/chat", response_model=ChatResponse)
async def chat(request: MessageCreate, user: dict = Depends(get_current_user)):
    if not request.content.strip():
        raise HTTPException(status_code=400, detail="Message content is empty")

    session = get_session(user)
    await session.load()
    memories = await memory_texts(user)
    result = await session.handle_send(request.content, memories)

    return ChatResponse(
        user_message=message_response(result.user_message),
        assistant_message=message_response(result.assistant_message),
        thread_id=result.thread_id,
        questions_today=result.questions_today,
    )
