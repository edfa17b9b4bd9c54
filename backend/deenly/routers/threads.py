from fastapi import APIRouter, Depends
from deenly.dependencies import get_current_user
from deenly.errors import ThreadNotFound
from deenly.models.messages import MessageResponse, message_response
from deenly.models.threads import ThreadResponse, ThreadStarUpdate, thread_response
from deenly.services.session import get_session
from deenly.services.threads import (
    active_thread,
    filter_by_search,
    segment,
    sort_for_display,
    thread_messages,
)

router = APIRouter(prefix="/api/threads", tags=["threads"])


def _find_thread(messages, thread_id: str):
    thread = next((t for t in segment(messages) if t.id == thread_id), None)
    if thread is None:
        raise ThreadNotFound(thread_id)
    return thread


@router.get("", response_model=list[ThreadResponse])
async def list_threads(q: str = "", user: dict = Depends(get_current_user)):
    session = get_session(user)
    state = await session.load()
    threads = sort_for_display(filter_by_search(segment(state.messages), q))
    return [thread_response(t) for t in threads]


@router.get("/active", response_model=list[MessageResponse])
async def get_active_thread(user: dict = Depends(get_current_user)):
    session = get_session(user)
    state = await session.load()
    return [message_response(m) for m in active_thread(state.messages)]


@router.get("/{thread_id}/messages", response_model=list[MessageResponse])
async def list_thread_messages(thread_id: str, user: dict = Depends(get_current_user)):
    session = get_session(user)
    await session.load()
    state = session.select(thread_id)
    return [
        message_response(m)
        for m in thread_messages(state.messages, state.active_thread_id)
    ]


@router.post("/{thread_id}/star", response_model=ThreadResponse)
async def toggle_thread_star(thread_id: str, user: dict = Depends(get_current_user)):
    session = get_session(user)
    await session.load()
    await session.apply_to_thread(thread_id, "toggle_star")
    return thread_response(_find_thread(session.state.messages, thread_id))


@router.put("/{thread_id}/star", response_model=ThreadResponse)
async def set_thread_star(
    thread_id: str, request: ThreadStarUpdate, user: dict = Depends(get_current_user)
):
    session = get_session(user)
    await session.load()
    await session.apply_to_thread(thread_id, "star" if request.starred else "unstar")
    return thread_response(_find_thread(session.state.messages, thread_id))


@router.delete("/{thread_id}", status_code=204)
async def delete_thread(thread_id: str, user: dict = Depends(get_current_user)):
    session = get_session(user)
    await session.load()
    await session.apply_to_thread(thread_id, "delete")
