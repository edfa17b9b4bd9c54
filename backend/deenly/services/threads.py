"""Thread segmentation — derives chat threads from a flat message log.

Threads are not stored anywhere. A thread is a contiguous run of messages with
no inactivity gap longer than ``GAP`` between neighbours; its id is the id of
its first message (the anchor). Everything here is a pure function of the
current message snapshot and is recomputed on every call.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Literal

from deenly.errors import ThreadNotFound

GAP = timedelta(hours=2)
TITLE_LENGTH = 40
FALLBACK_TITLE = "Conversación"

Role = Literal["user", "assistant"]
Mutation = Literal["star", "unstar", "toggle_star", "delete"]


@dataclass(frozen=True)
class Message:
    id: str
    role: Role
    content: str
    timestamp: datetime
    starred: bool = False
    user_id: str | None = None


@dataclass(frozen=True)
class Thread:
    id: str
    title: str
    start_timestamp: datetime
    message_count: int
    starred: bool
    start_index: int  # half-open range into the chronological message list
    end_index: int


@dataclass(frozen=True)
class MutationPlan:
    """Store-level effect of a thread mutation, resolved before anything is written."""
    thread_id: str
    ids: tuple[str, ...]
    delete: bool = False
    starred: bool | None = None


def _is_boundary(messages: Sequence[Message], k: int) -> bool:
    return messages[k].timestamp - messages[k - 1].timestamp > GAP


def make_title(messages: Sequence[Message]) -> str:
    first_user = next((m for m in messages if m.role == "user"), None)
    if first_user is None:
        return FALLBACK_TITLE
    text = first_user.content
    if len(text) > TITLE_LENGTH:
        return text[:TITLE_LENGTH] + "..."
    return text


def _close_thread(messages: Sequence[Message], start: int, end: int) -> Thread:
    span = messages[start:end]
    return Thread(
        id=span[0].id,
        title=make_title(span),
        start_timestamp=span[0].timestamp,
        message_count=len(span),
        starred=any(m.starred for m in span),
        start_index=start,
        end_index=end,
    )


def segment(messages: Sequence[Message]) -> list[Thread]:
    """Split a chronological message list into threads, newest first.

    A boundary falls before message k iff it arrived more than GAP after
    message k-1. Exactly GAP apart stays in the same thread.
    """
    if not messages:
        return []
    threads: list[Thread] = []
    start = 0
    for k in range(1, len(messages)):
        if _is_boundary(messages, k):
            threads.append(_close_thread(messages, start, k))
            start = k
    threads.append(_close_thread(messages, start, len(messages)))
    threads.reverse()
    return threads


def range_of(messages: Sequence[Message], thread_id: str) -> tuple[int, int]:
    """Return the half-open ``(start, end)`` index range of the thread anchored at ``thread_id``.

    Raises ``ThreadNotFound`` unless ``thread_id`` is an anchor. Ids of later
    messages inside a thread are rejected too, so a mutation always covers a
    whole thread.
    """
    start = next((i for i, m in enumerate(messages) if m.id == thread_id), None)
    if start is None or (start > 0 and not _is_boundary(messages, start)):
        raise ThreadNotFound(thread_id)
    end = len(messages)
    for k in range(start + 1, len(messages)):
        if _is_boundary(messages, k):
            end = k
            break
    return start, end


def thread_messages(
    messages: Sequence[Message], active_thread_id: str | None
) -> list[Message]:
    """Messages shown for the selected thread; the whole log when nothing (valid) is selected."""
    if active_thread_id is None:
        return list(messages)
    try:
        start, end = range_of(messages, active_thread_id)
    except ThreadNotFound:
        return list(messages)
    return list(messages[start:end])


def active_thread(
    messages: Sequence[Message], now: datetime | None = None
) -> list[Message]:
    """The most recent thread, if it is still open (last message within GAP of now)."""
    if not messages:
        return []
    now = now or datetime.now(timezone.utc)
    if now - messages[-1].timestamp > GAP:
        return []
    start = len(messages) - 1
    while start > 0 and not _is_boundary(messages, start):
        start -= 1
    return list(messages[start:])


def filter_by_search(threads: Sequence[Thread], query: str) -> list[Thread]:
    if not query:
        return list(threads)
    needle = query.lower()
    return [t for t in threads if needle in t.title.lower()]


def sort_for_display(threads: Sequence[Thread]) -> list[Thread]:
    # sorted() is stable, so newest-first order survives inside each group
    return sorted(threads, key=lambda t: not t.starred)


def plan_mutation(
    messages: Sequence[Message], thread_id: str, mutation: Mutation
) -> MutationPlan:
    start, end = range_of(messages, thread_id)
    span = messages[start:end]
    ids = tuple(m.id for m in span)

    if mutation == "delete":
        return MutationPlan(thread_id=thread_id, ids=ids, delete=True)
    if mutation == "star":
        value = True
    elif mutation == "unstar":
        value = False
    elif mutation == "toggle_star":
        value = not any(m.starred for m in span)
    else:
        raise ValueError(f"Unknown thread mutation: {mutation!r}")
    return MutationPlan(thread_id=thread_id, ids=ids, starred=value)


def apply_plan(messages: Sequence[Message], plan: MutationPlan) -> list[Message]:
    """Apply an already-persisted plan to the in-memory snapshot."""
    targets = set(plan.ids)
    if plan.delete:
        return [m for m in messages if m.id not in targets]
    return [
        replace(m, starred=plan.starred) if m.id in targets else m
        for m in messages
    ]
