"""Chat session — one user's message snapshot and the operations that change it.

``ChatState`` is an immutable state container; every event produces a new
state through one of the transition functions below. ``ChatSession`` owns the
state for one user (or guest session), talks to the collaborators, and
serializes mutations with an ``asyncio.Lock`` so a store call is always
resolved before the next mutation starts. Store calls happen first; the
snapshot only changes once the store has accepted the change.

Guest sessions have no store at all: their snapshot lives only in this
process and is gone after a restart.
"""
import asyncio
import logging
import uuid
from collections import OrderedDict
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone

from deenly.config import settings
from deenly.errors import ConcurrentRequest, LimitReached, ResponderError
from deenly.services import entitlements
from deenly.services.message_store import MessageStore, SupabaseMessageStore
from deenly.services.responder import Responder, responder as default_responder
from deenly.services.threads import (
    Message,
    MutationPlan,
    Mutation,
    active_thread,
    apply_plan,
    plan_mutation,
)

logger = logging.getLogger(__name__)

EMPTY_REPLY = "Lo siento, no pude procesar tu solicitud en este momento."
ERROR_PREFIX = "Hubo un error al conectar con Deenly."
CONNECTIVITY_HINT = (
    " Error de conexión. Por favor, verifica tu conexión a internet "
    "o la configuración de las claves API."
)


@dataclass(frozen=True)
class ChatState:
    messages: tuple[Message, ...] = ()
    active_thread_id: str | None = None
    loading: bool = False


# ── Transitions ────────────────────────────────────────────────────────────────

def with_messages(state: ChatState, messages: Sequence[Message]) -> ChatState:
    return replace(state, messages=tuple(messages))


def with_message(state: ChatState, message: Message) -> ChatState:
    return replace(state, messages=state.messages + (message,))


def select_thread(state: ChatState, thread_id: str | None) -> ChatState:
    return replace(state, active_thread_id=thread_id)


def set_loading(state: ChatState, loading: bool) -> ChatState:
    return replace(state, loading=loading)


def with_mutation(state: ChatState, plan: MutationPlan) -> ChatState:
    active = state.active_thread_id
    if plan.delete and active in plan.ids:
        active = None
    return replace(
        state, messages=tuple(apply_plan(state.messages, plan)), active_thread_id=active
    )


def cleared(state: ChatState) -> ChatState:
    return replace(state, messages=(), active_thread_id=None)


# ── Session ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SendResult:
    user_message: Message
    assistant_message: Message
    thread_id: str
    questions_today: int


def error_reply_text(error: ResponderError) -> str:
    if error.is_connectivity:
        return ERROR_PREFIX + CONNECTIVITY_HINT
    return f"{ERROR_PREFIX} Detalle: {str(error) or 'Error desconocido'}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChatSession:
    def __init__(
        self,
        user: dict,
        store: MessageStore | None,
        responder: Responder | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.user = user
        self.store = store
        self.responder = responder or default_responder
        self.clock = clock
        self.state = ChatState()
        self.last_used = _utcnow()
        self._lock = asyncio.Lock()

    @property
    def user_id(self) -> str:
        return self.user["id"]

    async def load(self) -> ChatState:
        """Refresh the snapshot from the store. A no-op for guests."""
        if self.store is None:
            return self.state
        async with self._lock:
            messages = await self.store.list_messages(self.user_id)
            self.state = with_messages(self.state, messages)
        return self.state

    def select(self, thread_id: str | None) -> ChatState:
        self.state = select_thread(self.state, thread_id)
        return self.state

    async def _append(self, message: Message) -> None:
        async with self._lock:
            if self.store is not None:
                await self.store.insert_message(self.user_id, message)
            self.state = with_message(self.state, message)

    def _new_message(self, role: str, content: str) -> Message:
        return Message(
            id=str(uuid.uuid4()),
            role=role,  # type: ignore[arg-type]
            content=content,
            timestamp=self.clock(),
            user_id=self.user_id,
        )

    async def handle_send(self, text: str, memories: Sequence[str] = ()) -> SendResult | None:
        """Send one question and record the reply.

        Returns None for blank input. Raises ``LimitReached`` without calling
        the responder when a free user has used up today's questions, and
        ``ConcurrentRequest`` while a previous reply is still pending.
        """
        if not text.strip():
            return None
        if self.state.loading:
            raise ConcurrentRequest()
        if entitlements.limit_reached(self.user):
            raise LimitReached(settings.daily_question_limit)

        premium = entitlements.is_premium(self.user)
        self.state = set_loading(self.state, True)
        try:
            history = self.state.messages
            user_message = self._new_message("user", text)
            await self._append(user_message)
            if not premium:
                entitlements.increment_daily_count(self.user_id)

            try:
                reply = await self.responder.respond(text, history, list(memories), premium)
                assistant_message = self._new_message("assistant", reply or EMPTY_REPLY)
                await self._append(assistant_message)
            except ResponderError as e:
                logger.warning(f"Responder failed for user {self.user_id}: {e}")
                # Shown to the user but never persisted
                assistant_message = self._new_message("assistant", error_reply_text(e))
                self.state = with_message(self.state, assistant_message)
        finally:
            self.state = set_loading(self.state, False)

        current = active_thread(self.state.messages, now=assistant_message.timestamp)
        thread_id = current[0].id if current else assistant_message.id
        self.state = select_thread(self.state, thread_id)
        return SendResult(
            user_message=user_message,
            assistant_message=assistant_message,
            thread_id=thread_id,
            questions_today=entitlements.daily_question_count(self.user_id),
        )

    async def apply_to_thread(self, thread_id: str, mutation: Mutation) -> MutationPlan:
        """Star, unstar, toggle or delete every message of one thread.

        Raises ``ThreadNotFound`` for an unknown anchor and ``ConcurrentRequest``
        while a reply is pending, and lets ``StoreError`` through with the
        snapshot untouched.
        """
        async with self._lock:
            if self.state.loading:
                raise ConcurrentRequest()
            plan = plan_mutation(self.state.messages, thread_id, mutation)
            if self.store is not None:
                if plan.delete:
                    await self.store.delete_messages(plan.ids)
                else:
                    await self.store.set_starred(plan.ids, plan.starred)
            self.state = with_mutation(self.state, plan)
            return plan

    async def clear_all(self) -> None:
        async with self._lock:
            if self.state.loading:
                raise ConcurrentRequest()
            if self.store is not None:
                await self.store.delete_all(self.user_id)
            self.state = cleared(self.state)


# ── Registry ───────────────────────────────────────────────────────────────────

# Least recently used first
_sessions: OrderedDict[str, ChatSession] = OrderedDict()


def session_key(user: dict) -> str:
    if user.get("is_guest"):
        return f"guest:{user['guest_session']}"
    return user["id"]


def _evict(now: datetime, keep: str) -> None:
    """Drop idle sessions, then the least recently used ones above ``max_sessions``.

    Sessions with a reply pending are never dropped.
    """
    threshold = now - timedelta(minutes=settings.session_idle_minutes)
    for key, session in list(_sessions.items()):
        if key == keep or session.state.loading:
            continue
        if len(_sessions) > settings.max_sessions or session.last_used < threshold:
            del _sessions[key]
            logger.debug(f"Evicted chat session {key}")


def get_session(user: dict, now: datetime | None = None) -> ChatSession:
    """The process-wide session for this user, created on first use."""
    now = now or _utcnow()
    key = session_key(user)
    session = _sessions.pop(key, None)
    if session is None:
        store = None if user.get("is_guest") else SupabaseMessageStore(user["token"])
        session = ChatSession(user, store)
    else:
        # Pick up refreshed tokens and premium changes
        session.user = user
        if session.store is not None:
            session.store = SupabaseMessageStore(user["token"])
    session.last_used = now
    _sessions[key] = session
    _evict(now, keep=key)
    return session


def reset_sessions() -> None:
    _sessions.clear()
