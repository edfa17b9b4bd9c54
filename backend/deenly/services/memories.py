"""Memory notes — short facts about the user that are fed to every LLM call."""
import logging
import uuid
from collections import OrderedDict
from datetime import datetime, timezone

import httpx
from postgrest.exceptions import APIError

from deenly.config import settings
from deenly.errors import StoreError, StoreUnavailable
from deenly.services.supabase import get_supabase_client

logger = logging.getLogger(__name__)

# Guest notes, newest first, keyed by guest session id; least recently used session first
_guest_memories: OrderedDict[str, list[dict]] = OrderedDict()


def _guest_list(user: dict) -> list[dict]:
    session_id = user["guest_session"]
    notes = _guest_memories.pop(session_id, [])
    _guest_memories[session_id] = notes
    while len(_guest_memories) > settings.max_sessions:
        _guest_memories.popitem(last=False)
    return notes


def _store_error(e: Exception, action: str) -> StoreError:
    if isinstance(e, httpx.HTTPError):
        return StoreUnavailable(f"Memory store unreachable while trying to {action}")
    return StoreError(f"Memory store failed to {action}: {e}")


async def list_memories(user: dict) -> list[dict]:
    if user.get("is_guest"):
        return list(_guest_list(user))
    sb = get_supabase_client(user["token"])
    try:
        result = (
            sb.table("user_memories")
            .select("*")
            .eq("user_id", user["id"])
            .order("created_at", desc=True)
            .execute()
        )
    except (APIError, httpx.HTTPError) as e:
        logger.exception(f"Error loading memories for user {user['id']}")
        raise _store_error(e, "list memories") from e
    return result.data


async def add_memory(user: dict, content: str) -> dict:
    if user.get("is_guest"):
        memory = {
            "id": str(uuid.uuid4()),
            "content": content,
            "created_at": datetime.now(timezone.utc),
        }
        _guest_list(user).insert(0, memory)
        return memory
    sb = get_supabase_client(user["token"])
    try:
        result = (
            sb.table("user_memories")
            .insert({"content": content, "user_id": user["id"]})
            .execute()
        )
    except (APIError, httpx.HTTPError) as e:
        logger.exception(f"Error adding memory for user {user['id']}")
        raise _store_error(e, "add memory") from e
    return result.data[0]


async def delete_memory(user: dict, memory_id: str) -> None:
    if user.get("is_guest"):
        notes = _guest_list(user)
        notes[:] = [m for m in notes if m["id"] != memory_id]
        return
    sb = get_supabase_client(user["token"])
    try:
        sb.table("user_memories").delete().eq("id", memory_id).execute()
    except (APIError, httpx.HTTPError) as e:
        logger.exception(f"Error deleting memory {memory_id}")
        raise _store_error(e, "delete memory") from e


async def memory_texts(user: dict) -> list[str]:
    return [m["content"] for m in await list_memories(user)]


def reset_guest_memories() -> None:
    _guest_memories.clear()
