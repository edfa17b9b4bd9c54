"""Message Store — durable, per-user, chronologically ordered message log.

``SupabaseMessageStore`` persists to the ``messages`` table under the caller's
JWT (RLS restricts rows to their owner). Guest sessions never reach a store;
see ``deenly.services.session``.
"""
import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

import httpx
from postgrest.exceptions import APIError
from pydantic import BaseModel

from deenly.errors import StoreError, StoreUnavailable
from deenly.services.supabase import get_supabase_client
from deenly.services.threads import Message

logger = logging.getLogger(__name__)


class MessageStore(Protocol):
    async def list_messages(self, user_id: str) -> list[Message]: ...

    async def insert_message(self, user_id: str, message: Message) -> None: ...

    async def delete_messages(self, ids: Iterable[str]) -> None: ...

    async def set_starred(self, ids: Iterable[str], value: bool) -> None: ...

    async def delete_all(self, user_id: str) -> None: ...


class MessageRow(BaseModel):
    id: str
    user_id: str | None = None
    role: str
    content: str
    created_at: datetime
    starred: bool | None = False

    def to_message(self) -> Message:
        return Message(
            id=self.id,
            role=self.role,  # type: ignore[arg-type]
            content=self.content,
            timestamp=self.created_at,
            starred=bool(self.starred),
            user_id=self.user_id,
        )


def _translate(exc: Exception, action: str) -> StoreError:
    if isinstance(exc, httpx.HTTPError):
        return StoreUnavailable(f"Message store unreachable while trying to {action}")
    return StoreError(f"Message store failed to {action}: {exc}")


class SupabaseMessageStore:
    def __init__(self, access_token: str):
        self._token = access_token

    def _client(self):
        return get_supabase_client(self._token)

    async def list_messages(self, user_id: str) -> list[Message]:
        try:
            result = (
                self._client()
                .table("messages")
                .select("*")
                .eq("user_id", user_id)
                .order("created_at")
                .execute()
            )
        except (APIError, httpx.HTTPError) as e:
            logger.exception(f"Error loading messages for user {user_id}")
            raise _translate(e, "list messages") from e
        return [MessageRow.model_validate(row).to_message() for row in result.data]

    async def insert_message(self, user_id: str, message: Message) -> None:
        try:
            self._client().table("messages").insert(
                {
                    "id": message.id,
                    "user_id": user_id,
                    "role": message.role,
                    "content": message.content,
                    "created_at": message.timestamp.isoformat(),
                }
            ).execute()
        except (APIError, httpx.HTTPError) as e:
            logger.exception(f"Error saving message {message.id}")
            raise _translate(e, "save message") from e

    async def delete_messages(self, ids: Iterable[str]) -> None:
        id_list = list(ids)
        if not id_list:
            return
        try:
            self._client().table("messages").delete().in_("id", id_list).execute()
        except (APIError, httpx.HTTPError) as e:
            logger.exception(f"Error deleting {len(id_list)} messages")
            raise _translate(e, "delete messages") from e

    async def set_starred(self, ids: Iterable[str], value: bool) -> None:
        id_list = list(ids)
        if not id_list:
            return
        try:
            (
                self._client()
                .table("messages")
                .update({"starred": value})
                .in_("id", id_list)
                .execute()
            )
        except (APIError, httpx.HTTPError) as e:
            logger.exception(f"Error updating starred flag on {len(id_list)} messages")
            raise _translate(e, "update starred flag") from e

    async def delete_all(self, user_id: str) -> None:
        try:
            self._client().table("messages").delete().eq("user_id", user_id).execute()
        except (APIError, httpx.HTTPError) as e:
            logger.exception(f"Error clearing messages for user {user_id}")
            raise _translate(e, "clear messages") from e
