import httpx
import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch
from postgrest.exceptions import APIError

from deenly.errors import StoreError, StoreUnavailable
from deenly.services.message_store import MessageRow, SupabaseMessageStore
from deenly.services.threads import Message

ROWS = [
    {
        "id": "m1",
        "user_id": "user-1",
        "role": "user",
        "content": "¿Qué es el Salah?",
        "created_at": "2026-01-01T09:00:00+00:00",
        "starred": None,
    },
    {
        "id": "m2",
        "user_id": "user-1",
        "role": "assistant",
        "content": "Bismillah...",
        "created_at": "2026-01-01T09:00:05.123456+00:00",
        "starred": True,
    },
]


def api_error():
    return APIError({"message": "boom", "code": "500", "details": "", "hint": ""})


def test_row_converts_to_message():
    message = MessageRow.model_validate(ROWS[1]).to_message()
    assert message.id == "m2"
    assert message.role == "assistant"
    assert message.starred is True
    assert message.timestamp.tzinfo is not None


@pytest.mark.asyncio
async def test_list_messages_orders_by_created_at():
    mock_sb = MagicMock()
    query = mock_sb.table.return_value.select.return_value.eq.return_value.order.return_value
    query.execute.return_value.data = ROWS
    with patch("deenly.services.message_store.get_supabase_client", return_value=mock_sb):
        messages = await SupabaseMessageStore("tok").list_messages("user-1")

    mock_sb.table.assert_called_with("messages")
    mock_sb.table.return_value.select.return_value.eq.assert_called_with("user_id", "user-1")
    mock_sb.table.return_value.select.return_value.eq.return_value.order.assert_called_with("created_at")
    assert [m.id for m in messages] == ["m1", "m2"]
    assert messages[0].starred is False


@pytest.mark.asyncio
async def test_insert_message_writes_row():
    mock_sb = MagicMock()
    message = Message(
        id="m3", role="user", content="hola",
        timestamp=datetime(2026, 1, 1, 10, tzinfo=timezone.utc),
    )
    with patch("deenly.services.message_store.get_supabase_client", return_value=mock_sb):
        await SupabaseMessageStore("tok").insert_message("user-1", message)

    row = mock_sb.table.return_value.insert.call_args.args[0]
    assert row["id"] == "m3"
    assert row["user_id"] == "user-1"
    assert row["role"] == "user"


@pytest.mark.asyncio
async def test_delete_messages_uses_id_set():
    mock_sb = MagicMock()
    with patch("deenly.services.message_store.get_supabase_client", return_value=mock_sb):
        await SupabaseMessageStore("tok").delete_messages(("m3", "m4", "m5"))
    mock_sb.table.return_value.delete.return_value.in_.assert_called_once_with("id", ["m3", "m4", "m5"])


@pytest.mark.asyncio
async def test_set_starred_updates_all_ids():
    mock_sb = MagicMock()
    with patch("deenly.services.message_store.get_supabase_client", return_value=mock_sb):
        await SupabaseMessageStore("tok").set_starred(["m3", "m4"], True)
    mock_sb.table.return_value.update.assert_called_once_with({"starred": True})
    mock_sb.table.return_value.update.return_value.in_.assert_called_once_with("id", ["m3", "m4"])


@pytest.mark.asyncio
async def test_empty_id_set_skips_store():
    with patch("deenly.services.message_store.get_supabase_client") as get_client:
        await SupabaseMessageStore("tok").delete_messages([])
        await SupabaseMessageStore("tok").set_starred([], False)
    get_client.assert_not_called()


@pytest.mark.asyncio
async def test_api_error_becomes_store_error():
    mock_sb = MagicMock()
    mock_sb.table.return_value.delete.return_value.in_.return_value.execute.side_effect = api_error()
    with patch("deenly.services.message_store.get_supabase_client", return_value=mock_sb):
        with pytest.raises(StoreError) as exc_info:
            await SupabaseMessageStore("tok").delete_messages(["m1"])
    assert not isinstance(exc_info.value, StoreUnavailable)


@pytest.mark.asyncio
async def test_transport_error_becomes_store_unavailable():
    mock_sb = MagicMock()
    query = mock_sb.table.return_value.select.return_value.eq.return_value.order.return_value
    query.execute.side_effect = httpx.ConnectError("unreachable")
    with patch("deenly.services.message_store.get_supabase_client", return_value=mock_sb):
        with pytest.raises(StoreUnavailable):
            await SupabaseMessageStore("tok").list_messages("user-1")
