"""Entitlement Source — premium flag and free-tier daily question counting.

NOTE: The daily counter is process-local and keyed by the server's local
calendar date, with no timezone normalization. In multi-worker deployments
(uvicorn --workers N > 1) each worker counts independently.
"""
import logging
from datetime import date

from deenly.config import settings
from deenly.services.supabase import get_service_supabase_client

logger = logging.getLogger(__name__)

GUEST_USER_ID = "guest"

_counts: dict[str, int] = {}


def _key(user_id: str, day: date) -> str:
    return f"deenly_count_{user_id}_{day.isoformat()}"


def _drop_days_before(day: date) -> None:
    cutoff = day.isoformat()
    for key in [k for k in _counts if k.rsplit("_", 1)[1] < cutoff]:
        del _counts[key]


def is_premium(user: dict) -> bool:
    return bool(user.get("is_premium", False))


def daily_question_count(user_id: str, day: date | None = None) -> int:
    if user_id == GUEST_USER_ID:
        return 0
    return _counts.get(_key(user_id, day or date.today()), 0)


def increment_daily_count(user_id: str, day: date | None = None) -> int:
    """Count one more question for today. Guests are never counted."""
    if user_id == GUEST_USER_ID:
        return 0
    day = day or date.today()
    _drop_days_before(day)
    key = _key(user_id, day)
    _counts[key] = _counts.get(key, 0) + 1
    return _counts[key]


def limit_reached(user: dict, day: date | None = None) -> bool:
    if is_premium(user):
        return False
    return daily_question_count(user["id"], day) >= settings.daily_question_limit


def set_premium(user_id: str, value: bool) -> None:
    """Write ``is_premium`` into the user's Supabase metadata (admin API)."""
    sb = get_service_supabase_client()
    sb.auth.admin.update_user_by_id(user_id, {"user_metadata": {"is_premium": value}})
    logger.info(f"User {user_id} premium set to {value}")


def reset_counts() -> None:
    _counts.clear()
