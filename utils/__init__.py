"""Utility modules for cross-cutting concerns."""

from utils.timezone import now_utc, today_utc, current_year
from utils.money import to_cents
from utils.user_context import (
    get_current_user_id,
    get_current_role,
    resolve_actor,
    set_current_user,
    clear_current_user,
    user_context,
)
from utils.update_builder import UpdateBuilder
