"""Utility modules for cross-cutting concerns."""

from utils.timezone import now_utc, today_utc, to_wire_date
