from __future__ import annotations

from flask import current_app, request

from store_leaderboard.extensions import db
from store_leaderboard.services.leaderboard_service import LeaderboardEngine, LeaderboardRow
from store_leaderboard.services.periods import PeriodWindow, window_from_request


def build_engine() -> LeaderboardEngine:
    return LeaderboardEngine(db.session, clock=current_app.config.get("LEADERBOARD_CLOCK"))


def period_arg() -> str | None:
    period = (request.args.get("period") or "").strip()
    return period or None


def request_window(engine: LeaderboardEngine) -> PeriodWindow:
    """Window from ``period``, else ``date_from``/``date_to``, else the default range."""
    return window_from_request(
        period_arg(),
        request.args.get("date_from"),
        request.args.get("date_to"),
        engine.now(),
        default_days=current_app.config.get("DEFAULT_RANGE_DAYS", 30),
    )


def int_query_arg(
    name: str,
    default: int,
    *,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int:
    raw = request.args.get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    if minimum is not None and value < minimum:
        return minimum
    if maximum is not None and value > maximum:
        return maximum
    return value


def build_leaderboard_row_response(row: LeaderboardRow) -> dict[str, object]:
    store = row.store
    return {
        "store_id": row.store_id,
        "store_name": store.store_name if store else None,
        "seller_name": store.seller_name if store else None,
        "total_points": row.total_points,
        "followers_count": store.followers_count if store else 0,
        "orders_count": store.orders_count if store else 0,
        "products_count": store.products_count if store else 0,
        "total_revenue": store.total_revenue if store else 0.0,
        "average_rating": store.average_rating if store else None,
        "profile_image": store.profile_image if store else None,
        "store_location": store.store_location if store else None,
        "store_status": store.status if store else None,
    }
