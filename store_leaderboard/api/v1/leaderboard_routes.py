from __future__ import annotations

from flask import Blueprint, current_app

from store_leaderboard.api.helpers import (
    build_engine,
    build_leaderboard_row_response,
    int_query_arg,
    period_arg,
    request_window,
)
from store_leaderboard.api.responses import error_response, success_response
from store_leaderboard.security.decorators import require_any_permission, require_permissions
from store_leaderboard.services.errors import ValidationError
from store_leaderboard.services.leaderboard_service import LeaderboardRow

leaderboard_bp = Blueprint("leaderboard", __name__)


@leaderboard_bp.get("")
@require_permissions("leaderboard.read")
def get_leaderboard() -> tuple[dict[str, object], int]:
    engine = build_engine()
    limit = int_query_arg("limit", current_app.config["LEADERBOARD_LIMIT"], minimum=1, maximum=100)
    try:
        windows = engine.leaderboard_windows(period_arg())
    except ValidationError as exc:
        return error_response(exc.message, 422, **exc.extra)

    leaderboard = engine.build_leaderboard(windows, limit=limit)
    if leaderboard.is_fallback:
        current_app.logger.info("Leaderboard served in zero-points fallback mode")

    return success_response(
        {
            "mode": leaderboard.mode,
            "windows": {
                label: [build_leaderboard_row_response(row) for row in rows]
                for label, rows in leaderboard.windows.items()
            },
        }
    )


@leaderboard_bp.get("/top-stores/revenue")
@require_any_permission("leaderboard.read", "analytics.read")
def top_stores_by_revenue() -> tuple[dict[str, object], int]:
    return _top_stores("revenue")


@leaderboard_bp.get("/top-stores/orders")
@require_any_permission("leaderboard.read", "analytics.read")
def top_stores_by_orders() -> tuple[dict[str, object], int]:
    return _top_stores("orders")


@leaderboard_bp.get("/top-stores/followers")
@require_any_permission("leaderboard.read", "analytics.read")
def top_stores_by_followers() -> tuple[dict[str, object], int]:
    return _top_stores("followers")


@leaderboard_bp.get("/analytics")
@require_permissions("analytics.read")
def leaderboard_analytics() -> tuple[dict[str, object], int]:
    engine = build_engine()
    try:
        window = request_window(engine)
    except ValidationError as exc:
        return error_response(exc.message, 422, **exc.extra)

    trends = engine.daily_trends(window)
    return success_response({**trends, "date_range": window.as_date_range()})


def _top_stores(metric: str) -> tuple[dict[str, object], int]:
    engine = build_engine()
    limit = int_query_arg("limit", current_app.config["TOP_STORES_LIMIT"], minimum=1, maximum=50)
    try:
        window = request_window(engine)
        rows = engine.top_by_metric(metric, window, limit=limit)
    except ValidationError as exc:
        return error_response(exc.message, 422, **exc.extra)

    return success_response(
        {
            "metric": metric,
            "top_stores": [_build_top_store_response(row) for row in rows],
            "date_range": window.as_date_range(),
        }
    )


def _build_top_store_response(row: LeaderboardRow) -> dict[str, object]:
    body = build_leaderboard_row_response(row)
    body.pop("total_points")
    body["metric_value"] = row.metric_value
    return body
