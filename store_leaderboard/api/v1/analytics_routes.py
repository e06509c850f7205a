from __future__ import annotations

from flask import Blueprint

from store_leaderboard.api.helpers import build_engine, period_arg, request_window
from store_leaderboard.api.responses import error_response, success_response
from store_leaderboard.security.decorators import require_permissions
from store_leaderboard.services.errors import ValidationError
from store_leaderboard.services.periods import preceding_window, percentage_change, previous_window

analytics_bp = Blueprint("analytics", __name__)


@analytics_bp.get("/summary")
@require_permissions("analytics.read")
def analytics_summary() -> tuple[dict[str, object], int]:
    engine = build_engine()
    period = period_arg()
    try:
        window = request_window(engine)
        previous = previous_window(period, engine.now()) if period else preceding_window(window)
    except ValidationError as exc:
        return error_response(exc.message, 422, **exc.extra)

    current_totals = engine.window_totals(window).to_dict()
    previous_totals = engine.window_totals(previous).to_dict() if previous is not None else None

    return success_response(
        {
            "period": period,
            "date_range": window.as_date_range(),
            "current": current_totals,
            "previous": previous_totals,
            "previous_date_range": previous.as_date_range() if previous is not None else None,
            "change_percentage": (
                {
                    key: percentage_change(value, previous_totals[key])
                    for key, value in current_totals.items()
                }
                if previous_totals is not None
                else None
            ),
        }
    )
