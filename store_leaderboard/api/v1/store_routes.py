from __future__ import annotations

from flask import Blueprint, current_app
from flask_jwt_extended import jwt_required

from store_leaderboard.api.helpers import build_engine
from store_leaderboard.api.responses import success_response
from store_leaderboard.services.leaderboard_service import LeaderboardRow

store_bp = Blueprint("stores", __name__)


@store_bp.get("/leaderboard")
@jwt_required()
def seller_leaderboard() -> tuple[dict[str, object], int]:
    """Leaderboard shown inside the seller app: always the four default windows."""
    engine = build_engine()
    leaderboard = engine.build_leaderboard(
        engine.leaderboard_windows(),
        limit=current_app.config["LEADERBOARD_LIMIT"],
    )
    return success_response(
        {
            label: [_build_seller_row_response(row) for row in rows]
            for label, rows in leaderboard.windows.items()
        }
    )


def _build_seller_row_response(row: LeaderboardRow) -> dict[str, object]:
    store = row.store
    return {
        "store_id": row.store_id,
        "store_name": store.store_name if store else None,
        "total_points": row.total_points,
        "followers_count": store.followers_count if store else 0,
        "average_rating": store.average_rating if store else None,
        "profile_image": store.profile_image if store else None,
    }
