from __future__ import annotations

from datetime import datetime, timezone

from conftest import (
    FIXED_NOW,
    add_product,
    award_points,
    follow_store,
    make_category,
    make_store,
    place_order,
)

UTC = timezone.utc


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}


def test_leaderboard_requires_token(client):
    response = client.get("/api/v1/admin/leaderboard")

    assert response.status_code == 401
    assert response.get_json()["status"] == "error"


def test_leaderboard_rejects_invalid_token(client):
    response = client.get("/api/v1/admin/leaderboard", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


def test_leaderboard_requires_permission(client, auth_headers):
    response = client.get("/api/v1/admin/leaderboard", headers=auth_headers("buyer"))

    assert response.status_code == 403
    assert response.get_json() == {
        "status": "error",
        "message": "You do not have permission to perform this action",
    }


def test_leaderboard_default_windows(client, auth_headers):
    store = make_store("Top Shop", store_location="Lagos")
    award_points(store, 40, FIXED_NOW)
    award_points(store, 60, datetime(2023, 2, 1, tzinfo=UTC))

    response = client.get("/api/v1/admin/leaderboard", headers=auth_headers("admin"))

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["status"] == "success"
    data = payload["data"]
    assert data["mode"] == "populated"
    assert set(data["windows"]) == {"today", "weekly", "monthly", "all"}
    assert data["windows"]["today"][0]["total_points"] == 40
    assert data["windows"]["all"][0]["total_points"] == 100
    assert data["windows"]["all"][0]["store_name"] == "Top Shop"
    assert data["windows"]["all"][0]["store_location"] == "Lagos"


def test_leaderboard_zero_points_fallback(client, auth_headers):
    make_store("Fresh A")
    make_store("Fresh B")

    response = client.get("/api/v1/admin/leaderboard?period=this_month", headers=auth_headers("admin"))

    data = response.get_json()["data"]
    assert data["mode"] == "fallback_all_zero"
    assert [row["store_name"] for row in data["windows"]["this_month"]] == ["Fresh A", "Fresh B"]
    assert all(row["total_points"] == 0 for row in data["windows"]["this_month"])


def test_leaderboard_all_time_period_uses_all_key(client, auth_headers):
    store = make_store("Old Timer")
    award_points(store, 9, datetime(2020, 1, 1, tzinfo=UTC))

    response = client.get("/api/v1/admin/leaderboard?period=all_time", headers=auth_headers("support_ops"))

    assert response.status_code == 200
    windows = response.get_json()["data"]["windows"]
    assert list(windows) == ["all"]
    assert windows["all"][0]["total_points"] == 9


def test_leaderboard_invalid_period_is_client_error(client, auth_headers):
    response = client.get("/api/v1/admin/leaderboard?period=fortnight", headers=auth_headers("admin"))

    assert response.status_code == 422
    payload = response.get_json()
    assert payload["status"] == "error"
    assert payload["valid_periods"] == [
        "today",
        "this_week",
        "this_month",
        "last_month",
        "this_year",
        "all_time",
    ]


def test_leaderboard_limit_is_clamped(client, auth_headers):
    for index in range(3):
        store = make_store(f"Shop {index}")
        award_points(store, index + 1, FIXED_NOW)

    response = client.get("/api/v1/admin/leaderboard?period=today&limit=0", headers=auth_headers("admin"))

    rows = response.get_json()["data"]["windows"]["today"]
    assert [row["total_points"] for row in rows] == [3]


def test_top_stores_by_revenue_with_date_range(client, auth_headers):
    rich = make_store("Rich")
    modest = make_store("Modest")
    make_store("No Orders")
    place_order(rich, "900.00", datetime(2024, 1, 10, tzinfo=UTC))
    place_order(modest, "45.00", datetime(2024, 1, 31, 20, 0, tzinfo=UTC))

    response = client.get(
        "/api/v1/admin/leaderboard/top-stores/revenue?date_from=2024-01-01&date_to=2024-01-31",
        headers=auth_headers("admin"),
    )

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["metric"] == "revenue"
    assert data["date_range"] == {"from": "2024-01-01", "to": "2024-01-31"}
    assert [row["store_name"] for row in data["top_stores"]] == ["Rich", "Modest"]
    assert data["top_stores"][0]["metric_value"] == 900.0
    assert "total_points" not in data["top_stores"][0]


def test_top_stores_by_orders_with_period(client, auth_headers):
    store = make_store("Busy")
    place_order(store, "5.00", datetime(2023, 12, 5, tzinfo=UTC))

    response = client.get(
        "/api/v1/admin/leaderboard/top-stores/orders?period=last_month",
        headers=auth_headers("admin"),
    )

    data = response.get_json()["data"]
    assert data["date_range"] == {"from": "2023-12-01", "to": "2023-12-31"}
    assert data["top_stores"][0]["orders_count"] == 1


def test_top_stores_by_followers_default_range(client, auth_headers):
    store = make_store("Liked")
    follow_store(store, "fan@example.com", datetime(2024, 1, 1, tzinfo=UTC))

    response = client.get("/api/v1/admin/leaderboard/top-stores/followers", headers=auth_headers("admin"))

    data = response.get_json()["data"]
    assert data["date_range"] == {"from": "2023-12-18", "to": "2024-01-17"}
    assert data["top_stores"][0]["followers_count"] == 1


def test_top_stores_rejects_malformed_dates(client, auth_headers):
    response = client.get(
        "/api/v1/admin/leaderboard/top-stores/revenue?date_from=yesterday",
        headers=auth_headers("admin"),
    )

    assert response.status_code == 422
    assert response.get_json()["status"] == "error"


def test_leaderboard_analytics_trends(client, auth_headers):
    store = make_store("Trend", created_at=datetime(2024, 1, 5, tzinfo=UTC))
    place_order(store, "15.00", datetime(2024, 1, 6, tzinfo=UTC))
    lighting = make_category("Lighting")
    add_product(store, "Lamp", price="40.00", category=lighting, created_at=datetime(2024, 1, 6, tzinfo=UTC))

    response = client.get("/api/v1/admin/leaderboard/analytics?period=this_month", headers=auth_headers("admin"))

    data = response.get_json()["data"]
    assert data["store_trends"] == [{"date": "2024-01-05", "new_stores": 1, "active_stores": 1}]
    assert data["revenue_trends"][0]["total_revenue"] == 15.0
    assert data["top_categories"] == [
        {"category_id": 1, "category_name": "Lighting", "product_count": 1, "avg_price": 40.0}
    ]
    assert data["date_range"] == {"from": "2024-01-01", "to": "2024-01-31"}


def test_analytics_requires_analytics_permission(client, auth_headers):
    response = client.get("/api/v1/admin/analytics/summary", headers=auth_headers("support_ops"))

    assert response.status_code == 403


def test_analytics_summary_compares_with_previous_period(client, auth_headers):
    store = make_store("Compare", created_at=datetime(2023, 11, 20, tzinfo=UTC))
    award_points(store, 30, datetime(2024, 1, 8, tzinfo=UTC))
    award_points(store, 20, datetime(2023, 12, 8, tzinfo=UTC))
    place_order(store, "10.00", datetime(2024, 1, 8, tzinfo=UTC))

    response = client.get("/api/v1/admin/analytics/summary?period=this_month", headers=auth_headers("admin"))

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["current"]["points_awarded"] == 30
    assert data["previous"]["points_awarded"] == 20
    assert data["change_percentage"]["points_awarded"] == 50.0
    assert data["change_percentage"]["orders_count"] == 100.0
    assert data["previous_date_range"] == {"from": "2023-12-01", "to": "2023-12-31"}


def test_analytics_summary_all_time_has_no_comparison(client, auth_headers):
    response = client.get("/api/v1/admin/analytics/summary?period=all_time", headers=auth_headers("super_admin"))

    data = response.get_json()["data"]
    assert data["previous"] is None
    assert data["change_percentage"] is None
    assert data["date_range"] == {"from": None, "to": None}


def test_seller_leaderboard_only_needs_a_token(client, auth_headers):
    store = make_store("Seller Shop", profile_image="https://cdn.example.com/shop.png")
    award_points(store, 12, FIXED_NOW)

    response = client.get("/api/v1/stores/leaderboard", headers=auth_headers("seller"))

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["weekly"] == [
        {
            "store_id": store.id,
            "store_name": "Seller Shop",
            "total_points": 12,
            "followers_count": 0,
            "average_rating": None,
            "profile_image": "https://cdn.example.com/shop.png",
        }
    ]


def test_seller_leaderboard_rejects_anonymous(client):
    assert client.get("/api/v1/stores/leaderboard").status_code == 401


def test_top_stores_accept_leaderboard_permission_alone(client, auth_headers):
    response = client.get("/api/v1/admin/leaderboard/top-stores/orders", headers=auth_headers("support_ops"))

    assert response.status_code == 200
    assert response.get_json()["data"]["top_stores"] == []


def test_top_stores_reject_tokens_without_either_permission(client, auth_headers):
    response = client.get("/api/v1/admin/leaderboard/top-stores/orders", headers=auth_headers("seller"))

    assert response.status_code == 403


def test_analytics_summary_at_earliest_date_has_no_comparison(client, auth_headers):
    response = client.get(
        "/api/v1/admin/analytics/summary?date_from=0001-01-01&date_to=0001-01-02",
        headers=auth_headers("admin"),
    )

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["date_range"] == {"from": "0001-01-01", "to": "0001-01-02"}
    assert data["previous"] is None
    assert data["change_percentage"] is None
