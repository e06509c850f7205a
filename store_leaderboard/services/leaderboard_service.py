"""Period-filtered aggregation and store ranking.

Point totals come from ``loyalty_points`` rows with ``source = 'order'``.
Store counters (followers, orders, products, revenue, rating) are always the
current values, even when joined onto a historical window. Rankings are
ordered by metric descending, then store id ascending.

When no order points exist in any requested window, ``build_leaderboard``
lists every store with zero points. ``top_by_metric`` never does this: it only
ranks stores that have at least one qualifying row in the window.
An empty set of windows yields an empty, populated leaderboard.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from store_leaderboard.models import Category, LoyaltyPoint, Product, Store, StoreFollower, StoreOrder
from store_leaderboard.services.errors import AggregationCancelled, ValidationError
from store_leaderboard.services.periods import ALL_TIME, PeriodWindow, resolve_window
from store_leaderboard.services.store_metrics import StoreMetricsRepository, StoreSnapshot

logger = logging.getLogger(__name__)

DEFAULT_LEADERBOARD_LIMIT = 100
DEFAULT_TOP_LIMIT = 20
TOP_CATEGORIES_LIMIT = 10

POPULATED = "populated"
FALLBACK_ALL_ZERO = "fallback_all_zero"


@dataclass(frozen=True)
class LeaderboardRow:
    store_id: int
    total_points: int = 0
    store: StoreSnapshot | None = None
    metric_value: float | None = None


@dataclass(frozen=True)
class Leaderboard:
    mode: str
    windows: dict[str, list[LeaderboardRow]] = field(default_factory=dict)

    @property
    def is_fallback(self) -> bool:
        return self.mode == FALLBACK_ALL_ZERO


@dataclass(frozen=True)
class TopMetric:
    fact_model: type
    counter: str


TOP_METRICS: dict[str, TopMetric] = {
    "revenue": TopMetric(fact_model=StoreOrder, counter="total_revenue"),
    "orders": TopMetric(fact_model=StoreOrder, counter="orders_count"),
    "followers": TopMetric(fact_model=StoreFollower, counter="followers_count"),
}


@dataclass(frozen=True)
class WindowTotals:
    points_awarded: int
    orders_count: int
    revenue: float
    new_stores: int
    new_followers: int

    def to_dict(self) -> dict[str, float | int]:
        return {
            "points_awarded": self.points_awarded,
            "orders_count": self.orders_count,
            "revenue": self.revenue,
            "new_stores": self.new_stores,
            "new_followers": self.new_followers,
        }


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LeaderboardEngine:
    def __init__(
        self,
        session: Session,
        stores: StoreMetricsRepository | None = None,
        clock: Callable[[], datetime] | None = None,
        fact_model: type = LoyaltyPoint,
    ) -> None:
        self.session = session
        self.stores = stores or StoreMetricsRepository(session)
        self.clock = clock or utc_now
        self.fact_model = fact_model

    def now(self) -> datetime:
        return self.clock()

    def resolve_window(self, period: str) -> PeriodWindow:
        return resolve_window(period, self.now())

    def leaderboard_windows(self, period: str | None = None) -> dict[str, PeriodWindow]:
        """Windows for the leaderboard: one for ``period``, or the default four."""
        if period:
            label = "all" if period in {"all_time", "null"} else period
            return {label: self.resolve_window(period)}
        return {
            "today": self.resolve_window("today"),
            "weekly": self.resolve_window("this_week"),
            "monthly": self.resolve_window("this_month"),
            "all": ALL_TIME,
        }

    def aggregate(
        self,
        scope_field: str = "store_id",
        metric_field: str = "points",
        window: PeriodWindow = ALL_TIME,
        source: str | None = "order",
        limit: int = DEFAULT_LEADERBOARD_LIMIT,
        cancel_event: threading.Event | None = None,
    ) -> list[tuple[int, int]]:
        """Sum ``metric_field`` per ``scope_field`` over the facts in ``window``.

        Returns ``(scope_id, total)`` pairs, highest total first, ties by
        ascending scope id. An empty list means no facts matched.
        """
        _check_cancelled(cancel_event)
        scope_column = self._fact_column(scope_field)
        metric_column = self._fact_column(metric_field)

        total = func.coalesce(func.sum(metric_column), 0).label("total")
        stmt = select(scope_column, total).group_by(scope_column)
        if source is not None:
            stmt = stmt.where(self.fact_model.source == source)
        stmt = _apply_window(stmt, self.fact_model.created_at, window)
        stmt = stmt.order_by(total.desc(), scope_column.asc()).limit(limit)

        rows = [
            (scope_id, _coerce_int(value, scope_id))
            for scope_id, value in self.session.execute(stmt).all()
            if scope_id is not None
        ]
        rows.sort(key=lambda row: (-row[1], row[0]))
        return rows

    def build_leaderboard(
        self,
        windows: Mapping[str, PeriodWindow],
        limit: int = DEFAULT_LEADERBOARD_LIMIT,
        cancel_event: threading.Event | None = None,
    ) -> Leaderboard:
        if not windows:
            return Leaderboard(mode=POPULATED)

        results = {
            label: self.aggregate(window=window, source="order", limit=limit, cancel_event=cancel_event)
            for label, window in windows.items()
        }
        store_ids = {store_id for rows in results.values() for store_id, _ in rows}

        _check_cancelled(cancel_event)
        if not store_ids:
            stores = self.stores.load_all_scopes_with_counters()
            logger.info("No order points in any window; listing %d stores with zero points", len(stores))
            return Leaderboard(
                mode=FALLBACK_ALL_ZERO,
                windows={
                    label: [LeaderboardRow(store_id=store.id, total_points=0, store=store) for store in stores]
                    for label in windows
                },
            )

        snapshots = self.stores.load_scopes_with_counters(store_ids)
        return Leaderboard(
            mode=POPULATED,
            windows={label: _hydrate(rows, snapshots) for label, rows in results.items()},
        )

    def top_by_metric(
        self,
        metric: str,
        window: PeriodWindow = ALL_TIME,
        limit: int = DEFAULT_TOP_LIMIT,
        cancel_event: threading.Event | None = None,
    ) -> list[LeaderboardRow]:
        """Rank stores with activity in ``window`` by a current counter."""
        top_metric = TOP_METRICS.get(metric)
        if top_metric is None:
            raise ValidationError(f"unknown metric: {metric}", valid_metrics=sorted(TOP_METRICS))

        _check_cancelled(cancel_event)
        fact_model = top_metric.fact_model
        active_in = _apply_window(
            select(fact_model.id).where(fact_model.store_id == Store.id),
            fact_model.created_at,
            window,
        ).exists()
        snapshots = self.stores.load_top_scopes_by_counter(top_metric.counter, active_in, limit)
        return [
            LeaderboardRow(
                store_id=snapshot.id,
                store=snapshot,
                metric_value=getattr(snapshot, top_metric.counter),
            )
            for snapshot in snapshots
        ]

    def daily_trends(
        self,
        window: PeriodWindow,
        cancel_event: threading.Event | None = None,
    ) -> dict[str, list[dict[str, object]]]:
        _check_cancelled(cancel_event)
        store_day = func.date(Store.created_at).label("date")
        store_stmt = _apply_window(
            select(
                store_day,
                func.count(Store.id),
                func.sum(case((Store.status == "active", 1), else_=0)),
            ),
            Store.created_at,
            window,
        ).group_by(store_day).order_by(store_day)
        store_trends = [
            {"date": str(day), "new_stores": int(new_stores or 0), "active_stores": int(active or 0)}
            for day, new_stores, active in self.session.execute(store_stmt).all()
        ]

        _check_cancelled(cancel_event)
        order_day = func.date(StoreOrder.created_at).label("date")
        order_stmt = _apply_window(
            select(
                order_day,
                func.count(StoreOrder.id),
                func.coalesce(func.sum(StoreOrder.subtotal_with_shipping), 0),
                func.avg(StoreOrder.subtotal_with_shipping),
            ),
            StoreOrder.created_at,
            window,
        ).group_by(order_day).order_by(order_day)
        revenue_trends = [
            {
                "date": str(day),
                "total_orders": int(orders or 0),
                "total_revenue": _coerce_float(revenue),
                "avg_order_value": round(_coerce_float(average), 2),
            }
            for day, orders, revenue, average in self.session.execute(order_stmt).all()
        ]

        _check_cancelled(cancel_event)
        product_count = func.count(Product.id).label("product_count")
        category_stmt = (
            _apply_window(
                select(Category.id, Category.title, product_count, func.avg(Product.price))
                .select_from(Product)
                .join(Category, Product.category_id == Category.id),
                Product.created_at,
                window,
            )
            .group_by(Category.id, Category.title)
            .order_by(product_count.desc(), Category.id.asc())
            .limit(TOP_CATEGORIES_LIMIT)
        )
        top_categories = [
            {
                "category_id": category_id,
                "category_name": title,
                "product_count": int(count or 0),
                "avg_price": round(_coerce_float(average), 2),
            }
            for category_id, title, count, average in self.session.execute(category_stmt).all()
        ]
        return {
            "store_trends": store_trends,
            "revenue_trends": revenue_trends,
            "top_categories": top_categories,
        }

    def window_totals(
        self,
        window: PeriodWindow,
        cancel_event: threading.Event | None = None,
    ) -> WindowTotals:
        _check_cancelled(cancel_event)
        points = self.session.scalar(
            _apply_window(
                select(func.coalesce(func.sum(LoyaltyPoint.points), 0)),
                LoyaltyPoint.created_at,
                window,
            )
        )
        orders_count, revenue = self.session.execute(
            _apply_window(
                select(
                    func.count(StoreOrder.id),
                    func.coalesce(func.sum(StoreOrder.subtotal_with_shipping), 0),
                ),
                StoreOrder.created_at,
                window,
            )
        ).one()
        new_stores = self.session.scalar(
            _apply_window(select(func.count(Store.id)), Store.created_at, window)
        )
        new_followers = self.session.scalar(
            _apply_window(select(func.count(StoreFollower.id)), StoreFollower.created_at, window)
        )
        return WindowTotals(
            points_awarded=_coerce_int(points, None),
            orders_count=int(orders_count or 0),
            revenue=_coerce_float(revenue),
            new_stores=int(new_stores or 0),
            new_followers=int(new_followers or 0),
        )

    def _fact_column(self, name: str):
        column = getattr(self.fact_model, name, None)
        if column is None:
            raise ValidationError(f"unknown field on {self.fact_model.__tablename__}: {name}")
        return column


def _apply_window(stmt, column, window: PeriodWindow):
    if window.start is not None:
        stmt = stmt.where(column >= window.start)
    if window.end is not None:
        stmt = stmt.where(column <= window.end)
    return stmt


def _hydrate(rows: list[tuple[int, int]], snapshots: dict[int, StoreSnapshot]) -> list[LeaderboardRow]:
    hydrated = []
    for store_id, total_points in rows:
        snapshot = snapshots.get(store_id)
        if snapshot is None:
            logger.debug("Store %s disappeared before hydration; skipping its row", store_id)
            continue
        hydrated.append(LeaderboardRow(store_id=store_id, total_points=total_points, store=snapshot))
    return hydrated


def _coerce_int(value: object, scope_id: int | None) -> int:
    if value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Non-numeric point total %r for store %s; counting it as 0", value, scope_id)
        return 0


def _coerce_float(value: object) -> float:
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning("Non-numeric amount %r; counting it as 0", value)
        return 0.0


def _check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        logger.info("Aggregation cancelled by caller")
        raise AggregationCancelled("aggregation cancelled")
