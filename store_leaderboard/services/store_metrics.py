from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from store_leaderboard.models import Product, Store, StoreFollower, StoreOrder, StoreReview


@dataclass(frozen=True)
class StoreSnapshot:
    """A store with its counters as of the moment it was loaded."""

    id: int
    store_name: str
    seller_name: str | None
    status: str
    store_location: str | None
    profile_image: str | None
    followers_count: int = 0
    orders_count: int = 0
    products_count: int = 0
    total_revenue: float = 0.0
    average_rating: float | None = None

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


class StoreMetricsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def load_scopes_with_counters(self, store_ids: Iterable[int]) -> dict[int, StoreSnapshot]:
        ids = sorted(set(store_ids))
        if not ids:
            return {}
        stmt = self._counters_query().where(Store.id.in_(ids))
        return {snapshot.id: snapshot for snapshot in self._run(stmt)}

    def load_all_scopes_with_counters(self) -> list[StoreSnapshot]:
        return self._run(self._counters_query().order_by(Store.id.asc()))

    def load_top_scopes_by_counter(self, counter: str, active_in, limit: int) -> list[StoreSnapshot]:
        """Stores matching ``active_in``, highest ``counter`` first, ties by ascending id."""
        counters = _counter_subqueries()
        stmt = (
            _counters_select(counters)
            .where(active_in)
            .order_by(counters[counter].desc(), Store.id.asc())
            .limit(limit)
        )
        return self._run(stmt)

    def _run(self, stmt) -> list[StoreSnapshot]:
        return [
            _snapshot_from_row(store, followers, orders, products, revenue, rating)
            for store, followers, orders, products, revenue, rating in self.session.execute(stmt).all()
        ]

    @staticmethod
    def _counters_query():
        return _counters_select(_counter_subqueries())


def _counter_subqueries() -> dict[str, object]:
    followers_count = (
        select(func.count(StoreFollower.id))
        .where(StoreFollower.store_id == Store.id)
        .correlate(Store)
        .scalar_subquery()
    )
    orders_count = (
        select(func.count(StoreOrder.id))
        .where(StoreOrder.store_id == Store.id)
        .correlate(Store)
        .scalar_subquery()
    )
    products_count = (
        select(func.count(Product.id))
        .where(Product.store_id == Store.id)
        .correlate(Store)
        .scalar_subquery()
    )
    total_revenue = (
        select(func.coalesce(func.sum(StoreOrder.subtotal_with_shipping), 0))
        .where(StoreOrder.store_id == Store.id)
        .correlate(Store)
        .scalar_subquery()
    )
    average_rating = (
        select(func.avg(StoreReview.rating))
        .where(StoreReview.store_id == Store.id)
        .correlate(Store)
        .scalar_subquery()
    )
    return {
        "followers_count": followers_count,
        "orders_count": orders_count,
        "products_count": products_count,
        "total_revenue": total_revenue,
        "average_rating": average_rating,
    }


def _counters_select(counters: dict[str, object]):
    return select(Store, *(subquery.label(name) for name, subquery in counters.items()))


def _snapshot_from_row(
    store: Store,
    followers: object,
    orders: object,
    products: object,
    revenue: object,
    rating: object,
) -> StoreSnapshot:
    return StoreSnapshot(
        id=store.id,
        store_name=store.store_name,
        seller_name=store.owner.full_name if store.owner else None,
        status=store.status,
        store_location=store.store_location,
        profile_image=store.profile_image,
        followers_count=int(followers or 0),
        orders_count=int(orders or 0),
        products_count=int(products or 0),
        total_revenue=float(revenue or 0),
        average_rating=round(float(rating), 2) if rating is not None else None,
    )
