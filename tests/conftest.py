from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token

from store_leaderboard import create_app
from store_leaderboard.config import Config
from store_leaderboard.extensions import db
from store_leaderboard.models import (
    Category,
    LoyaltyPoint,
    Permission,
    Product,
    Role,
    Store,
    StoreFollower,
    StoreOrder,
    StoreReview,
    User,
)
from store_leaderboard.services.auth_service import build_auth_claims, find_role_by_name

# A Wednesday; its week runs Monday 2024-01-15 to Sunday 2024-01-21.
FIXED_NOW = datetime(2024, 1, 17, 15, 30, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = "test-secret-with-enough-length-for-hs256"
    LEADERBOARD_CLOCK = fixed_clock


@pytest.fixture()
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        seed_roles_permissions()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def auth_headers(app):
    """Returns a function that mints a bearer header for a user holding ``role_names``."""
    counter = {"n": 0}

    def _headers(*role_names: str) -> dict[str, str]:
        counter["n"] += 1
        user = User(email=f"user{counter['n']}@example.com", full_name=f"User {counter['n']}", is_active=True)
        user.roles.extend(find_role_by_name(name) for name in role_names)
        db.session.add(user)
        db.session.commit()
        token = create_access_token(identity=str(user.id), additional_claims=build_auth_claims(user))
        return {"Authorization": f"Bearer {token}"}

    return _headers


def seed_roles_permissions() -> None:
    permissions = {
        "leaderboard.read": Permission(code="leaderboard.read", module="leaderboard"),
        "analytics.read": Permission(code="analytics.read", module="analytics"),
    }
    db.session.add_all(list(permissions.values()))

    roles = {
        "super_admin": Role(name="super_admin"),
        "admin": Role(name="admin"),
        "support_ops": Role(name="support_ops"),
        "seller": Role(name="seller"),
        "buyer": Role(name="buyer"),
    }
    roles["super_admin"].permissions.extend(list(permissions.values()))
    roles["admin"].permissions.extend(list(permissions.values()))
    roles["support_ops"].permissions.append(permissions["leaderboard.read"])

    db.session.add_all(list(roles.values()))
    db.session.commit()


def make_store(name: str, *, store_id: int | None = None, owner: User | None = None, **fields) -> Store:
    store = Store(store_name=name, owner=owner, **fields)
    if store_id is not None:
        store.id = store_id
    db.session.add(store)
    db.session.commit()
    return store


def award_points(store: Store, points: int, created_at: datetime, source: str = "order") -> LoyaltyPoint:
    fact = LoyaltyPoint(store_id=store.id, points=points, source=source, created_at=created_at)
    db.session.add(fact)
    db.session.commit()
    return fact


def place_order(store: Store, amount: str, created_at: datetime, status: str = "completed") -> StoreOrder:
    order = StoreOrder(
        store_id=store.id,
        subtotal_with_shipping=Decimal(amount),
        status=status,
        created_at=created_at,
    )
    db.session.add(order)
    db.session.commit()
    return order


def follow_store(store: Store, email: str, created_at: datetime) -> StoreFollower:
    user = User(email=email, is_active=True)
    db.session.add(user)
    db.session.flush()
    follower = StoreFollower(store_id=store.id, user_id=user.id, created_at=created_at)
    db.session.add(follower)
    db.session.commit()
    return follower


def add_product(
    store: Store,
    name: str,
    *,
    price: str = "9.99",
    category: Category | None = None,
    created_at: datetime | None = None,
) -> Product:
    product = Product(
        store_id=store.id,
        name=name,
        price=Decimal(price),
        category_id=category.id if category else None,
    )
    if created_at is not None:
        product.created_at = created_at
    db.session.add(product)
    db.session.commit()
    return product


def review_store(store: Store, rating: int) -> StoreReview:
    review = StoreReview(store_id=store.id, rating=rating)
    db.session.add(review)
    db.session.commit()
    return review


def make_category(title: str, *, category_id: int | None = None) -> Category:
    category = Category(title=title)
    if category_id is not None:
        category.id = category_id
    db.session.add(category)
    db.session.commit()
    return category
