from .category import Category
from .loyalty_point import LoyaltyPoint
from .product import Product
from .rbac import Permission, Role, RolePermission, UserRole
from .store import Store, StoreFollower, StoreReview
from .store_order import StoreOrder
from .user import User

__all__ = [
    "Category",
    "LoyaltyPoint",
    "Permission",
    "Product",
    "Role",
    "RolePermission",
    "Store",
    "StoreFollower",
    "StoreOrder",
    "StoreReview",
    "User",
    "UserRole",
]
