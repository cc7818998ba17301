"""Data models for users, products, sessions and operation results"""

from .user import User, PublicUser, Role, ROLE_HIERARCHY
from .product import Product, ProductInput
from .session import Session
from .results import OperationResult, AuthPayload, DashboardStats

__all__ = [
    "User",
    "PublicUser",
    "Role",
    "ROLE_HIERARCHY",
    "Product",
    "ProductInput",
    "Session",
    "OperationResult",
    "AuthPayload",
    "DashboardStats",
]
