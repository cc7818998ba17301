"""Uniform result shapes returned to the view layer"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from .product import Product
from .user import PublicUser


class OperationResult(BaseModel):
    """{success, data?, message?} plus a stable error code on failure"""

    success: bool
    data: Optional[Any] = None
    message: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None, message: Optional[str] = None) -> "OperationResult":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, message: str, error: Optional[str] = None) -> "OperationResult":
        return cls(success=False, message=message, error=error)


class AuthPayload(BaseModel):
    user: PublicUser
    token: str


class DashboardStats(BaseModel):
    total_users: int
    total_products: int
    active_sessions: int
    total_inventory_value: float
    recent_products: List[Product] = Field(default_factory=list)
    generated_at: datetime
