"""Product catalog models"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ProductInput(BaseModel):
    """Fields a caller supplies when creating or editing a product"""

    name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    price: float = Field(ge=0)
    stock: int = Field(ge=0)
    description: Optional[str] = None


class Product(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    category: str
    price: float = Field(ge=0)
    stock: int = Field(ge=0)
    description: Optional[str] = None
    created_by: Optional[int] = None  # weak reference to User.id
    created_at: datetime

    @property
    def inventory_value(self) -> float:
        return self.price * self.stock
