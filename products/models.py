"""Product record and input validation."""

import math
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ProductValidationError(Exception):
    """Raised when a product payload fails a field check.

    Attributes:
        field: Name of the rejected field ('name' or 'price')
    """

    def __init__(self, field: str) -> None:
        super().__init__(f"Invalid {field}")
        self.field = field


class Product(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(alias="_id")
    name: str
    price: int | float
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def validate_product(payload: Any) -> tuple[str, int | float]:
    """Return the trimmed name and price, or raise ProductValidationError."""
    if not isinstance(payload, dict):
        payload = {}

    name = payload.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ProductValidationError("name")

    price = payload.get("price")
    # bool is an int subclass but never a price
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        raise ProductValidationError("price")
    if not math.isfinite(price) or price < 0:
        raise ProductValidationError("price")

    return name.strip(), price
