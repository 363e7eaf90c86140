"""Product storage."""

from datetime import UTC, datetime
from threading import Lock
from typing import Protocol
from uuid import uuid4

from products.models import Product


class StoreError(Exception):
    """Raised when the store cannot read or write records."""


class ProductStore(Protocol):
    def create(self, name: str, price: int | float) -> Product: ...
    def list_recent(self) -> list[Product]: ...


class InMemoryProductStore:
    """Process-local store, newest records first."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._products: list[Product] = []

    def create(self, name: str, price: int | float) -> Product:
        now = datetime.now(UTC)
        product = Product(
            _id=uuid4().hex[:24],
            name=name,
            price=price,
            createdAt=now,
            updatedAt=now,
        )
        with self._lock:
            self._products.append(product)
        return product

    def list_recent(self) -> list[Product]:
        with self._lock:
            # Reverse first so equal timestamps keep newest-insert-first order
            snapshot = list(reversed(self._products))
        return sorted(snapshot, key=lambda p: p.created_at, reverse=True)
