"""Guest cart kept on the visitor's device.

The guest cart has no join to the product table, so each entry caches the
product fields it was added with. The same clamp-and-prune rules as the
server cart run against that cached stock. The storage medium is injected
(``GuestCartStorage``), so the module holds no global state.
"""

import json
from collections.abc import Callable
from dataclasses import asdict, dataclass, replace
from typing import Protocol

import structlog

from ordering.cart.snapshot import (
    CartAdjustment,
    CartSnapshot,
    CartSnapshotItem,
    clamp_adjustment,
    normalize_quantity,
    unavailable_adjustment,
)

logger = structlog.get_logger(__name__)

GUEST_CART_STORAGE_KEY = "shop-template:cart:v1"

_FIELD_NAMES = {
    "product_id": "productId",
    "slug": "slug",
    "name": "name",
    "image_url": "imageUrl",
    "price_in_cents": "priceInCents",
    "stock_quantity": "stockQuantity",
    "quantity": "quantity",
}
_TEXT_FIELDS = ("productId", "slug", "name", "imageUrl")
_NUMBER_FIELDS = ("priceInCents", "stockQuantity", "quantity")


@dataclass(frozen=True)
class GuestCartItem:
    product_id: str
    slug: str
    name: str
    image_url: str
    price_in_cents: int
    stock_quantity: int
    quantity: int

    def to_payload(self) -> dict:
        return {_FIELD_NAMES[key]: value for key, value in asdict(self).items()}


class GuestCartStorage(Protocol):
    def read(self) -> str | None: ...

    def write(self, value: str) -> None: ...

    def clear(self) -> None: ...


class InMemoryGuestCartStorage:
    """Dict-backed storage keyed like browser local storage."""

    def __init__(self, key: str = GUEST_CART_STORAGE_KEY) -> None:
        self.key = key
        self.values: dict[str, str] = {}

    def read(self) -> str | None:
        return self.values.get(self.key)

    def write(self, value: str) -> None:
        self.values[self.key] = value

    def clear(self) -> None:
        self.values.pop(self.key, None)


def _is_number(value) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def parse_guest_items(raw: str | None) -> list[GuestCartItem]:
    """Decode the stored JSON array, dropping malformed entries."""
    if not raw:
        return []
    try:
        entries = json.loads(raw)
    except (TypeError, ValueError):
        return []
    if not isinstance(entries, list):
        return []

    items = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        if not all(isinstance(entry.get(name), str) for name in _TEXT_FIELDS):
            continue
        if not all(_is_number(entry.get(name)) for name in _NUMBER_FIELDS):
            continue
        items.append(
            GuestCartItem(
                product_id=entry["productId"],
                slug=entry["slug"],
                name=entry["name"],
                image_url=entry["imageUrl"],
                price_in_cents=normalize_quantity(entry["priceInCents"]),
                stock_quantity=normalize_quantity(entry["stockQuantity"]),
                quantity=normalize_quantity(entry["quantity"]),
            )
        )
    return items


def serialize_guest_items(items: list[GuestCartItem]) -> str:
    return json.dumps([item.to_payload() for item in items])


def sanitize_guest_items(items: list[GuestCartItem]) -> tuple[list[GuestCartItem], list[CartAdjustment], bool]:
    """Prune and clamp against cached stock.

    Returns the surviving items, the adjustments made and whether anything
    changed (so callers only rewrite storage when needed).
    """
    adjustments: list[CartAdjustment] = []
    sanitized: list[GuestCartItem] = []
    mutated = False

    for item in items:
        stock_quantity = normalize_quantity(item.stock_quantity)
        quantity = normalize_quantity(item.quantity)

        if stock_quantity <= 0 or quantity <= 0:
            mutated = True
            adjustments.append(unavailable_adjustment(item.product_id, item.name, quantity))
            continue

        clamped = min(quantity, stock_quantity)
        if clamped != quantity:
            mutated = True
            adjustments.append(clamp_adjustment(item.product_id, item.name, quantity, clamped))

        sanitized.append(replace(item, stock_quantity=stock_quantity, quantity=clamped))

    return sanitized, adjustments, mutated


def snapshot_from_guest_items(
    items: list[GuestCartItem], adjustments: list[CartAdjustment] | None = None
) -> CartSnapshot:
    snapshot_items = []
    for item in items:
        stock_quantity = normalize_quantity(item.stock_quantity)
        quantity = min(normalize_quantity(item.quantity), stock_quantity)
        snapshot_items.append(
            CartSnapshotItem(
                id=f"guest:{item.product_id}",
                product_id=item.product_id,
                slug=item.slug,
                name=item.name,
                image_url=item.image_url,
                price_in_cents=item.price_in_cents,
                stock_quantity=stock_quantity,
                max_allowed_quantity=stock_quantity,
                quantity=quantity,
                line_total_in_cents=item.price_in_cents * quantity,
            )
        )
    return CartSnapshot(items=snapshot_items, adjustments=list(adjustments or []))


class GuestCartStore:
    """Guest cart operations over an injected storage."""

    def __init__(self, storage: GuestCartStorage) -> None:
        self.storage = storage

    def _read(self) -> list[GuestCartItem]:
        return parse_guest_items(self.storage.read())

    def _write(self, items: list[GuestCartItem]) -> None:
        self.storage.write(serialize_guest_items(items))

    def _current(self) -> list[GuestCartItem]:
        sanitized, _, _ = sanitize_guest_items(self._read())
        return sanitized

    def items(self) -> list[GuestCartItem]:
        return self._current()

    def hydrate(self) -> CartSnapshot:
        sanitized, adjustments, mutated = sanitize_guest_items(self._read())
        if mutated:
            self._write(sanitized)
        return snapshot_from_guest_items(sanitized, adjustments)

    def add(self, product: GuestCartItem) -> CartSnapshot:
        """Add ``product.quantity`` units, clamped to the stock cached on ``product``."""
        items = self._current()
        existing = next((item for item in items if item.product_id == product.product_id), None)
        current_quantity = normalize_quantity(existing.quantity) if existing else 0
        requested_quantity = current_quantity + normalize_quantity(product.quantity)
        stock_quantity = normalize_quantity(product.stock_quantity)
        adjusted_quantity = min(requested_quantity, stock_quantity)

        if adjusted_quantity <= 0:
            return snapshot_from_guest_items(
                items, [unavailable_adjustment(product.product_id, product.name, requested_quantity)]
            )

        items = [item for item in items if item.product_id != product.product_id]
        items.append(
            replace(
                product,
                price_in_cents=normalize_quantity(product.price_in_cents),
                stock_quantity=stock_quantity,
                quantity=adjusted_quantity,
            )
        )
        self._write(items)

        adjustments = []
        if adjusted_quantity < requested_quantity:
            adjustments.append(clamp_adjustment(product.product_id, product.name, requested_quantity, adjusted_quantity))
        return snapshot_from_guest_items(items, adjustments)

    def set_quantity(self, product_id: str, quantity) -> CartSnapshot:
        next_quantity = normalize_quantity(quantity)
        next_items = []
        adjustments = []

        for item in self._current():
            if item.product_id != product_id:
                next_items.append(item)
                continue
            if next_quantity <= 0:
                continue

            adjusted_quantity = min(next_quantity, item.stock_quantity)
            next_items.append(replace(item, quantity=adjusted_quantity))
            if adjusted_quantity < next_quantity:
                adjustments.append(clamp_adjustment(item.product_id, item.name, next_quantity, adjusted_quantity))

        self._write(next_items)
        return snapshot_from_guest_items(next_items, adjustments)

    def remove(self, product_id: str) -> CartSnapshot:
        items = [item for item in self._current() if item.product_id != product_id]
        self._write(items)
        return snapshot_from_guest_items(items)

    def merge_items(self) -> list[dict]:
        """Payload for the server-side merge: product ids and quantities only."""
        return [{"product_id": item.product_id, "quantity": item.quantity} for item in self._read()]

    def clear(self) -> None:
        self.storage.clear()


class SignInCartSync:
    """Decides which cart to show as the visitor signs in and out.

    Remembers the identity the guest cart was last merged for, so the merge
    runs once per sign-in. The guest store is cleared as soon as a merge
    succeeds.
    """

    def __init__(
        self,
        store: GuestCartStore,
        merge: Callable[[str, list[dict]], CartSnapshot],
        fetch: Callable[[str], CartSnapshot],
    ) -> None:
        self.store = store
        self.merge = merge
        self.fetch = fetch
        self.merged_for: str | None = None

    def sync(self, user_id: str | None) -> CartSnapshot:
        if user_id is None:
            self.merged_for = None
            return self.store.hydrate()

        guest_items = self.store.merge_items()
        if self.merged_for != user_id and guest_items:
            snapshot = self.merge(user_id, guest_items)
            self.merged_for = user_id
            self.store.clear()
            logger.info("guest_cart_synced", user_id=user_id, items=len(guest_items))
            return snapshot

        self.merged_for = user_id
        return self.fetch(user_id)
