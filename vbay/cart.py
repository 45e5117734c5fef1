from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Optional

from vbay.models import CartItem, CartOutcome, Listing
from vbay.session import SessionManager

_ZERO = Decimal("0.00")
_TWO_DP = Decimal("0.01")

CartHook = Callable[[list[CartItem]], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CartManager:
    """Set of cart items keyed by listing id, kept in insertion order."""

    def __init__(self, session: SessionManager, items: Optional[list[CartItem]] = None,
                 on_change: Optional[CartHook] = None,
                 clock: Callable[[], datetime] = _utcnow) -> None:
        self.session = session
        self._items: list[CartItem] = list(items or [])
        self._on_change = on_change
        self._clock = clock

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self.items())

    def add(self, listing: Listing) -> CartOutcome:
        if not self.session.is_authenticated:
            return CartOutcome.LOGIN_REQUIRED
        if self.contains(listing.id):
            return CartOutcome.ALREADY_IN_CART
        self._items.append(CartItem.from_listing(listing, added_at=self._clock()))
        self._changed()
        return CartOutcome.ADDED

    def remove(self, listing_id: str) -> bool:
        kept = [i for i in self._items if i.id != listing_id]
        if len(kept) == len(self._items):
            return False
        self._items = kept
        self._changed()
        return True

    def sync_from_listing_update(self, listing: Listing) -> bool:
        """Refresh the matching entry's listing fields, keeping its added_at."""
        for index, item in enumerate(self._items):
            if item.id == listing.id:
                self._items[index] = CartItem.from_listing(listing, added_at=item.added_at)
                self._changed()
                return True
        return False

    def clear(self) -> None:
        self._items = []
        self._changed()

    def get(self, listing_id: str) -> Optional[CartItem]:
        return next((i for i in self._items if i.id == listing_id), None)

    def contains(self, listing_id: str) -> bool:
        return self.get(listing_id) is not None

    def items(self) -> list[CartItem]:
        return list(self._items)

    def total(self) -> Decimal:
        return sum((i.price for i in self._items), _ZERO).quantize(_TWO_DP)

    def __len__(self) -> int:
        return len(self._items)
