"""
Persistence adapter for the three marketplace slots.

Every save serializes the whole collection. Every load falls back to the
slot's default when the stored document is missing, unparseable, or the
wrong shape. Write failures never propagate: they are logged and returned
as a notice for the user while the in-memory state stays authoritative.
"""
from typing import Callable, Optional

from pydantic import TypeAdapter, ValidationError

from vbay.errors import StorageWriteError
from vbay.log import get_logger
from vbay.models import CartItem, Listing, User
from vbay.storage import Storage

logger = get_logger(__name__)

LISTINGS_KEY = "vbay_listings"
CART_KEY = "vbay_cart"
SESSION_KEY = "vbay_user"

_listings_adapter = TypeAdapter(list[Listing])
_cart_adapter = TypeAdapter(list[CartItem])
_user_adapter = TypeAdapter(User)

LISTINGS_WRITE_NOTICE = (
    "Storage limit reached! Old items might not be saved or new items might fail to persist."
)
CART_WRITE_NOTICE = "Your cart could not be saved."
SESSION_WRITE_NOTICE = "Your session could not be saved."


class Persistence:
    def __init__(self, storage: Storage, default_listings: Callable[[], list[Listing]]) -> None:
        self.storage = storage
        self.default_listings = default_listings

    # ── reads ─────────────────────────────────────────────────────────────────

    def _load(self, key: str, adapter: TypeAdapter, default):
        raw = self.storage.get_item(key)
        if raw is None:
            return default()
        try:
            return adapter.validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding unreadable '%s' slot (%d errors), using default",
                           key, exc.error_count())
            return default()

    def _unique_ids(self, key: str, items: list, default):
        # both collections are keyed by listing id
        ids = [i.id for i in items]
        if len(set(ids)) != len(ids):
            logger.warning("Discarding '%s' slot with duplicate ids, using default", key)
            return default()
        return items

    def load_listings(self) -> list[Listing]:
        listings = self._load(LISTINGS_KEY, _listings_adapter, self.default_listings)
        return self._unique_ids(LISTINGS_KEY, listings, self.default_listings)

    def load_cart(self) -> list[CartItem]:
        items = self._load(CART_KEY, _cart_adapter, list)
        return self._unique_ids(CART_KEY, items, list)

    def load_session(self) -> Optional[User]:
        return self._load(SESSION_KEY, _user_adapter, lambda: None)

    # ── writes ────────────────────────────────────────────────────────────────

    def _write(self, key: str, payload: bytes, notice: str) -> Optional[str]:
        try:
            self.storage.set_item(key, payload.decode("utf-8"))
        except StorageWriteError as exc:
            logger.error("Failed to persist '%s': %s", key, exc)
            return notice
        return None

    def save_listings(self, listings: list[Listing]) -> Optional[str]:
        payload = _listings_adapter.dump_json(listings, by_alias=True)
        return self._write(LISTINGS_KEY, payload, LISTINGS_WRITE_NOTICE)

    def save_cart(self, items: list[CartItem]) -> Optional[str]:
        payload = _cart_adapter.dump_json(items, by_alias=True)
        return self._write(CART_KEY, payload, CART_WRITE_NOTICE)

    def save_session(self, user: Optional[User]) -> Optional[str]:
        if user is None:
            try:
                self.storage.remove_item(SESSION_KEY)
            except StorageWriteError as exc:
                logger.error("Failed to clear '%s': %s", SESSION_KEY, exc)
                return SESSION_WRITE_NOTICE
            return None
        payload = _user_adapter.dump_json(user, by_alias=True)
        return self._write(SESSION_KEY, payload, SESSION_WRITE_NOTICE)
