"""
Application state container.

Owns the listing store, cart and session, and mirrors each collection to
storage after every mutation. Storage warnings accumulate in ``notices``
until the caller drains them.
"""
from typing import Optional

from vbay.cart import CartManager
from vbay.errors import ListingNotFound
from vbay.log import get_logger
from vbay.models import CartOutcome, Listing, User
from vbay.persistence import Persistence
from vbay.session import SessionManager
from vbay.store import ListingStore

logger = get_logger(__name__)


class Marketplace:
    def __init__(self, persistence: Persistence) -> None:
        self.persistence = persistence
        self.notices: list[str] = []

        self.session = SessionManager(persistence.load_session(), on_change=self._save_session)
        self.listings = ListingStore(persistence.load_listings(), on_change=self._save_listings)
        self.cart = CartManager(self.session, persistence.load_cart(), on_change=self._save_cart)

        # cart contents never survive a session
        self.session.on_logout(self.cart.clear)
        if not self.session.is_authenticated and len(self.cart):
            logger.warning("Dropping %d cart items persisted without a session", len(self.cart))
            self.cart.clear()

        logger.info("Marketplace loaded: %d listings, %d cart items, session=%s",
                    len(self.listings), len(self.cart),
                    "yes" if self.session.is_authenticated else "no")

    # ── persistence hooks ─────────────────────────────────────────────────────

    def _notice(self, notice: Optional[str]) -> None:
        if notice is not None:
            self.notices.append(notice)

    def _save_listings(self, listings: list[Listing]) -> None:
        self._notice(self.persistence.save_listings(listings))

    def _save_cart(self, items) -> None:
        self._notice(self.persistence.save_cart(items))

    def _save_session(self, user: Optional[User]) -> None:
        self._notice(self.persistence.save_session(user))

    def drain_notices(self) -> list[str]:
        notices, self.notices = self.notices, []
        return notices

    # ── session ───────────────────────────────────────────────────────────────

    def current_user(self) -> Optional[User]:
        return self.session.current_user()

    def login(self, user: User) -> None:
        self.session.login(user)

    def logout(self) -> None:
        self.session.logout()

    # ── listings ──────────────────────────────────────────────────────────────

    def get_listing(self, listing_id: str) -> Listing:
        listing = self.listings.get(listing_id)
        if listing is None:
            raise ListingNotFound(listing_id)
        return listing

    def add_listing(self, listing: Listing) -> None:
        self.listings.add(listing)
        logger.info("Listing %s created by %s", listing.id, listing.seller_id)

    def update_listing(self, listing: Listing) -> bool:
        """Caller must have checked ownership (see ``vbay.forms.load_for_edit``)."""
        updated = self.listings.update(listing)
        if updated:
            self.cart.sync_from_listing_update(listing)
            logger.info("Listing %s updated", listing.id)
        return updated

    def reseed(self, listings: list[Listing]) -> None:
        self.listings.reset(listings)

    # ── cart ──────────────────────────────────────────────────────────────────

    def add_to_cart(self, listing_id: str) -> CartOutcome:
        return self.cart.add(self.get_listing(listing_id))

    def remove_from_cart(self, listing_id: str) -> bool:
        return self.cart.remove(listing_id)
