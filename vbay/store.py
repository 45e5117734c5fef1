from typing import Callable, Optional

from vbay.models import Listing

ChangeHook = Callable[[list[Listing]], None]


class ListingStore:
    """Ordered listing container, newest insertion first.

    Performs no permission checks: callers must verify that the acting user
    owns a listing before passing it to ``update``.
    """

    def __init__(self, listings: Optional[list[Listing]] = None,
                 on_change: Optional[ChangeHook] = None) -> None:
        self.listings: list[Listing] = list(listings or [])
        self._on_change = on_change

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self.all())

    # ── writes ────────────────────────────────────────────────────────────────

    def add(self, listing: Listing) -> None:
        self.listings.insert(0, listing)
        self._changed()

    def update(self, listing: Listing) -> bool:
        """Replace the listing with the same id in place. No-op if absent."""
        for index, existing in enumerate(self.listings):
            if existing.id == listing.id:
                self.listings[index] = listing
                self._changed()
                return True
        return False

    def reset(self, listings: list[Listing]) -> None:
        self.listings = list(listings)
        self._changed()

    # ── reads ─────────────────────────────────────────────────────────────────

    def get(self, listing_id: str) -> Optional[Listing]:
        return next((l for l in self.listings if l.id == listing_id), None)

    def all(self) -> list[Listing]:
        return list(self.listings)

    def __len__(self) -> int:
        return len(self.listings)
