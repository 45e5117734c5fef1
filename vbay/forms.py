"""
Create / edit listing submissions.

Ownership is enforced here, not in ``ListingStore``: ``load_for_edit`` must
succeed before an edited listing is handed to the store.
"""
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional

from pydantic import Field, field_validator

from vbay.errors import ListingNotFound, NotListingOwner
from vbay.models import MAX_IMAGES, Category, Condition, Listing, User, CamelModel


class ListingForm(CamelModel):
    title: str
    description: str
    price: Decimal = Field(ge=0)
    category: Category = Category.MISC
    condition: Condition = Condition.GOOD
    image_urls: list[str] = Field(min_length=1, max_length=MAX_IMAGES)

    @field_validator("title", "description")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("image_urls")
    @classmethod
    def _no_empty_images(cls, value: list[str]) -> list[str]:
        if any(not url.strip() for url in value):
            raise ValueError("image entries must not be empty")
        return value

    @classmethod
    def from_listing(cls, listing: Listing) -> "ListingForm":
        return cls(
            title=listing.title,
            description=listing.description,
            price=listing.price,
            category=listing.category,
            condition=listing.condition,
            image_urls=listing.image_urls,
        )


def iso_timestamp(moment: Optional[datetime] = None) -> str:
    """UTC ISO-8601 with millisecond precision and a ``Z`` suffix."""
    moment = (moment or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def append_images(current: list[str], new: Iterable[str]) -> list[str]:
    """Append images up to the per-listing limit; overflow is dropped."""
    remaining = max(0, MAX_IMAGES - len(current))
    return list(current) + list(new)[:remaining]


def load_for_edit(listing_id: str, listings: Iterable[Listing], user: User) -> Listing:
    listing = next((l for l in listings if l.id == listing_id), None)
    if listing is None:
        raise ListingNotFound(listing_id)
    if listing.seller_id != user.id:
        raise NotListingOwner(listing_id)
    return listing


def build_listing(form: ListingForm, user: User, created_at: Optional[datetime] = None) -> Listing:
    return Listing(
        id=uuid.uuid4().hex,
        title=form.title,
        description=form.description,
        price=form.price,
        category=form.category,
        image_urls=form.image_urls,
        seller_id=user.id,
        seller_email=user.email,
        created_at=iso_timestamp(created_at),
        condition=form.condition,
    )


def apply_edit(existing: Listing, form: ListingForm) -> Listing:
    # id, seller and created_at are carried over untouched
    return existing.model_copy(update={
        "title": form.title,
        "description": form.description,
        "price": form.price,
        "category": form.category,
        "condition": form.condition,
        "image_urls": list(form.image_urls),
    })
