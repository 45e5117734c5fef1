from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Category(str, Enum):
    VEHICLES = "Vehicles"
    HOUSING = "Housing & Rentals"
    FURNITURE = "Furniture"
    ELECTRONICS = "Electronics"
    OUTDOOR = "Outdoor & Marine"
    CLOTHING = "Clothing & Accessories"
    BOOKS = "Books & Textbooks"
    MISC = "Miscellaneous"


class Condition(str, Enum):
    NEW = "New"
    LIKE_NEW = "Like New"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


class SortMode(str, Enum):
    NEWEST = "newest"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"


# sentinel for the category / condition filters
ALL = "All"

MAX_IMAGES = 5


class CamelModel(BaseModel):
    # persisted documents keep the browser-era camelCase keys
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class User(CamelModel):
    id: str
    name: str
    department: str
    email: str


class Listing(CamelModel):
    id: str
    title: str
    description: str
    price: Decimal = Field(ge=0)
    category: Category
    image_urls: list[str] = Field(max_length=MAX_IMAGES)
    seller_id: str
    seller_email: str
    created_at: str  # ISO-8601, compared lexicographically
    condition: Condition


class CartItem(Listing):
    added_at: datetime

    @classmethod
    def from_listing(cls, listing: Listing, added_at: datetime) -> "CartItem":
        return cls(**listing.model_dump(exclude={"added_at"}), added_at=added_at)


# ── Response models ──────────────────────────────────────────────────────────

class CartOutcome(str, Enum):
    ADDED = "added"
    ALREADY_IN_CART = "already_in_cart"
    LOGIN_REQUIRED = "login_required"


class CartSummary(CamelModel):
    items: list[CartItem]
    count: int
    total: Decimal


class ContactLink(CamelModel):
    mailto: str
    recipients: list[str]


class SignInRedirect(CamelModel):
    redirect_url: str
