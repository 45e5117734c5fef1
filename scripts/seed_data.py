"""
Fixed seed listings.

Used as the listings default whenever the persisted slot is missing or
unreadable, and by the admin re-seed route.
"""

from decimal import Decimal

from vbay.marketplace import Marketplace
from vbay.models import Category, Condition, Listing


def _unsplash(photo: str) -> str:
    return f"https://images.unsplash.com/{photo}?auto=format&fit=crop&w=800&q=80"


def seed_listings() -> list[Listing]:
    return [
        Listing(
            id="1",
            title="2015 Honda Civic LX",
            description="Reliable commuter car, 85k miles. Clean title. Great for getting "
                        "to and from campus. Recently inspected.",
            price=Decimal("12500.00"),
            category=Category.VEHICLES,
            image_urls=[_unsplash("photo-1541899481282-d53bffe3c35d")],
            seller_id="u2",
            seller_email="student.driver@vims.edu",
            created_at="2023-10-25T10:00:00Z",
            condition=Condition.GOOD,
        ),
        Listing(
            id="2",
            title="Room for Rent - Gloucester Point",
            description="Master bedroom in a shared house, 5 mins from VIMS. $600/mo including "
                        "utilities. Looking for a quiet grad student or staff.",
            price=Decimal("600.00"),
            category=Category.HOUSING,
            image_urls=[_unsplash("photo-1522708323590-d24dbb6b0267")],
            seller_id="u3",
            seller_email="landlord.staff@vims.edu",
            created_at="2023-10-26T14:30:00Z",
            condition=Condition.GOOD,
        ),
        Listing(
            id="3",
            title="IKEA Sectional Sofa",
            description="Grey L-shaped sofa. About 2 years old. Must pick up, I cannot deliver.",
            price=Decimal("150.00"),
            category=Category.FURNITURE,
            image_urls=[_unsplash("photo-1555041469-a586c61ea9bc")],
            seller_id="u1",
            seller_email="jane.m@vims.edu",
            created_at="2023-10-27T09:15:00Z",
            condition=Condition.GOOD,
        ),
        Listing(
            id="4",
            title="Introduction to Physical Oceanography",
            description="Textbook by Knauss. Required for PO 101. Slight highlighting on "
                        "first few chapters.",
            price=Decimal("30.00"),
            category=Category.BOOKS,
            image_urls=[_unsplash("photo-1544947950-fa07a98d237f")],
            seller_id="u4",
            seller_email="grad.student@vims.edu",
            created_at="2023-10-28T11:20:00Z",
            condition=Condition.LIKE_NEW,
        ),
        Listing(
            id="5",
            title="Ocean Kayak Malibu Two",
            description="Tandem sit-on-top kayak. Comes with two paddles. Great for the York River!",
            price=Decimal("350.00"),
            category=Category.OUTDOOR,
            image_urls=[_unsplash("photo-1541544537128-c4c090a93a38")],
            seller_id="u5",
            seller_email="kayak.lover@vims.edu",
            created_at="2023-10-28T16:45:00Z",
            condition=Condition.FAIR,
        ),
        Listing(
            id="test-item-1",
            title="Vintage VIMS Field Gear",
            description="Original field jacket from the 90s. Size Large. Perfect condition. "
                        "Test item for email functionality.",
            price=Decimal("45.00"),
            category=Category.CLOTHING,
            image_urls=[_unsplash("photo-1551488852-d81a4d53e253")],
            seller_id="u-test",
            seller_email="jcthomas@vims.edu",
            created_at="2023-11-01T09:00:00Z",
            condition=Condition.LIKE_NEW,
        ),
    ]


def seed(marketplace: Marketplace) -> None:
    marketplace.reseed(seed_listings())
