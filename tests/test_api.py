"""
HTTP-level tests for the marketplace routes.
"""

from urllib.parse import urlparse

from fastapi.testclient import TestClient

from scripts.seed_data import seed_listings
from vbay.config import Settings
from vbay.main import create_app
from vbay.marketplace import Marketplace
from vbay.persistence import LISTINGS_WRITE_NOTICE, Persistence
from vbay.storage import MemoryStorage


def make_client(storage=None):
    settings = Settings(
        storage_dir="unused",
        sso_redirect_delay=0,
        sso_validation_delay=0,
        submit_delay=0,
    )
    market = Marketplace(Persistence(storage or MemoryStorage(), seed_listings))
    return TestClient(create_app(marketplace=market, settings=settings)), market


def debug_login(client):
    resp = client.post("/api/v1/session/debug")
    assert resp.status_code == 200
    return resp.json()["user"]


NEW_LISTING = {
    "title": "Field Microscope",
    "description": "Portable scope for fieldwork",
    "price": "75.00",
    "category": "Electronics",
    "condition": "Like New",
    "imageUrls": ["https://example.com/scope.jpg"],
}


class TestListingRoutes:
    def test_default_listing_order_is_newest_first(self):
        client, _ = make_client()
        body = client.get("/api/v1/listings").json()
        assert body["count"] == 6
        assert [l["id"] for l in body["listings"]][:2] == ["test-item-1", "5"]

    def test_filters_and_sort(self):
        client, _ = make_client()
        body = client.get("/api/v1/listings", params={
            "q": "vims", "sort": "price_asc",
        }).json()
        prices = [float(l["price"]) for l in body["listings"]]
        assert prices == sorted(prices)
        assert body["count"] == 2

        books = client.get("/api/v1/listings", params={"category": "Books & Textbooks"}).json()
        assert [l["id"] for l in books["listings"]] == ["4"]

        fair = client.get("/api/v1/listings", params={"condition": "Fair"}).json()
        assert [l["id"] for l in fair["listings"]] == ["5"]

    def test_unknown_filter_value_is_rejected(self):
        client, _ = make_client()
        assert client.get("/api/v1/listings", params={"category": "Boats"}).status_code == 400
        assert client.get("/api/v1/listings", params={"sort": "random"}).status_code == 422

    def test_detail_and_missing_listing(self):
        client, _ = make_client()
        assert client.get("/api/v1/listings/3").json()["sellerEmail"] == "jane.m@vims.edu"
        assert client.get("/api/v1/listings/nope").status_code == 404

    def test_create_requires_login(self):
        client, market = make_client()
        assert client.post("/api/v1/listings", json=NEW_LISTING).status_code == 401
        assert len(market.listings) == 6

    def test_create_listing(self):
        client, market = make_client()
        debug_login(client)
        resp = client.post("/api/v1/listings", json=NEW_LISTING)
        assert resp.status_code == 201
        created = resp.json()["listing"]
        assert created["sellerId"] == "u1"
        assert market.listings.all()[0].id == created["id"]

    def test_create_rejects_missing_images(self):
        client, _ = make_client()
        debug_login(client)
        resp = client.post("/api/v1/listings", json={**NEW_LISTING, "imageUrls": []})
        assert resp.status_code == 422


class TestEditRoutes:
    def test_owner_edit_updates_listing_and_cart(self):
        client, market = make_client()
        debug_login(client)
        client.post("/api/v1/cart/3")
        added_at = market.cart.get("3").added_at

        form = client.get("/api/v1/listings/3/edit").json()["form"]
        form["price"] = "99.00"
        resp = client.put("/api/v1/listings/3", json=form)
        assert resp.status_code == 200

        assert str(market.get_listing("3").price) == "99.00"
        assert str(market.cart.get("3").price) == "99.00"
        assert market.cart.get("3").added_at == added_at
        assert market.get_listing("3").created_at == "2023-10-27T09:15:00Z"

    def test_non_owner_cannot_edit(self):
        client, market = make_client()
        debug_login(client)
        assert client.get("/api/v1/listings/1/edit").status_code == 403
        resp = client.put("/api/v1/listings/1", json=NEW_LISTING)
        assert resp.status_code == 403
        assert market.get_listing("1").title == "2015 Honda Civic LX"

    def test_edit_unknown_listing(self):
        client, _ = make_client()
        debug_login(client)
        assert client.put("/api/v1/listings/ghost", json=NEW_LISTING).status_code == 404


class TestCartRoutes:
    def test_add_without_session(self):
        client, market = make_client()
        resp = client.post("/api/v1/cart/1")
        assert resp.status_code == 401
        assert len(market.cart) == 0

    def test_add_twice(self):
        client, market = make_client()
        debug_login(client)
        first = client.post("/api/v1/cart/1").json()
        second = client.post("/api/v1/cart/1").json()
        assert first["status"] == "added"
        assert second["status"] == "already_in_cart"
        assert second["cartCount"] == 1
        assert len(market.cart) == 1

    def test_add_unknown_listing(self):
        client, _ = make_client()
        debug_login(client)
        assert client.post("/api/v1/cart/ghost").status_code == 404

    def test_cart_summary_and_remove(self):
        client, _ = make_client()
        debug_login(client)
        client.post("/api/v1/cart/3")
        client.post("/api/v1/cart/4")
        summary = client.get("/api/v1/cart").json()
        assert summary["count"] == 2
        assert summary["total"] == "180.00"

        assert client.delete("/api/v1/cart/3").json()["removed"] is True
        assert client.delete("/api/v1/cart/3").json()["removed"] is False
        assert client.get("/api/v1/cart").json()["count"] == 1

    def test_contact_links(self):
        client, _ = make_client()
        debug_login(client)
        assert client.get("/api/v1/cart/contact").status_code == 404
        client.post("/api/v1/cart/1")
        client.post("/api/v1/cart/5")

        one = client.get("/api/v1/cart/1/contact").json()
        assert one["recipients"] == ["student.driver@vims.edu"]
        everyone = client.get("/api/v1/cart/contact").json()
        assert everyone["recipients"] == ["student.driver@vims.edu", "kayak.lover@vims.edu"]
        assert client.get("/api/v1/cart/2/contact").status_code == 404

    def test_cart_requires_login(self):
        client, _ = make_client()
        assert client.get("/api/v1/cart").status_code == 401


class TestSessionRoutes:
    def test_logout_clears_cart(self):
        client, market = make_client()
        debug_login(client)
        client.post("/api/v1/cart/1")
        assert client.delete("/api/v1/session").json()["status"] == "logged_out"
        assert client.get("/api/v1/session").json() == {"user": None}
        debug_login(client)
        assert client.get("/api/v1/cart").json()["count"] == 0

    def test_sso_round_trip(self):
        client, market = make_client()
        redirect = client.post("/api/v1/auth/sso/start").json()["redirectUrl"]
        ticket_query = urlparse(redirect).query

        resp = client.get(f"/api/v1/auth/sso/callback?{ticket_query}")
        assert resp.status_code == 200
        assert resp.json()["user"]["name"] == "VIMS Staff Member"
        assert market.current_user().email == "staff@vims.edu"
        assert client.get("/api/v1/auth/sso/stage").json() == {"stage": "idle"}

    def test_callback_without_ticket(self):
        client, market = make_client()
        assert client.get("/api/v1/auth/sso/callback").status_code == 400
        assert market.current_user() is None


class TestNotices:
    def test_storage_failure_is_reported_but_not_fatal(self):
        client, market = make_client(MemoryStorage(quota_bytes=600))
        debug_login(client)
        resp = client.post("/api/v1/listings", json=NEW_LISTING)
        assert resp.status_code == 201
        assert LISTINGS_WRITE_NOTICE in resp.json()["notices"]
        assert len(market.listings) == 7

    def test_reseed(self):
        client, market = make_client()
        debug_login(client)
        client.post("/api/v1/listings", json=NEW_LISTING)
        body = client.post("/api/v1/admin/seed").json()
        assert body["listings"] == 6
        assert len(market.listings) == 6
