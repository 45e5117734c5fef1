import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request

from vbay.auth import IdentityProvider, MockIdentityProvider, SsoFlow
from vbay.config import Settings, get_settings
from vbay.contact import contact_all_sellers_link, contact_seller_link
from vbay.errors import AuthError, InvalidTransition, ListingNotFound, NotListingOwner
from vbay.forms import ListingForm, apply_edit, build_listing, load_for_edit
from vbay.log import get_logger, setup_logging
from vbay.marketplace import Marketplace
from vbay.models import ALL, CartOutcome, CartSummary, Category, Condition, SignInRedirect, SortMode, User
from vbay.persistence import Persistence
from vbay.query import query_listings
from vbay.storage import JsonFileStorage

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")


def build_marketplace(settings: Settings) -> Marketplace:
    from scripts.seed_data import seed_listings
    return Marketplace(Persistence(JsonFileStorage(settings.storage_dir), seed_listings))


def _install(app: FastAPI, marketplace: Marketplace, provider: IdentityProvider) -> None:
    settings: Settings = app.state.settings
    app.state.marketplace = marketplace
    app.state.sso = SsoFlow(
        marketplace.session,
        provider,
        service_url=settings.sso_service_url,
        redirect_delay=settings.sso_redirect_delay,
        validation_delay=settings.sso_validation_delay,
    )


def create_app(
    marketplace: Optional[Marketplace] = None,
    settings: Optional[Settings] = None,
    provider: Optional[IdentityProvider] = None,
) -> FastAPI:
    settings = settings or get_settings()
    provider = provider or MockIdentityProvider()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings)
        # load persisted state on startup unless one was injected
        if getattr(app.state, "marketplace", None) is None:
            _install(app, build_marketplace(settings), provider)
        yield

    app = FastAPI(
        title="VBay Marketplace",
        version="1.0.0",
        description="Community buy & sell marketplace for VIMS faculty, staff, and students",
        lifespan=lifespan,
    )
    app.state.settings = settings
    if marketplace is not None:
        _install(app, marketplace, provider)
    app.include_router(router)
    return app


# ── Dependencies ─────────────────────────────────────────────────────────────

def get_marketplace(request: Request) -> Marketplace:
    return request.app.state.marketplace


def get_sso(request: Request) -> SsoFlow:
    return request.app.state.sso


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def require_user(marketplace: Marketplace = Depends(get_marketplace)) -> User:
    user = marketplace.current_user()
    if user is None:
        raise HTTPException(401, "You must be logged in to do that.")
    return user


def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True)


def _with_notices(marketplace: Marketplace, payload: dict) -> dict:
    payload["notices"] = marketplace.drain_notices()
    return payload


def _enum_filter(enum_cls, value: str, name: str):
    if value == ALL:
        return ALL
    try:
        return enum_cls(value)
    except ValueError:
        raise HTTPException(400, f"Unknown {name} '{value}'")


# ── Listings ─────────────────────────────────────────────────────────────────

@router.get("/listings", summary="Search, filter and sort listings")
def list_listings(
    q: str = "",
    category: str = Query(ALL, description="Category name or 'All'"),
    condition: str = Query(ALL, description="Condition or 'All'"),
    sort: SortMode = SortMode.NEWEST,
    marketplace: Marketplace = Depends(get_marketplace),
):
    results = query_listings(
        marketplace.listings.all(),
        text=q,
        category=_enum_filter(Category, category, "category"),
        condition=_enum_filter(Condition, condition, "condition"),
        sort=sort,
    )
    return {"listings": [_dump(l) for l in results], "count": len(results)}


@router.get("/listings/{listing_id}", summary="Get listing details")
def get_listing(listing_id: str, marketplace: Marketplace = Depends(get_marketplace)):
    try:
        return _dump(marketplace.get_listing(listing_id))
    except ListingNotFound as exc:
        raise HTTPException(404, str(exc))


@router.post("/listings", status_code=201, summary="Create a listing")
async def create_listing(
    form: ListingForm,
    user: User = Depends(require_user),
    marketplace: Marketplace = Depends(get_marketplace),
    settings: Settings = Depends(get_app_settings),
):
    await asyncio.sleep(settings.submit_delay)
    listing = build_listing(form, user)
    marketplace.add_listing(listing)
    return _with_notices(marketplace, {"listing": _dump(listing)})


@router.get("/listings/{listing_id}/edit", summary="Load a listing into the edit form")
def edit_listing_form(
    listing_id: str,
    user: User = Depends(require_user),
    marketplace: Marketplace = Depends(get_marketplace),
):
    try:
        listing = load_for_edit(listing_id, marketplace.listings.all(), user)
    except ListingNotFound as exc:
        raise HTTPException(404, str(exc))
    except NotListingOwner as exc:
        raise HTTPException(403, str(exc))
    return {"listing": _dump(listing), "form": _dump(ListingForm.from_listing(listing))}


@router.put("/listings/{listing_id}", summary="Edit one of your listings")
async def update_listing(
    listing_id: str,
    form: ListingForm,
    user: User = Depends(require_user),
    marketplace: Marketplace = Depends(get_marketplace),
    settings: Settings = Depends(get_app_settings),
):
    try:
        existing = load_for_edit(listing_id, marketplace.listings.all(), user)
    except ListingNotFound as exc:
        raise HTTPException(404, str(exc))
    except NotListingOwner as exc:
        raise HTTPException(403, str(exc))

    await asyncio.sleep(settings.submit_delay)
    updated = apply_edit(existing, form)
    marketplace.update_listing(updated)
    return _with_notices(marketplace, {"listing": _dump(updated)})


# ── Session ──────────────────────────────────────────────────────────────────

@router.get("/session", summary="Current user, if any")
def get_session(marketplace: Marketplace = Depends(get_marketplace)):
    user = marketplace.current_user()
    return {"user": _dump(user) if user else None}


@router.delete("/session", summary="Log out and empty the cart")
def logout(marketplace: Marketplace = Depends(get_marketplace)):
    marketplace.logout()
    return _with_notices(marketplace, {"status": "logged_out"})


@router.post("/session/debug", summary="Developers only: log in as the debug user")
def debug_login(
    sso: SsoFlow = Depends(get_sso),
    marketplace: Marketplace = Depends(get_marketplace),
):
    try:
        user = sso.debug_login()
    except InvalidTransition as exc:
        raise HTTPException(409, str(exc))
    return _with_notices(marketplace, {"user": _dump(user)})


@router.post("/auth/sso/start", summary="Begin the (simulated) CAS sign-in")
async def sso_start(sso: SsoFlow = Depends(get_sso)):
    try:
        url = await sso.begin_sign_in()
    except InvalidTransition as exc:
        raise HTTPException(409, str(exc))
    return _dump(SignInRedirect(redirect_url=url))


@router.get("/auth/sso/callback", summary="Validate a CAS ticket and log in")
async def sso_callback(
    ticket: Optional[str] = None,
    sso: SsoFlow = Depends(get_sso),
    marketplace: Marketplace = Depends(get_marketplace),
):
    if not ticket:
        raise HTTPException(400, "Missing ticket")
    try:
        user = await sso.complete_sign_in(ticket)
    except InvalidTransition as exc:
        raise HTTPException(409, str(exc))
    except AuthError as exc:
        raise HTTPException(401, str(exc))
    return _with_notices(marketplace, {"user": _dump(user)})


@router.get("/auth/sso/stage", summary="Current sign-in stage")
def sso_stage(sso: SsoFlow = Depends(get_sso)):
    return {"stage": sso.stage.value}


# ── Cart ─────────────────────────────────────────────────────────────────────

@router.get("/cart", summary="Cart contents and total")
def get_cart(
    user: User = Depends(require_user),
    marketplace: Marketplace = Depends(get_marketplace),
):
    cart = marketplace.cart
    return _dump(CartSummary(items=cart.items(), count=len(cart), total=cart.total()))


@router.get("/cart/contact", summary="mailto link for every seller in the cart")
def contact_all_sellers(
    user: User = Depends(require_user),
    marketplace: Marketplace = Depends(get_marketplace),
):
    link = contact_all_sellers_link(marketplace.cart.items())
    if link is None:
        raise HTTPException(404, "Your cart is empty.")
    return _dump(link)


@router.post("/cart/{listing_id}", summary="Add a listing to the cart")
def add_to_cart(listing_id: str, marketplace: Marketplace = Depends(get_marketplace)):
    try:
        outcome = marketplace.add_to_cart(listing_id)
    except ListingNotFound as exc:
        raise HTTPException(404, str(exc))

    if outcome == CartOutcome.LOGIN_REQUIRED:
        raise HTTPException(401, "You must be logged in to add items to your cart.")

    listing = marketplace.get_listing(listing_id)
    message = (
        "Item is already in your cart!"
        if outcome == CartOutcome.ALREADY_IN_CART
        else f'Added "{listing.title}" to cart!'
    )
    return _with_notices(marketplace, {
        "status": outcome.value,
        "message": message,
        "cartCount": len(marketplace.cart),
    })


@router.delete("/cart/{listing_id}", summary="Remove a listing from the cart")
def remove_from_cart(
    listing_id: str,
    user: User = Depends(require_user),
    marketplace: Marketplace = Depends(get_marketplace),
):
    removed = marketplace.remove_from_cart(listing_id)
    return _with_notices(marketplace, {"removed": removed, "cartCount": len(marketplace.cart)})


@router.get("/cart/{listing_id}/contact", summary="mailto link for one seller")
def contact_seller(
    listing_id: str,
    user: User = Depends(require_user),
    marketplace: Marketplace = Depends(get_marketplace),
):
    item = marketplace.cart.get(listing_id)
    if item is None:
        raise HTTPException(404, f"Listing '{listing_id}' is not in your cart")
    return _dump(contact_seller_link(item, user.name))


# ── Admin ────────────────────────────────────────────────────────────────────

@router.post("/admin/seed", summary="Reset listings to the seed set")
def reseed(marketplace: Marketplace = Depends(get_marketplace)):
    from scripts.seed_data import seed
    seed(marketplace)
    return _with_notices(marketplace, {"status": "seeded", "listings": len(marketplace.listings)})


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
