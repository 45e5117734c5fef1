"""
Simulated CAS single sign-on.

The flow is a small state machine. ``begin_sign_in`` stands in for the
redirect to the campus login page; ``complete_sign_in`` stands in for the
service validating the ticket the login page hands back. Ticket validation
is delegated to an ``IdentityProvider`` so a real CAS client can replace
``MockIdentityProvider`` without touching the flow.
"""
import asyncio
import random
import string
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional
from urllib.parse import urlencode, urlsplit, urlunsplit

from vbay.errors import InvalidTransition
from vbay.log import get_logger
from vbay.models import User
from vbay.session import SessionManager

logger = get_logger(__name__)

SIMULATED_TICKET = "ST-SIMULATED-TICKET-12345"

DEBUG_USER = User(
    id="u1",
    name="Dr. Jane Mariner",
    department="Fisheries Science",
    email="jane.m@vims.edu",
)


class IdentityProvider(ABC):
    @abstractmethod
    async def validate_ticket(self, ticket: str) -> User:
        """Exchange a service ticket for a user. Raises AuthError on rejection."""


class MockIdentityProvider(IdentityProvider):
    """Accepts any ticket and fabricates a staff user."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    async def validate_ticket(self, ticket: str) -> User:
        suffix = "".join(self._rng.choices(string.ascii_lowercase + string.digits, k=9))
        return User(
            id=f"vims-{suffix}",
            name="VIMS Staff Member",
            department="Marine Science",
            email="staff@vims.edu",
        )


class AuthStage(str, Enum):
    IDLE = "idle"
    REDIRECTING = "redirecting"
    VALIDATING = "validating"


class AuthEvent(str, Enum):
    BEGIN_REDIRECT = "begin_redirect"
    REDIRECTED = "redirected"
    TICKET_RECEIVED = "ticket_received"
    VALIDATED = "validated"
    REJECTED = "rejected"
    DEBUG_LOGIN = "debug_login"


TRANSITIONS: dict[tuple[AuthStage, AuthEvent], AuthStage] = {
    (AuthStage.IDLE, AuthEvent.BEGIN_REDIRECT): AuthStage.REDIRECTING,
    # the browser reloads on the login page, so page state starts over
    (AuthStage.REDIRECTING, AuthEvent.REDIRECTED): AuthStage.IDLE,
    (AuthStage.IDLE, AuthEvent.TICKET_RECEIVED): AuthStage.VALIDATING,
    (AuthStage.VALIDATING, AuthEvent.VALIDATED): AuthStage.IDLE,
    (AuthStage.VALIDATING, AuthEvent.REJECTED): AuthStage.IDLE,
    (AuthStage.IDLE, AuthEvent.DEBUG_LOGIN): AuthStage.IDLE,
}


def with_ticket(service_url: str, ticket: str) -> str:
    parts = urlsplit(service_url)
    query = f"{parts.query}&" if parts.query else ""
    query += urlencode({"ticket": ticket})
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


class SsoFlow:
    def __init__(
        self,
        session: SessionManager,
        provider: IdentityProvider,
        service_url: str,
        redirect_delay: float = 1.0,
        validation_delay: float = 1.5,
    ) -> None:
        self.session = session
        self.provider = provider
        self.service_url = service_url
        self.redirect_delay = redirect_delay
        self.validation_delay = validation_delay
        self.stage = AuthStage.IDLE

    def _fire(self, event: AuthEvent) -> AuthStage:
        target = TRANSITIONS.get((self.stage, event))
        if target is None:
            raise InvalidTransition(f"Cannot {event.value} while {self.stage.value}")
        logger.debug("SSO %s: %s -> %s", event.value, self.stage.value, target.value)
        self.stage = target
        return target

    async def begin_sign_in(self) -> str:
        """Return the login redirect URL after the simulated hand-off delay."""
        self._fire(AuthEvent.BEGIN_REDIRECT)
        try:
            await asyncio.sleep(self.redirect_delay)
            return with_ticket(self.service_url, SIMULATED_TICKET)
        finally:
            self._fire(AuthEvent.REDIRECTED)

    async def complete_sign_in(self, ticket: str) -> User:
        self._fire(AuthEvent.TICKET_RECEIVED)
        try:
            await asyncio.sleep(self.validation_delay)
            user = await self.provider.validate_ticket(ticket)
        except BaseException:
            self._fire(AuthEvent.REJECTED)
            raise
        self.session.login(user)
        self._fire(AuthEvent.VALIDATED)
        return user

    def debug_login(self) -> User:
        self._fire(AuthEvent.DEBUG_LOGIN)
        self.session.login(DEBUG_USER)
        return DEBUG_USER
