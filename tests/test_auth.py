"""
Tests for the simulated CAS sign-in flow.
"""

import asyncio
import random
from urllib.parse import parse_qs, urlparse

import pytest

from vbay.auth import (
    DEBUG_USER,
    SIMULATED_TICKET,
    TRANSITIONS,
    AuthEvent,
    AuthStage,
    IdentityProvider,
    MockIdentityProvider,
    SsoFlow,
    with_ticket,
)
from vbay.errors import AuthError, InvalidTransition
from vbay.session import SessionManager


SERVICE_URL = "http://localhost:8000/api/v1/auth/sso/callback"


class RejectingProvider(IdentityProvider):
    async def validate_ticket(self, ticket):
        raise AuthError(f"Ticket {ticket} rejected")


def make_flow(provider=None, session=None):
    return SsoFlow(
        session or SessionManager(),
        provider or MockIdentityProvider(random.Random(7)),
        service_url=SERVICE_URL,
        redirect_delay=0,
        validation_delay=0,
    )


class TestRedirect:
    def test_begin_returns_service_url_with_ticket(self):
        flow = make_flow()
        url = asyncio.run(flow.begin_sign_in())
        parsed = urlparse(url)
        assert url.startswith(SERVICE_URL)
        assert parse_qs(parsed.query) == {"ticket": [SIMULATED_TICKET]}
        assert flow.stage == AuthStage.IDLE

    def test_stage_is_redirecting_while_waiting(self):
        flow = make_flow()
        flow.redirect_delay = 0.01
        seen = []

        async def run():
            task = asyncio.ensure_future(flow.begin_sign_in())
            await asyncio.sleep(0)
            seen.append(flow.stage)
            await task

        asyncio.run(run())
        assert seen == [AuthStage.REDIRECTING]
        assert flow.stage == AuthStage.IDLE

    def test_with_ticket_keeps_existing_query(self):
        url = with_ticket("http://host/login?next=%2Fcart", "ST-1")
        assert parse_qs(urlparse(url).query) == {"next": ["/cart"], "ticket": ["ST-1"]}


class TestValidation:
    def test_any_ticket_logs_in_a_fabricated_user(self):
        session = SessionManager()
        flow = make_flow(session=session)
        user = asyncio.run(flow.complete_sign_in("anything-at-all"))
        assert session.current_user() == user
        assert user.id.startswith("vims-") and len(user.id) == len("vims-") + 9
        assert user.email == "staff@vims.edu"
        assert flow.stage == AuthStage.IDLE

    def test_new_login_replaces_existing_session(self):
        session = SessionManager(DEBUG_USER)
        asyncio.run(make_flow(session=session).complete_sign_in("ST-1"))
        assert session.current_user() != DEBUG_USER

    def test_rejected_ticket_returns_to_idle_without_login(self):
        session = SessionManager()
        flow = make_flow(provider=RejectingProvider(), session=session)
        with pytest.raises(AuthError):
            asyncio.run(flow.complete_sign_in("ST-bad"))
        assert flow.stage == AuthStage.IDLE
        assert session.current_user() is None


class TestDebugLogin:
    def test_debug_login_uses_constant_user(self):
        session = SessionManager()
        flow = make_flow(session=session)
        assert flow.debug_login() == DEBUG_USER
        assert session.current_user() == DEBUG_USER
        assert flow.stage == AuthStage.IDLE


class TestTransitionTable:
    def test_events_outside_table_are_rejected(self):
        flow = make_flow()
        flow.stage = AuthStage.VALIDATING
        with pytest.raises(InvalidTransition):
            flow.debug_login()
        with pytest.raises(InvalidTransition):
            asyncio.run(flow.begin_sign_in())
        assert flow.stage == AuthStage.VALIDATING

    def test_table_has_no_implicit_exits_from_redirecting(self):
        exits = {event for (stage, event) in TRANSITIONS if stage == AuthStage.REDIRECTING}
        assert exits == {AuthEvent.REDIRECTED}
