"""
Tests for the auth event bus and session context.
"""

import pytest
from fastapi.security import HTTPAuthorizationCredentials

from cooperloc.api.deps import get_optional_session
from cooperloc.core.access import LOGIN_PAGE, UNAUTHORIZED_PAGE
from cooperloc.core.capabilities import Action
from cooperloc.core.exceptions import AccessRedirectError
from cooperloc.core.session import AuthEvent, AuthEventBus, SessionContext
from cooperloc.models import AuthUser, Profile, UserRole


class TestAuthEventBus:
    """Tests for AuthEventBus."""

    async def test_publish_and_unsubscribe(self):
        bus = AuthEventBus()
        received = []

        async def listener(event, user_id):
            received.append((event, user_id))

        subscription = bus.subscribe(listener)
        await bus.publish(AuthEvent.SIGNED_IN, "u1")
        subscription.unsubscribe()
        subscription.unsubscribe()
        await bus.publish(AuthEvent.SIGNED_OUT, "u1")

        assert received == [(AuthEvent.SIGNED_IN, "u1")]
        assert bus.listener_count == 0

    async def test_failing_listener_does_not_stop_others(self):
        bus = AuthEventBus()
        received = []

        async def broken(event, user_id):
            raise RuntimeError("boom")

        async def listener(event, user_id):
            received.append(event)

        bus.subscribe(broken)
        bus.subscribe(listener)
        await bus.publish(AuthEvent.USER_UPDATED, "u1")

        assert received == [AuthEvent.USER_UPDATED]


class TestSessionContext:
    """Tests for SessionContext."""

    async def test_anonymous(self, db, events):
        async with SessionContext(db, events, None) as session:
            assert not session.is_authenticated
            assert session.role is None
            assert not session.can(Action.VIEW_DASHBOARD)
            with pytest.raises(AccessRedirectError) as exc:
                session.require(Action.VIEW_DASHBOARD)
            assert exc.value.redirect_to == LOGIN_PAGE
        assert events.listener_count == 0

    async def test_loads_profile(self, db, events, make_user, make_franchise):
        franchise = await make_franchise()
        user = await make_user(UserRole.FRANQUEADO, franchise_id=franchise.id)

        async with SessionContext(db, events, user["id"]) as session:
            assert session.is_authenticated
            assert events.listener_count == 1
            assert session.role == UserRole.FRANQUEADO
            assert session.status == "active"
            assert session.franchise_id == franchise.id
            assert session.can(Action.INSTALL_TRACKER)
            session.require(Action.VIEW_OWN_TRACKERS)
        assert events.listener_count == 0

    async def test_reloads_on_user_updated(self, db, events, session_for, make_user, session_factory):
        """Test a role change made elsewhere is picked up on USER_UPDATED."""
        user = await make_user(UserRole.FRANQUEADO)
        session = await session_for(user["id"])
        assert not session.can(Action.SEND_TRACKER)

        async with session_factory() as other:
            profile = await other.get(Profile, user["id"])
            profile.role = UserRole.MATRIZ.value
            await other.commit()

        await events.publish(AuthEvent.USER_UPDATED, "someone-else")
        assert session.role == UserRole.FRANQUEADO

        await events.publish(AuthEvent.USER_UPDATED, user["id"])
        assert session.role == UserRole.MATRIZ
        assert session.can(Action.SEND_TRACKER)

    async def test_signed_out_clears_session(self, events, session_for, make_user):
        user = await make_user()
        session = await session_for(user["id"])

        await events.publish(AuthEvent.SIGNED_OUT, user["id"])
        assert not session.is_authenticated
        assert session.profile is None

    async def test_missing_profile(self, db, events, session_factory):
        """Test an auth user without profile is sent to the unauthorized page."""
        async with session_factory() as other:
            user = AuthUser(email="semperfil@cooperloc.com.br", hashed_password="x")
            other.add(user)
            await other.commit()

        async with SessionContext(db, events, user.id) as session:
            assert session.is_authenticated
            with pytest.raises(AccessRedirectError) as exc:
                session.require(Action.VIEW_DASHBOARD)
            assert exc.value.redirect_to == UNAUTHORIZED_PAGE


class TestRequestSession:
    """Tests for the per-request session dependency."""

    async def test_revoked_token_stays_anonymous(self, db, events, make_user, session_factory):
        """Test a token older than the last sign-out is not revived by auth events."""
        user = await make_user(UserRole.ADMIN)
        async with session_factory() as other:
            auth_user = await other.get(AuthUser, user["id"])
            auth_user.session_version += 1
            await other.commit()

        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=user["token"])
        sessions = get_optional_session(credentials, db, events)
        session = await sessions.__anext__()
        assert not session.is_authenticated

        await events.publish(AuthEvent.USER_UPDATED, user["id"])
        await events.publish(AuthEvent.SIGNED_IN, user["id"])
        assert not session.is_authenticated
        assert session.profile is None

        await sessions.aclose()
        assert events.listener_count == 0

    async def test_current_token(self, db, events, make_user):
        user = await make_user(UserRole.MATRIZ)
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=user["token"])
        sessions = get_optional_session(credentials, db, events)
        session = await sessions.__anext__()

        assert session.is_authenticated
        assert session.role == UserRole.MATRIZ
        await sessions.aclose()
