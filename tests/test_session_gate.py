import asyncio

import pytest
from sqlalchemy.orm import Session

from student_portal.db.models import User
from student_portal.providers.auth_state_provider import AuthStateProvider
from student_portal.services.auth_service import AuthService
from student_portal.utils.errors import AuthenticationError
from student_portal.views.session_gate import GateState, LOGIN_PATH, SessionGate

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD


class TestAuthStateProvider:
    """Test the sign-in state stream."""

    @pytest.mark.asyncio
    async def test_subscriber_gets_current_state_asynchronously(self, db_session: Session):
        provider = AuthStateProvider(AuthService(db_session))
        seen = []

        unsubscribe = provider.on_auth_state_changed(seen.append)
        assert seen == []

        await asyncio.sleep(0)
        assert seen == [None]
        unsubscribe()

    @pytest.mark.asyncio
    async def test_unsubscribe_before_delivery_cancels_callback(self, db_session: Session):
        provider = AuthStateProvider(AuthService(db_session))
        seen = []

        unsubscribe = provider.on_auth_state_changed(seen.append)
        unsubscribe()
        await asyncio.sleep(0)

        assert seen == []
        assert provider.listener_count == 0

    @pytest.mark.asyncio
    async def test_sign_in_and_out_are_broadcast(self, db_session: Session, admin_user: User):
        provider = AuthStateProvider(AuthService(db_session))
        seen = []
        unsubscribe = provider.on_auth_state_changed(seen.append)
        await asyncio.sleep(0)

        token = await provider.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)
        await provider.sign_out()
        unsubscribe()

        assert token
        assert seen == [None, admin_user, None]

    @pytest.mark.asyncio
    async def test_sign_out_invalidates_issued_token(self, db_session: Session, admin_user: User):
        service = AuthService(db_session)
        provider = AuthStateProvider(service)

        token = await provider.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)
        assert await service.get_user_for_token(token) == admin_user

        await provider.sign_out()
        assert await service.get_user_for_token(token) is None

    @pytest.mark.asyncio
    async def test_bad_password_raises(self, db_session: Session, admin_user: User):
        provider = AuthStateProvider(AuthService(db_session))

        with pytest.raises(AuthenticationError) as exc_info:
            await provider.sign_in(ADMIN_EMAIL, "wrong")

        assert exc_info.value.message == "Login failed. Please check your credentials."
        assert provider.current_user is None


class TestSessionGate:
    """Test gating of the protected view."""

    @pytest.mark.asyncio
    async def test_starts_unknown_and_resolves_unauthenticated(self, db_session: Session):
        provider = AuthStateProvider(AuthService(db_session))

        async with SessionGate(provider) as gate:
            assert gate.state is GateState.UNKNOWN
            assert gate.is_subscribed
            assert await gate.wait_resolved() is GateState.UNAUTHENTICATED

        assert gate.redirect_target() == LOGIN_PATH
        assert not gate.is_subscribed
        assert provider.listener_count == 0

    @pytest.mark.asyncio
    async def test_resolves_authenticated_for_signed_in_user(
        self, db_session: Session, admin_user: User
    ):
        provider = AuthStateProvider(AuthService(db_session), current_user=admin_user)

        async with SessionGate(provider) as gate:
            assert await gate.wait_resolved() is GateState.AUTHENTICATED

        assert gate.user == admin_user
        assert gate.redirect_target() is None

    @pytest.mark.asyncio
    async def test_leaving_before_first_callback_unsubscribes(self, db_session: Session):
        provider = AuthStateProvider(AuthService(db_session))

        async with SessionGate(provider) as gate:
            pass
        await asyncio.sleep(0)

        assert gate.state is GateState.UNKNOWN
        assert provider.listener_count == 0

    @pytest.mark.asyncio
    async def test_later_changes_do_not_flip_the_gate(
        self, db_session: Session, admin_user: User
    ):
        provider = AuthStateProvider(AuthService(db_session))

        async with SessionGate(provider) as gate:
            await gate.wait_resolved()
            await provider.sign_in(ADMIN_EMAIL, ADMIN_PASSWORD)

            assert gate.state is GateState.UNAUTHENTICATED

    @pytest.mark.asyncio
    async def test_exception_inside_gate_still_unsubscribes(self, db_session: Session):
        provider = AuthStateProvider(AuthService(db_session))

        with pytest.raises(RuntimeError):
            async with SessionGate(provider):
                raise RuntimeError("render failed")

        assert provider.listener_count == 0
