import asyncio
import itertools
from typing import Callable, Dict, Optional

from fastapi import Depends, Request

from student_portal.db.models import User
from student_portal.services.auth_service import AuthService, get_auth_service
from student_portal.utils.context import set_user_email
from student_portal.utils.cookies import ACCESS_TOKEN_COOKIE, CookieUtils
from student_portal.utils.errors import AuthenticationError
from student_portal.utils.logging import get_logger

logger = get_logger()

AuthStateListener = Callable[[Optional[User]], None]
Unsubscribe = Callable[[], None]


class AuthStateProvider:
    """Sign-in state with a change stream.

    Subscribers are called once, asynchronously, with the current user (or
    ``None``) right after subscribing, and again after every sign in or sign
    out until they unsubscribe.
    """

    def __init__(self, auth_service: AuthService, current_user: Optional[User] = None):
        self.auth_service = auth_service
        self.current_user = current_user
        self._listeners: Dict[int, AuthStateListener] = {}
        self._pending: Dict[int, asyncio.Handle] = {}
        self._ids = itertools.count()

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def on_auth_state_changed(self, callback: AuthStateListener) -> Unsubscribe:
        listener_id = next(self._ids)
        self._listeners[listener_id] = callback
        self._pending[listener_id] = asyncio.get_running_loop().call_soon(
            self._deliver_initial, listener_id
        )

        def unsubscribe() -> None:
            self._listeners.pop(listener_id, None)
            handle = self._pending.pop(listener_id, None)
            if handle is not None:
                handle.cancel()

        return unsubscribe

    async def sign_in(self, email: str, password: str) -> str:
        """Sign in and return the new access token; raises AuthenticationError"""
        token, user = await self.auth_service.login_user(email, password)
        self.current_user = user
        self._emit()
        return token

    async def sign_out(self) -> None:
        if self.current_user is not None:
            await self.auth_service.logout_user(self.current_user.id)
        self.current_user = None
        self._emit()

    def _deliver_initial(self, listener_id: int) -> None:
        self._pending.pop(listener_id, None)
        callback = self._listeners.get(listener_id)
        if callback is not None:
            callback(self.current_user)

    def _emit(self) -> None:
        for listener_id, callback in list(self._listeners.items()):
            # A real change supersedes the initial notification
            handle = self._pending.pop(listener_id, None)
            if handle is not None:
                handle.cancel()
            callback(self.current_user)


async def get_auth_state_provider(
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthStateProvider:
    """Build the provider for this request from the cookie or bearer token"""
    token = CookieUtils.extract_bearer_token(
        request.headers.get("authorization")
    ) or request.cookies.get(ACCESS_TOKEN_COOKIE)

    user = await auth_service.get_user_for_token(token)
    if token and user is None:
        logger.debug("Ignoring stale or invalid access token")

    set_user_email(user.email if user else None)
    return AuthStateProvider(auth_service, user)


def get_current_user(
    provider: AuthStateProvider = Depends(get_auth_state_provider),
) -> User:
    """Dependency for routes that require a signed-in user"""
    if provider.current_user is None:
        raise AuthenticationError("Not authenticated", "NOT_AUTHENTICATED")
    return provider.current_user
