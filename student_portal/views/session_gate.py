import asyncio
import enum
from typing import Optional

from student_portal.db.models import User
from student_portal.providers.auth_state_provider import AuthStateProvider, Unsubscribe
from student_portal.utils.logging import get_logger

logger = get_logger()

LOGIN_PATH = "/login"
PROTECTED_PATH = "/"


class GateState(enum.Enum):
    UNKNOWN = "unknown"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


class SessionGate:
    """Guards the protected view behind the auth state stream.

    Use as an async context manager: entering subscribes, leaving always
    unsubscribes, even when the first callback never arrived. The first
    callback settles the state for the rest of the gate's life.

        async with SessionGate(provider) as gate:
            state = await gate.wait_resolved()
    """

    def __init__(self, provider: AuthStateProvider):
        self.provider = provider
        self.state = GateState.UNKNOWN
        self.user: Optional[User] = None
        self._unsubscribe: Optional[Unsubscribe] = None
        self._resolved = asyncio.Event()

    async def __aenter__(self) -> "SessionGate":
        self._unsubscribe = self.provider.on_auth_state_changed(self._on_auth_state)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    @property
    def is_subscribed(self) -> bool:
        return self._unsubscribe is not None

    async def wait_resolved(self) -> GateState:
        await self._resolved.wait()
        return self.state

    def redirect_target(self) -> Optional[str]:
        """Where to send the visitor, or None to render the protected view"""
        if self.state is GateState.UNAUTHENTICATED:
            return LOGIN_PATH
        return None

    def _on_auth_state(self, user: Optional[User]) -> None:
        if self.state is not GateState.UNKNOWN:
            return

        self.user = user
        self.state = GateState.AUTHENTICATED if user else GateState.UNAUTHENTICATED
        logger.debug(f"Session gate resolved to {self.state.value}")
        self._resolved.set()
