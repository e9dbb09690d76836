from typing import Optional, Tuple
from datetime import datetime

from fastapi import Depends
from sqlalchemy.orm import Session
from sqlalchemy import select

from student_portal.db.models import User
from student_portal.db.session import get_sync_session
from student_portal.utils.auth import AuthUtils
from student_portal.utils.errors import AuthenticationError
from student_portal.utils.logging import get_logger

logger = get_logger()

LOGIN_FAILED_MESSAGE = "Login failed. Please check your credentials."


class AuthService:
    """Email/password accounts backed by the users table"""

    def __init__(self, db_session: Session):
        self.db = db_session

    async def create_user(
        self, email: str, password: str, display_name: str = ""
    ) -> User:
        user = User(
            email=email.strip().lower(),
            display_name=display_name,
            password_hash=AuthUtils.hash_password(password),
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Created user account {user.email}")
        return user

    async def get_user_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == email.strip().lower())
        return self.db.execute(stmt).scalar_one_or_none()

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """Return the active user whose password matches, else None"""
        user = await self.get_user_by_email(email)
        if not user or not user.is_active:
            return None

        if not AuthUtils.verify_password(password, user.password_hash):
            return None

        return user

    async def login_user(self, email: str, password: str) -> Tuple[str, User]:
        """Login user and issue a fresh access token"""
        user = await self.authenticate_user(email, password)
        if not user:
            logger.warning(f"Failed login attempt for {email}")
            raise AuthenticationError(LOGIN_FAILED_MESSAGE, "INVALID_CREDENTIALS")

        # New session invalidates tokens issued for earlier ones
        user.access_token_version += 1
        user.last_login = datetime.now()
        self.db.commit()

        token = AuthUtils.generate_access_token(
            user_id=str(user.id),
            email=user.email,
            token_version=user.access_token_version,
        )
        logger.info(f"User {user.email} signed in")
        return token, user

    async def logout_user(self, user_id: str) -> bool:
        """Invalidate every outstanding token for the user"""
        user = await self.get_user_by_id(user_id)
        if not user:
            return False

        user.access_token_version += 1
        self.db.commit()
        logger.info(f"User {user.email} signed out")
        return True

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        stmt = select(User).where(User.id == user_id, User.is_active == True)  # noqa: E712
        return self.db.execute(stmt).scalar_one_or_none()

    async def get_user_for_token(self, token: Optional[str]) -> Optional[User]:
        """Resolve a bearer/cookie token to its user, or None if it is stale"""
        if not token:
            return None

        payload = AuthUtils.verify_access_token(token)
        if not payload or not payload.get("sub"):
            return None

        user = await self.get_user_by_id(str(payload["sub"]))
        if not user or user.access_token_version != payload.get("token_version", 0):
            return None
        return user


def get_auth_service(db: Session = Depends(get_sync_session)) -> AuthService:
    return AuthService(db)
