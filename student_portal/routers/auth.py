from typing import Annotated
from fastapi import APIRouter, Depends, Request

from student_portal.db.models import User
from student_portal.providers.auth_state_provider import (
    AuthStateProvider,
    get_auth_state_provider,
    get_current_user,
)
from student_portal.schemas.auth_schemas import LoginRequest, UserResponse
from student_portal.utils.cookies import CookieUtils
from student_portal.utils.errors import AuthenticationError
from student_portal.utils.notifications import Notifier, get_notifier
from student_portal.utils.responses import ResponseBuilder

auth_router = APIRouter()


def _user_data(user: User) -> dict:
    return UserResponse.model_validate(user).model_dump(by_alias=True)


@auth_router.post("/login")
async def login(
    login_request: LoginRequest,
    request: Request,
    provider: Annotated[AuthStateProvider, Depends(get_auth_state_provider)],
    notifier: Annotated[Notifier, Depends(get_notifier)],
):
    """
    Sign in with email and password.

    Sets an HTTP-only cookie carrying the access token; the token is also
    returned so non-browser clients can send it as a Bearer header.
    """
    try:
        access_token = await provider.sign_in(login_request.email, login_request.password)
    except AuthenticationError as e:
        notifier.error(e.message)
        raise

    notifier.success("Successfully logged in!")
    response = ResponseBuilder.success(
        request=request,
        data={"user": _user_data(provider.current_user), "accessToken": access_token},
        message="Login successful",
        meta={"redirect_to": "/"},
        notifications=notifier.dump(),
    )
    CookieUtils.set_auth_cookie(response, access_token)
    return response


@auth_router.post("/logout")
async def logout(
    request: Request,
    _: Annotated[User, Depends(get_current_user)],
    provider: Annotated[AuthStateProvider, Depends(get_auth_state_provider)],
    notifier: Annotated[Notifier, Depends(get_notifier)],
):
    """Sign out and invalidate every token issued to this user"""
    await provider.sign_out()
    notifier.success("Logged out successfully")

    response = ResponseBuilder.success(
        request=request,
        message="Logout successful",
        meta={"redirect_to": "/login"},
        notifications=notifier.dump(),
    )
    CookieUtils.clear_auth_cookie(response)
    return response


@auth_router.get("/me")
async def get_current_user_info(
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Get current authenticated user information"""
    return ResponseBuilder.success(
        request=request,
        data=_user_data(current_user),
        message="User information retrieved",
    )
