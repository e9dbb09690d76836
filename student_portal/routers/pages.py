from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import RedirectResponse

from student_portal.config.settings import settings
from student_portal.providers.auth_state_provider import (
    AuthStateProvider,
    get_auth_state_provider,
)
from student_portal.providers.postal_lookup_provider import (
    PostalLookupProvider,
    get_postal_lookup_provider,
)
from student_portal.services.student_repository import (
    StudentRepository,
    get_student_repository,
)
from student_portal.utils.notifications import Notifier, get_notifier
from student_portal.utils.responses import ResponseBuilder
from student_portal.views.session_gate import LOGIN_PATH, PROTECTED_PATH, SessionGate
from student_portal.views.student_list import StudentListView

pages_router = APIRouter()

VIEWPORT_HEADERS = ("Viewport-Width", "Sec-CH-Viewport-Width")


def get_viewport_width(
    request: Request,
    viewport_width: Optional[int] = Query(None, ge=0, description="Client viewport width in px"),
) -> Optional[int]:
    """Viewport width from the query string or a client hint header"""
    if viewport_width is not None:
        return viewport_width
    for header in VIEWPORT_HEADERS:
        value = request.headers.get(header)
        if value and value.isdigit():
            return int(value)
    return None


@pages_router.get(PROTECTED_PATH)
async def students_page(
    request: Request,
    provider: Annotated[AuthStateProvider, Depends(get_auth_state_provider)],
    repository: Annotated[StudentRepository, Depends(get_student_repository)],
    lookup: Annotated[PostalLookupProvider, Depends(get_postal_lookup_provider)],
    notifier: Annotated[Notifier, Depends(get_notifier)],
    viewport_width: Annotated[Optional[int], Depends(get_viewport_width)],
):
    """The protected student list; visitors without a session go to the login view"""
    async with SessionGate(provider) as gate:
        await gate.wait_resolved()

    target = gate.redirect_target()
    if target is not None:
        return RedirectResponse(target, status_code=status.HTTP_307_TEMPORARY_REDIRECT)

    list_view = StudentListView(repository, notifier, lookup=lookup)
    await list_view.mount()

    return ResponseBuilder.success(
        request=request,
        data={
            "view": "students",
            "user": {"email": gate.user.email, "displayName": gate.user.display_name},
            "students": list_view.render(viewport_width),
        },
        message="Students",
        notifications=notifier.dump(),
    )


@pages_router.get(LOGIN_PATH)
async def login_page(request: Request):
    """Describes the login form; the form posts to the auth API"""
    return ResponseBuilder.success(
        request=request,
        data={
            "view": "login",
            "title": "Welcome Back",
            "fields": [
                {"name": "email", "label": "Email", "type": "email", "required": True},
                {"name": "password", "label": "Password", "type": "password", "required": True},
            ],
            "submit": f"{settings.API_PREFIX}/auth/login",
            "redirectTo": PROTECTED_PATH,
        },
        message="Login",
    )
