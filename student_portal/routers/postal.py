from typing import Annotated

from fastapi import APIRouter, Depends, Path, Request

from student_portal.providers.auth_state_provider import get_current_user
from student_portal.providers.postal_lookup_provider import (
    PIN_CODE_LENGTH,
    PostalLookupProvider,
    get_postal_lookup_provider,
)
from student_portal.utils.responses import ResponseBuilder

postal_router = APIRouter(dependencies=[Depends(get_current_user)])


@postal_router.get("/{zip_code}", summary="Preview address autofill for a PIN code")
async def lookup_pin_code(
    request: Request,
    lookup: Annotated[PostalLookupProvider, Depends(get_postal_lookup_provider)],
    zip_code: str = Path(..., description="PIN code"),
):
    """
    City and state for a PIN code, or ``null`` data when nothing matched.

    Lookup failures are not errors: the form simply keeps what the user typed.
    """
    resolved = None
    if len(zip_code) == PIN_CODE_LENGTH:
        resolved = await lookup.resolve(zip_code)

    if resolved is None:
        return ResponseBuilder.success(
            request=request, data=None, message="No address found for this PIN code"
        )

    return ResponseBuilder.success(
        request=request,
        data={"zip": zip_code, "city": resolved.city, "state": resolved.state},
        message="Address resolved",
    )
