import uuid
from typing import Any, Dict, List, Optional
from fastapi import status, Request
from fastapi.responses import JSONResponse
from student_portal.schemas.response_schemas import ApiResponse, ResponseStatus

Notifications = Optional[List[Dict[str, Any]]]


class ResponseBuilder:
    """Builds the JSON envelope every route and error handler returns"""

    @staticmethod
    def success(
        request: Request,
        data: Any = None,
        message: str = "Request successful",
        meta: Optional[Dict[str, Any]] = None,
        notifications: Notifications = None,
        status_code: int = status.HTTP_200_OK,
    ) -> JSONResponse:
        return ResponseBuilder._build(
            request,
            status_code,
            success=True,
            status=ResponseStatus.SUCCESS,
            message=message,
            data=data,
            meta=meta,
            notifications=notifications,
        )

    @staticmethod
    def error(
        request: Request,
        message: str = "An error occurred",
        errors: Optional[List[Dict[str, Any]]] = None,
        error_code: Optional[str] = None,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        data: Any = None,
        meta: Optional[Dict[str, Any]] = None,
        notifications: Notifications = None,
    ) -> JSONResponse:
        """``error_code`` is reported under ``meta.error_code``"""
        meta = dict(meta or {})
        if error_code:
            meta["error_code"] = error_code

        return ResponseBuilder._build(
            request,
            status_code,
            success=False,
            status=ResponseStatus.ERROR,
            message=message,
            data=data,
            meta=meta or None,
            errors=errors,
            notifications=notifications,
        )

    @staticmethod
    def _build(request: Request, status_code: int, **fields: Any) -> JSONResponse:
        # Empty notification lists are left out of the body
        fields["notifications"] = fields.get("notifications") or None
        response = ApiResponse(
            **fields,
            request_id=getattr(request.state, "request_id", None) or str(uuid.uuid4()),
            path=request.url.path,
        )
        return JSONResponse(
            status_code=status_code,
            content=response.model_dump(by_alias=True, exclude_none=True),
        )
