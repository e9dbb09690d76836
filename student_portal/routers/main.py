from fastapi import APIRouter

from .auth import auth_router
from .health import health_router
from .postal import postal_router
from .students import students_router

main_router = APIRouter()

main_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])
main_router.include_router(students_router, prefix="/students", tags=["Students"])
main_router.include_router(postal_router, prefix="/postal", tags=["Postal Lookup"])
main_router.include_router(health_router, prefix="/health", tags=["Health Checks"])
