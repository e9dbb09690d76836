from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from student_portal.config.settings import settings
from student_portal.db.db import init_db
from student_portal.middlewares import RequestIDMiddleware
from student_portal.routers import main_router, pages_router
from student_portal.utils.errors import setup_error_handlers
from student_portal.utils.logging import get_logger

logger = get_logger()

CORS_HEADERS = [
    "Content-Type",
    "Authorization",
    "X-Request-ID",
    "Viewport-Width",
    "Sec-CH-Viewport-Width",
]


@asynccontextmanager
async def lifespan(_: FastAPI):
    logger.info(f"{settings.NAME} {settings.VERSION} starting ({settings.ENVIRONMENT})")
    init_db()
    yield
    logger.info(f"{settings.NAME} shutting down")


def _add_middlewares(application: FastAPI) -> None:
    # Added last runs first: request ids are assigned before CORS handling
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_HOSTS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=CORS_HEADERS,
        expose_headers=["X-Request-ID"],
    )
    application.add_middleware(RequestIDMiddleware)


def create_application() -> FastAPI:
    """Build the app: error envelope, middlewares, the two pages and the API."""
    application = FastAPI(
        title=settings.NAME, version=settings.VERSION, lifespan=lifespan
    )

    setup_error_handlers(application)
    _add_middlewares(application)

    application.include_router(pages_router, tags=["Pages"])
    application.include_router(main_router, prefix=settings.API_PREFIX)

    return application


app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "student_portal.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_config=None,
        log_level=None,
    )
