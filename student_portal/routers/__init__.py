from .main import main_router
from .pages import pages_router

__all__ = ["main_router", "pages_router"]
