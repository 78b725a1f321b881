"""FastAPI adapter for the handler strategies."""

from fastapi_handler_scopes.fastapi.app import create_app
from fastapi_handler_scopes.fastapi.router import create_router

__all__ = ["create_app", "create_router"]
