"""FastAPI dependencies."""

from fastapi import Request

from ..context import AppContext


def get_context(request: Request) -> AppContext:
    """Return the application context created at startup."""
    return request.app.state.context
