from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from app.core.logger import get_logger

logger = get_logger("actor_context_middleware")

ACTOR_HEADER = "X-Actor"
DEFAULT_ACTOR = "system"
MAX_ACTOR_LENGTH = 255


class ActorContextMiddleware(BaseHTTPMiddleware):
    """
    Records which operator performed a request (used for completed_by fields).
    Identity is asserted by the dashboard, not verified here.
    """

    async def dispatch(self, request: Request, call_next):
        actor = (request.headers.get(ACTOR_HEADER) or "").strip()
        request.state.actor = actor[:MAX_ACTOR_LENGTH] if actor else DEFAULT_ACTOR
        return await call_next(request)


def get_actor(request: Request) -> str:
    """Dependency returning the acting operator for the current request."""
    return getattr(request.state, "actor", DEFAULT_ACTOR)
