# app/middleware/rate_limiting.py - Shared slowapi limiter
from fastapi import FastAPI
from slowapi import Limiter
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from loguru import logger

from app.core.config import settings

# One limiter for the whole app; endpoint decorators and the middleware share its storage
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.DEFAULT_RATE_LIMIT],
    enabled=settings.RATE_LIMIT_ENABLED,
    headers_enabled=False
)


def setup_rate_limiting(app: FastAPI) -> None:
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    logger.info(
        f"Rate limiting {'enabled' if settings.RATE_LIMIT_ENABLED else 'disabled'} "
        f"(default {settings.DEFAULT_RATE_LIMIT}, login {settings.LOGIN_RATE_LIMIT})"
    )
