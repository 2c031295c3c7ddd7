"""Shared rate limiter instance for use across route files."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from gamespace.core.config import settings

# Front-desk terminals share one IP, so limits are per client address and
# generous enough for a busy evening.
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
