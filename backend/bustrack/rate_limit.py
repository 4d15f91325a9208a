"""Rate limiting global / Global rate limiter.

Utilise slowapi pour limiter les requetes par IP.
Limite par defaut appliquee par SlowAPIMiddleware / Default limit applied by SlowAPIMiddleware.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from bustrack.config import settings

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.RATE_LIMIT_DEFAULT])
