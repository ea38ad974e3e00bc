"""
api/limiter.py -- Shared slowapi rate limiter instance.

api/main.py attaches it to app.state; api/routes/auth.py applies the login
limit with @limiter.limit(). One shared instance means one counter store --
separate instances would each count on their own and never trip.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")
