"""Rate limiter for the public polling endpoint."""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Keyed by client address; shared by every router that applies a limit
limiter = Limiter(key_func=get_remote_address)
