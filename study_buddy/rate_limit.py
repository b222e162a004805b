"""Shared slowapi limiter and the per-endpoint limits (separate module avoids circular imports)."""

import os

from slowapi import Limiter
from slowapi.util import get_remote_address

# Upload parsing and outline building
PARSE_LIMIT = "30/minute"
# Anything that calls the generative model
MODEL_LIMIT = "10/minute"
STATUS_LIMIT = "20/minute"

# STUDY_BUDDY_NO_RATE_LIMIT=true turns the limiter off (tests)
_enabled = os.environ.get("STUDY_BUDDY_NO_RATE_LIMIT", "").lower() != "true"

limiter = Limiter(key_func=get_remote_address, enabled=_enabled)
