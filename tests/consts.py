"""Constant values used for tests."""

from pathlib import Path

THIS_DIR = Path(__file__).parent
PROJECT_DIR = (THIS_DIR / "../").resolve()

# Base path for all API routes; must match main.py include_router(..., prefix="/api")
API_BASE = "/api"

# Users; each token below resolves to the user id with the same suffix
OWNER_ID = "U1"
REQUESTER_ID = "U2"
OTHER_REQUESTER_ID = "U3"
OTHER_OWNER_ID = "U4"
STRANGER_ID = "U9"

TOKENS = {
    "token-u1": OWNER_ID,
    "token-u2": REQUESTER_ID,
    "token-u3": OTHER_REQUESTER_ID,
    "token-u4": OTHER_OWNER_ID,
    "token-u9": STRANGER_ID,
}
