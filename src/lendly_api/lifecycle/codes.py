"""Exchange code generation and checking."""

import hmac
import re
import secrets
from typing import Optional

from lendly_api.errors import InvalidCode

CODE_MIN = 1000
CODE_MAX = 9999
CODE_PATTERN = re.compile(r"^[0-9]{4}$")


def generate_code() -> str:
    """Draw a 4-digit code in [1000, 9999] from the OS CSPRNG."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


def verify_code(provided: Optional[str], expected: Optional[str], label: str = "handover") -> None:
    """
    Check a caller-supplied code against the stored one.

    The provided value must equal the stored code exactly, surrounding whitespace
    included. Missing, malformed and mismatching codes all raise InvalidCode; the
    comparison is constant time.
    """
    candidate = provided or ""
    if not candidate:
        raise InvalidCode(f"{label.capitalize()} code is required")
    if not CODE_PATTERN.fullmatch(candidate):
        raise InvalidCode(f"{label.capitalize()} code must be 4 digits")
    if not expected or not hmac.compare_digest(candidate, expected):
        raise InvalidCode(f"Invalid {label} code")
