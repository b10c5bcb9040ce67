"""
One-time passcodes for email verification.
"""

import secrets
from datetime import datetime, timedelta
from typing import Optional, Tuple

from splitapp.app.core.config import settings


def generate_otp() -> Tuple[str, datetime]:
    """Return a numeric code of ``settings.otp_length`` digits and its naive-UTC expiry."""
    low = 10 ** (settings.otp_length - 1)
    code = str(low + secrets.randbelow(9 * low))
    return code, datetime.utcnow() + timedelta(minutes=settings.otp_expire_minutes)


def otp_matches(expected: Optional[str], expires_at: Optional[datetime], supplied: str) -> bool:
    """True if a code is pending, matches, and has not expired."""
    if not expected or expires_at is None:
        return False
    if expires_at < datetime.utcnow():
        return False
    return secrets.compare_digest(expected, supplied.strip())
