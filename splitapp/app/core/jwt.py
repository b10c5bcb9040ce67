"""
Bearer token helpers.

Tokens are HS256-signed JWTs carrying the user id and a fixed expiry window.
"""

from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from splitapp.app.core.config import settings


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign a bearer token.
    
    Args:
        data: Claims to encode (``sub`` is the username, ``user_id`` the user's id)
        expires_delta: Override for ``settings.access_token_expire_minutes``
        
    Returns:
        Encoded JWT string
    """
    claims = data.copy()
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims["exp"] = datetime.utcnow() + lifetime
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def issue_user_token(user) -> str:
    """Token for an authenticated user row."""
    return create_access_token({"sub": user.username, "user_id": user.id})


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Return the claims of a valid token, or None if the signature or expiry check fails."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
