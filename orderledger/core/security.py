# orderledger/core/security.py
"""
Token handling for the authentication collaborator.

Sessions are issued elsewhere; the ledger only decodes the bearer token and
trusts the tenant id it carries.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
import jwt

from ..config.settings import get_settings
from ..config.logging import get_logger, log_security_event

logger = get_logger(__name__)
settings = get_settings()

ALGORITHM = settings.JWT_ALGORITHM
SECRET_KEY = settings.JWT_SECRET_KEY
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES


@dataclass(frozen=True)
class AuthContext:
    """Identity the ledger scopes every operation by."""
    tenant_id: str
    role: str = "owner"


# JWT Token handling
def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    to_encode = data.copy()
    now = datetime.now(timezone.utc)

    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({
        "exp": expire,
        "iat": now,
        "type": "access"
    })

    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """Verify and decode JWT token."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        log_security_event("TOKEN_EXPIRED", details="JWT token has expired")
        return None
    except jwt.InvalidTokenError as e:
        log_security_event("INVALID_TOKEN", details=f"Invalid JWT token: {str(e)}")
        return None

def resolve_auth_context(token: str) -> Optional[AuthContext]:
    """Map an access token to the tenant it was issued for."""
    payload = verify_token(token)
    if not payload or payload.get("type") != "access":
        return None
    tenant_id = payload.get("sub")
    if not tenant_id:
        return None
    return AuthContext(tenant_id=str(tenant_id), role=payload.get("role", "owner"))
