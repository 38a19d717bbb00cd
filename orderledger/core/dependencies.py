# orderledger/core/dependencies.py
from fastapi import Depends, Query
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional

from ..config.settings import get_settings
from ..config.logging import get_logger
from .exceptions import UnauthorizedError
from .security import AuthContext, resolve_auth_context

logger = get_logger(__name__)
settings = get_settings()
security = HTTPBearer(auto_error=False)

# Authentication dependencies
def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> AuthContext:
    """Resolve the calling tenant from the bearer token."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError()

    context = resolve_auth_context(credentials.credentials)
    if context is None:
        raise UnauthorizedError("Invalid or expired session")
    return context

# Pagination dependency
class PaginationParams:
    def __init__(
        self,
        page: int = Query(1, description="Page number"),
        page_size: int = Query(settings.DEFAULT_PAGE_SIZE, description="Page size"),
    ):
        # Out-of-range values are clamped rather than rejected
        self.page = max(page, 1)
        self.page_size = max(min(page_size, settings.MAX_PAGE_SIZE), 1)
