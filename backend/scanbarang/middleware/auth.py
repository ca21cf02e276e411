"""
Scan Barang Backend — Bearer Token Authentication
===================================================

What:  FastAPI dependency resolving `Authorization: Bearer <token>` to the
       caller's owner key.
How:   HTTPBearer(auto_error=False) extracts the token; the identity provider
       verifies it. Handlers receive the owner key as a plain parameter and
       pass it explicitly to the services.

Responses:
    no header / empty / not a bearer token → 401 (UnauthenticatedError)
    token rejected by the provider         → 403 (InvalidTokenError)

Usage:
    @router.get("")
    async def list_items(owner_key: str = Depends(require_owner_key), ...):
        ...
"""

import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from scanbarang.exceptions import UnauthenticatedError
from scanbarang.services.identity_service import identity_service

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False, description="Identity provider id token")


async def require_owner_key(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    if credentials is None or not credentials.credentials.strip():
        raise UnauthenticatedError()

    owner_key = await identity_service.verify_token(credentials.credentials.strip())
    logger.debug("Authenticated owner_key=%s", owner_key)
    return owner_key
