from __future__ import annotations

import hmac
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import Settings, get_settings


security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    key_fingerprint: str


def _verify_key(token: str, settings: Settings) -> bool:
    expected = settings.secrets.api_key.encode("utf-8")
    return hmac.compare_digest(token.encode("utf-8"), expected)


async def get_auth_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_settings),
) -> AuthContext:
    if not credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="missing_authorization")

    if not _verify_key(credentials.credentials, settings):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")

    context = AuthContext(key_fingerprint=credentials.credentials[-4:])
    request.state.auth = context
    return context


__all__ = ["AuthContext", "get_auth_context"]
