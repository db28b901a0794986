from typing import Optional
import logging
import time
from fastapi import Request, Response
from models.errors import FrontError
from repository import admin as admin_repo
from utils.settings import get_settings, mask_secret

logger = logging.getLogger(__name__)


class AdminTokenStore:
    """The admin token in the browser's storage slot.

    Read at page load, written after a remembered login, cleared on logout and
    on any failed verification. The backend checks the token again on every
    privileged call, so this store is advisory only.
    """

    def __init__(self, request: Request):
        self.request = request
        self.name = get_settings().admin_token_cookie

    def read(self) -> Optional[str]:
        token = self.request.cookies.get(self.name)
        if token:
            return token
        authorization = self.request.headers.get("authorization", "")
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials:
            return credentials
        return None

    def write(self, response: Response, token: str):
        response.set_cookie(self.name, token, httponly=True, samesite="lax", max_age=60 * 60 * 24 * 30)

    def clear(self, response: Response):
        response.delete_cookie(self.name)


def fallback_token() -> str:
    return f"authenticated_{int(time.time() * 1000)}"


async def verify_token(token: Optional[str]) -> bool:
    """True only when the backend confirms the token; any failure counts as invalid."""
    if not token:
        return False
    try:
        verification = await admin_repo.verify_admin_token(token)
    except FrontError as e:
        logger.error("Error verifying token %s: %s", mask_secret(token), e.message)
        return False
    return verification.valid
