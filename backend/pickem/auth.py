import time
import jwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import JWT_ALG

bearer = HTTPBearer(auto_error=False)

ROLE_ORDER = {"editor": 1, "admin": 2}

TOKEN_TTL_SECONDS = 60 * 60 * 24 * 30


def create_token(request: Request, role: str) -> str:
    if role not in ROLE_ORDER:
        raise ValueError("invalid role")

    s = request.app.state.settings
    now = int(time.time())
    payload = {"sub": "staff", "role": role, "iat": now, "exp": now + TOKEN_TTL_SECONDS}
    return jwt.encode(payload, s.jwt_secret, algorithm=JWT_ALG)


def role_for_password(request: Request, pw: str) -> str | None:
    s = request.app.state.settings
    if pw == s.admin_password:
        return "admin"
    if pw == s.editor_password:
        return "editor"
    return None


def require_min_role(min_role: str):
    """
    Editors record results; admins may also re-settle and preview compensations.
    """
    min_rank = ROLE_ORDER[min_role]

    def dep(
        request: Request,
        creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    ) -> str:
        if creds is None:
            raise HTTPException(status_code=401, detail="Missing token")

        s = request.app.state.settings
        try:
            payload = jwt.decode(creds.credentials, s.jwt_secret, algorithms=[JWT_ALG])
        except jwt.PyJWTError:
            raise HTTPException(status_code=401, detail="Invalid token")

        role = payload.get("role")
        if role not in ROLE_ORDER or ROLE_ORDER[role] < min_rank:
            raise HTTPException(status_code=403, detail="Insufficient privileges")
        return role

    return dep


require_editor = require_min_role("editor")
require_admin = require_min_role("admin")
