from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.core.config import settings
from app.core.security import decode_jwt
from app.services.lawyer_resolver import LAWYER_ROLES

bearer = HTTPBearer(auto_error=False)

ROLE_ADMIN = "admin"

def get_current_user(creds: HTTPAuthorizationCredentials = Depends(bearer)) -> dict:
    if not creds:
        raise HTTPException(status_code=401, detail="Missing authorization token")
    try:
        payload = decode_jwt(creds.credentials, settings.JWT_SECRET)
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid token")
    if not str(payload.get("sub") or "").strip():
        raise HTTPException(status_code=401, detail="Invalid token")
    return payload

def user_role(user: dict) -> str:
    return str(user.get("role") or "").strip().lower()

def is_admin(user: dict) -> bool:
    return user_role(user) == ROLE_ADMIN

def is_lawyer_user(user: dict) -> bool:
    return user_role(user) in LAWYER_ROLES

