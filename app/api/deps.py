"""
Request identity dependencies

Access tokens are issued by the identity service and arrive in the
`accessToken` cookie or an `Authorization: Bearer` header.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Request
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.models import User
from app.services.watch_progress_service import Viewer

logger = logging.getLogger(__name__)


def create_access_token(user_id: str, expires_in: timedelta = timedelta(days=1)) -> str:
    """Mint a token the way the identity service does (tooling and tests)"""
    payload = {
        "userId": user_id,
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def extract_token(request: Request) -> Optional[str]:
    token = request.cookies.get(settings.ACCESS_TOKEN_COOKIE)
    if token:
        return token

    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials
    return None


def decode_user_id(token: str) -> Optional[str]:
    """Return the userId claim, or None if the token is invalid"""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.debug(f"Rejected access token: {str(e)}")
        return None
    return payload.get("userId")


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    token = extract_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Authentication required")

    user_id = decode_user_id(token)
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token")

    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    request.state.user_id = user.id
    return user


def get_viewer(user: User = Depends(get_current_user)) -> Viewer:
    """The profile check itself happens in the tracker, before any write"""
    return Viewer(user_id=user.id, profile_id=user.active_profile_id)
