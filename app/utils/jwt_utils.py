import logging
from jose import jwt
from jose.exceptions import JWTError, ExpiredSignatureError
from datetime import datetime, timedelta, timezone
from typing import Optional
import bcrypt
from fastapi import HTTPException, status, Depends, Cookie
from fastapi.security import OAuth2PasswordBearer

from db.repositories import UserRepository, get_user_repository
from models.user import AuthenticatedUser, Role
from services.exceptions import InvalidObjectIdError
from utils.config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES

logger = logging.getLogger(__name__)

# auto_error=False so the cookie can be used when no Authorization header is sent
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/users/token", auto_error=False)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))


def create_access_token(user_id: str, email: str, role: str = Role.TENANT.value, expires_delta: Optional[timedelta] = None) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    payload = {
        "sub": email,
        "id": user_id,
        "role": role,
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired")
    except JWTError:
        raise HTTPException(status_code=401, detail="Could not validate credentials")

    if payload.get("id") is None or payload.get("sub") is None:
        raise HTTPException(status_code=401, detail="Could not validate credentials")
    return payload


# Dependency: Authorization header first, then the access_token cookie
def get_current_user(
    bearer_token: Optional[str] = Depends(oauth2_scheme),
    access_token: Optional[str] = Cookie(None),
    users: UserRepository = Depends(get_user_repository),
) -> AuthenticatedUser:
    token = bearer_token or access_token
    if not token:
        raise HTTPException(status_code=401, detail="No authentication token provided")

    payload = decode_access_token(token)
    try:
        user_doc = users.find_by_id(payload["id"])
    except InvalidObjectIdError:
        raise HTTPException(status_code=401, detail="Could not validate credentials")

    if not user_doc:
        logger.info("Token presented for unknown user %s", payload["id"])
        raise HTTPException(status_code=401, detail="User not found")

    if user_doc.get("isBanned"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "Account has been banned", "reason": user_doc.get("banReason")},
        )

    return AuthenticatedUser(
        id=str(user_doc["_id"]),
        email=user_doc["email"],
        name=user_doc.get("name"),
        role=user_doc.get("role", Role.TENANT.value),
    )


def require_admin(current_user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
    if current_user.role != Role.ADMIN.value:
        raise HTTPException(status_code=403, detail="Access denied. Admin role required.")
    return current_user
