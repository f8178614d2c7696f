import jwt
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional
from .config import settings


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DATETIME column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# =========================
# Identifiers
# =========================
def new_image_id() -> str:
    return str(uuid.uuid4())

def new_folder_id() -> str:
    return f"folder-{uuid.uuid4()}"

def new_share_id() -> str:
    """Unguessable share token; carries no owner or content information."""
    return secrets.token_urlsafe(16)


# =========================
# JWT Token Handling
# =========================
def create_jwt_token(data: dict, expires_minutes: Optional[int] = None):
    """Create JWT access token with expiration"""
    to_encode = data.copy()
    expire = utcnow() + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire, "type": "access"})

    # Ensure SECRET_KEY is properly set
    if not settings.SECRET_KEY or settings.SECRET_KEY == "change-me-in-prod":
        raise ValueError("SECRET_KEY not properly configured")

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def decode_jwt_token(token: str):
    """Decode and verify JWT token"""
    if not token:
        return None
    # Ensure SECRET_KEY is properly set
    if not settings.SECRET_KEY or settings.SECRET_KEY == "change-me-in-prod":
        return None
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
