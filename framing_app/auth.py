"""
Tenant authentication — JWT access/refresh tokens and password hashing.

Every shop account is a tenant. Routers depend on get_current_user and
scope customers, orders and templates by its id.

Libraries: python-jose[cryptography] for JWT, passlib[bcrypt] for passwords.
"""

import hashlib
import logging
import uuid
from datetime import datetime, timedelta

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from . import models

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
security = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _jwt_secret() -> str:
    if not settings.JWT_SECRET:
        logger.error("JWT_SECRET is not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="JWT_SECRET not configured",
        )
    return settings.JWT_SECRET


def _encode(user_id: int, token_type: str, expires: timedelta, **claims) -> str:
    payload = {
        "sub": str(user_id),
        "exp": datetime.utcnow() + expires,
        "type": token_type,
        **claims,
    }
    return jwt.encode(payload, _jwt_secret(), algorithm=settings.JWT_ALGORITHM)


def create_access_token(user_id: int) -> str:
    return _encode(user_id, "access", timedelta(minutes=settings.JWT_ACCESS_EXPIRE_MINUTES))


def create_refresh_token(user_id: int) -> str:
    """Raw token goes to the client, only its hash is stored."""
    return _encode(
        user_id, "refresh", timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS),
        jti=str(uuid.uuid4()),
    )


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def decode_token(token: str) -> dict:
    """Raises 401 for anything that does not verify."""
    try:
        return jwt.decode(token, _jwt_secret(), algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def store_refresh_token(db: Session, user_id: int, token: str) -> models.AuthToken:
    db_token = models.AuthToken(
        user_id=user_id,
        token_hash=hash_token(token),
        token_type="refresh",
        expires_at=datetime.utcnow() + timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS),
    )
    db.add(db_token)
    db.commit()
    return db_token


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> models.User:
    """FastAPI dependency: the tenant behind the bearer access token."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    payload = decode_token(credentials.credentials)
    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type, use an access token",
        )

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    user = db.query(models.User).filter(models.User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


def tenant_pricing(user: models.User) -> dict:
    """VAT, currency and rounding for a tenant, falling back to settings."""
    return {
        "vat_rate": user.vat_percentage if user.vat_percentage is not None else settings.VAT_PERCENTAGE,
        "currency": user.currency or settings.CURRENCY,
        "rounding": user.price_rounding or settings.PRICE_ROUNDING,
    }


def tenant_company(user: models.User) -> dict:
    """Contact details printed on the tenant's orders, falling back to settings."""
    return {
        "name": user.shop_name or settings.COMPANY_NAME,
        "email": user.shop_email or settings.COMPANY_EMAIL,
        "phone": user.shop_phone or settings.COMPANY_PHONE,
        "address": user.shop_address,
    }
