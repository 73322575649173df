"""
Auth endpoints — register, login, refresh, me, profile.

The profile carries the tenant's pricing settings (VAT percentage,
currency, rounding mode) and the company details, which fall back to the
COMPANY_* settings for a shop that has not filled them in. Frame orders
are always priced with the values of the tenant that owns them.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Optional

from .. import models
from ..auth import (
    create_access_token,
    create_refresh_token,
    decode_token,
    get_current_user,
    hash_password,
    hash_token,
    store_refresh_token,
    tenant_company,
    tenant_pricing,
    verify_password,
)
from ..calculators.rounding import normalize_rounding
from ..database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# --- Request schemas ---

class RegisterRequest(BaseModel):
    email: str
    password: str
    shop_name: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class ProfileUpdate(BaseModel):
    shop_name: Optional[str] = None
    shop_address: Optional[str] = None
    shop_phone: Optional[str] = None
    shop_email: Optional[str] = None
    vat_percentage: Optional[float] = None
    currency: Optional[str] = None
    price_rounding: Optional[str] = None


def _user_to_response(user: models.User) -> dict:
    """Never expose password_hash."""
    return {
        "id": user.id,
        "email": user.email,
        "is_verified": user.is_verified,
        "shop_name": user.shop_name,
        "shop_address": user.shop_address,
        "shop_phone": user.shop_phone,
        "shop_email": user.shop_email,
        "pricing": tenant_pricing(user),
        "company": tenant_company(user),
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def _issue_tokens(user: models.User, db: Session) -> dict:
    access_token = create_access_token(user.id)
    refresh_token = create_refresh_token(user.id)
    store_refresh_token(db, user.id, refresh_token)
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer",
        "user_id": user.id,
    }


def _invalid_credentials():
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid email or password",
    )


# --- Endpoints ---

@router.post("/register")
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    email = request.email.strip().lower()
    if not email or not request.password:
        raise HTTPException(status_code=400, detail="Email and password are required")

    if db.query(models.User).filter(models.User.email == email).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Account with this email already exists",
        )

    user = models.User(
        email=email,
        password_hash=hash_password(request.password),
        shop_name=request.shop_name,
        is_verified=False,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered tenant %d", user.id)

    tokens = _issue_tokens(user, db)
    return {**tokens, "user": _user_to_response(user)}


@router.post("/login")
def login(request: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(models.User).filter(models.User.email == request.email.strip().lower()).first()
    if not user or not verify_password(request.password, user.password_hash):
        raise _invalid_credentials()

    tokens = _issue_tokens(user, db)
    return {**tokens, "user": _user_to_response(user)}


@router.post("/refresh")
def refresh(request: RefreshRequest, db: Session = Depends(get_db)):
    """Exchange a stored, unexpired refresh token for a new access token."""
    payload = decode_token(request.refresh_token)
    if payload.get("type") != "refresh":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type, expected refresh token",
        )

    db_token = db.query(models.AuthToken).filter(
        models.AuthToken.token_hash == hash_token(request.refresh_token),
        models.AuthToken.token_type == "refresh",
    ).first()
    if not db_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token not found, it may have been revoked",
        )
    if db_token.expires_at < datetime.utcnow():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token expired",
        )

    user = db.query(models.User).filter(models.User.id == int(payload["sub"])).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    return {
        "access_token": create_access_token(user.id),
        "token_type": "bearer",
        "user_id": user.id,
    }


@router.get("/me")
def me(current_user: models.User = Depends(get_current_user)):
    return _user_to_response(current_user)


@router.put("/profile")
def update_profile(
    update: ProfileUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update the shop profile and pricing settings of the current tenant."""
    update_data = update.model_dump(exclude_unset=True)

    if update_data.get("vat_percentage") is not None and update_data["vat_percentage"] < 0:
        raise HTTPException(status_code=400, detail="vat_percentage cannot be negative")
    if update_data.get("price_rounding") is not None:
        try:
            update_data["price_rounding"] = normalize_rounding(update_data["price_rounding"])
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    if update_data.get("currency"):
        update_data["currency"] = update_data["currency"].strip().upper()

    for field, value in update_data.items():
        setattr(current_user, field, value)

    current_user.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(current_user)
    return _user_to_response(current_user)
