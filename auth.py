"""Bearer-token auth against Supabase session JWTs."""
import logging
import os
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from database import Profile, get_db

logger = logging.getLogger(__name__)

SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET", "")
ALGORITHM = "HS256"
AUDIENCE = "authenticated"
ACCESS_TOKEN_EXPIRE_MINUTES = 60

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(user_id: str, email: str = "", expires_delta: Optional[timedelta] = None) -> str:
    """Mint a token shaped like a Supabase session JWT (local dev and tests)."""
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    claims = {"sub": user_id, "email": email, "aud": AUDIENCE, "role": AUDIENCE, "exp": expire}
    return jwt.encode(claims, SUPABASE_JWT_SECRET, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    if not SUPABASE_JWT_SECRET:
        raise HTTPException(status_code=503, detail="Authentication not configured")
    try:
        claims = jwt.decode(token, SUPABASE_JWT_SECRET, algorithms=[ALGORITHM], audience=AUDIENCE)
    except JWTError as exc:
        logger.info("Rejected bearer token: %s", exc)
        raise HTTPException(status_code=401, detail="Invalid authentication")
    if not claims.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid authentication")
    return claims


def _ensure_profile(db, claims: dict) -> Profile:
    profile = db.get(Profile, claims["sub"])
    if profile is None:
        meta = claims.get("user_metadata") or {}
        profile = Profile(
            id=claims["sub"],
            email=claims.get("email", ""),
            full_name=meta.get("full_name", ""),
            avatar_url=meta.get("avatar_url"),
            plan="free",
        )
        db.add(profile)
        db.commit()
        db.refresh(profile)
        logger.info("Created profile for user %s", profile.id)
    return profile


def require_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
                 db=Depends(get_db)) -> Profile:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return _ensure_profile(db, decode_token(credentials.credentials))


def optional_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
                  db=Depends(get_db)) -> Optional[Profile]:
    """Like require_user, but anonymous or invalid tokens yield None."""
    if credentials is None:
        return None
    try:
        claims = decode_token(credentials.credentials)
    except HTTPException:
        return None
    return _ensure_profile(db, claims)
