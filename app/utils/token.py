from jose import jwt, JWTError
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from app.config import settings
from app.exceptions import Unauthorized

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


@dataclass
class Identity:
    """Buyer identity as issued by the auth provider."""

    user_id: str
    email: Optional[str] = None
    name: Optional[str] = None
    image: Optional[str] = None
    plans: List[str] = field(default_factory=list)

    def has_plan(self, plan: str) -> bool:
        return plan in self.plans

    @property
    def is_member(self) -> bool:
        return self.has_plan(settings.MEMBER_PLAN)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()

    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=60))
    to_encode.update({"exp": expire})

    return jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.algorithm
    )


def decode_access_token(token: str):
    try:
        return jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
        )
    except JWTError:
        return None


def get_current_identity(token: Optional[str] = Depends(oauth2_scheme)) -> Identity:
    payload = decode_access_token(token) if token else None

    if payload is None:
        raise Unauthorized("not authorized")

    user_id = payload.get("sub") or payload.get("user_id")
    if not user_id:
        raise Unauthorized("Invalid token payload")

    plans = payload.get("plans") or []
    if isinstance(plans, str):
        plans = [p.strip() for p in plans.split(",") if p.strip()]

    return Identity(
        user_id=str(user_id),
        email=payload.get("email"),
        name=payload.get("name"),
        image=payload.get("image"),
        plans=list(plans),
    )
