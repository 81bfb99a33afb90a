# app/utils/auth.py
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, ExpiredSignatureError, jwt
from passlib.context import CryptContext

from app.config.settings import settings
from app.models.user import UserRole
from app.utils.access import Actor

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False


def create_access_token(data: dict, expires_minutes: Optional[float] = None) -> str:
    to_encode = data.copy()
    minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES if expires_minutes is None else expires_minutes
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    to_encode.update({"exp": int(expire.timestamp())})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_user_token(user) -> str:
    return create_access_token({"sub": user.email, "id": user.id, "role": UserRole(user.role).value})


def verify_token(token: str) -> Optional[dict]:
    """Verify JWT token and return payload without raising exceptions"""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


class IdentityProvider(ABC):
    """Turns a bearer token into the (user id, role) the task core trusts"""

    @abstractmethod
    def resolve(self, token: str) -> Actor:
        """Return the caller, or raise HTTPException(401)"""


class JWTIdentityProvider(IdentityProvider):
    def resolve(self, token: str) -> Actor:
        credentials_exception = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except ExpiredSignatureError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has expired",
                headers={"WWW-Authenticate": "Bearer"},
            )
        except JWTError:
            raise credentials_exception

        user_id = payload.get("id")
        role = payload.get("role")
        if user_id is None or role is None:
            raise credentials_exception
        try:
            return Actor(user_id=int(user_id), role=UserRole(role))
        except ValueError:
            raise credentials_exception


_default_provider = JWTIdentityProvider()


def get_identity_provider() -> IdentityProvider:
    return _default_provider


def get_current_actor(
    token: str = Depends(oauth2_scheme),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Actor:
    return provider.resolve(token)
