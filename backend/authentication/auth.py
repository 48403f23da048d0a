from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from models.config import settings
from models.exceptions import (
    AuthenticationException,
    InsufficientPermissionsException,
)
from repositories.database import get_db

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(
        to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM
    )
    return encoded_jwt


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> db_models.User:
    """
    Get the current authenticated user from the JWT bearer token.

    Raises:
        AuthenticationException: If the token is missing or invalid, the user
            is unknown, or the account has been deactivated.
    """
    if credentials is None:
        raise AuthenticationException("Not authenticated")

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
        email_value = payload.get("sub")
        if email_value is None:
            raise AuthenticationException("Could not validate credentials")
        token_data = schemas.TokenData(email=str(email_value))
    except jwt.exceptions.ExpiredSignatureError:
        raise AuthenticationException("Session expired. Please log in again.")
    except jwt.exceptions.InvalidTokenError:
        raise AuthenticationException("Could not validate credentials")

    user = (
        db.query(db_models.User)
        .filter(db_models.User.email == token_data.email)
        .first()
    )
    if user is None or not bool(user.is_active):
        raise AuthenticationException("Could not validate credentials")
    return user


async def get_admin_user(
    current_user: db_models.User = Depends(get_current_user),
) -> db_models.User:
    """
    Require global admin permissions.

    Raises:
        InsufficientPermissionsException: If user is not a global admin.
    """
    if not bool(current_user.is_global_admin):
        raise InsufficientPermissionsException("Not enough permissions")
    return current_user
