from datetime import datetime, timedelta, timezone
from typing import Annotated

import bcrypt
import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from google.cloud.firestore import AsyncClient
from google.cloud.firestore_v1 import FieldFilter
from jwt.exceptions import InvalidTokenError
from pydantic import BaseModel
import logging

import config
import secretmanager
from database import get_firestore_client
ALGORITHM = "HS256"

logger = logging.getLogger('uvicorn.error')

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")

class Token(BaseModel):
    access_token: str
    token_type: str

class TokenData(BaseModel):
    user_id: str | None = None

class User(BaseModel):
    id: str
    username: str
    email: str | None = None
    given_name: str | None = None
    family_name: str | None = None
    disabled: bool | None = None
    is_admin: bool = False

class UserInDB(User):
    hashed_password: str

def get_secret_key():
    if config.AUTH_SECRET_KEY:
        return config.AUTH_SECRET_KEY
    return secretmanager.get_secret(config.AUTH_SECRET_NAME)


def verify_password(plain_password, hashed_password):
    return bcrypt.checkpw(
        bytes(plain_password, encoding="utf-8"),
        bytes(hashed_password, encoding="utf-8"),
    )


def get_password_hash(password):
    return bcrypt.hashpw(
        bytes(password, encoding="utf-8"),
        bcrypt.gensalt(),
    ).decode("utf-8")


async def get_user(db: AsyncClient, user_id: str):
    user_doc = await db.collection(config.USERS_COLLECTION).document(user_id).get()
    if user_doc.exists:
        return UserInDB(id=user_doc.id, **user_doc.to_dict())


async def get_user_by_username(db: AsyncClient, username: str):
    users_ref = db.collection(config.USERS_COLLECTION)
    query = users_ref.where(filter=FieldFilter("username", "==", username)).limit(1)
    async for doc in query.stream():
        return UserInDB(id=doc.id, **doc.to_dict())


async def authenticate_user(db: AsyncClient, username: str, password: str):
    user = await get_user_by_username(db, username)
    if not user:
        return False
    if not verify_password(password, user.hashed_password):
        return False
    return user


def create_access_token(data: dict, expires_delta: timedelta | None = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=15)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, get_secret_key(), algorithm=ALGORITHM)
    return encoded_jwt


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[AsyncClient, Depends(get_firestore_client)],
):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, get_secret_key(), algorithms=[ALGORITHM])
        user_id: str = payload.get("sub")
        if user_id is None:
            raise credentials_exception
        token_data = TokenData(user_id=user_id)
    except InvalidTokenError:
        raise credentials_exception
    user = await get_user(db, token_data.user_id)
    if user is None:
        logger.warning(f"Token presented for unknown user '{token_data.user_id}'")
        raise credentials_exception
    return User(**user.model_dump(exclude={"hashed_password"}))


async def get_current_active_user(
    current_user: Annotated[User, Depends(get_current_user)],
):
    logger.debug("current_user: %s", current_user)
    if current_user.disabled:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user
