from datetime import timedelta
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from fastapi.middleware.trustedhost import TrustedHostMiddleware

import logging
import AuthAndUser as auth
import config
from contextlib import asynccontextmanager

from google.cloud import firestore

from database import get_firestore_client
from routers import users, comments

logger = logging.getLogger('uvicorn.error')


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup: Initializing resources...")
    try:
        app.state.db = firestore.AsyncClient()
        logger.info("Firestore Async client initialized.")
    except Exception as e:
        logger.error(f"Failed to initialize Firestore Async client: {e}")
        app.state.db = None

    yield
    logger.info("Application shutdown: Cleaning up resources...")
    if hasattr(app.state, 'db') and app.state.db:
        try:
            await app.state.db.close()
            logger.info("Firestore Async client closed.")
        except Exception as e:
            logger.error(f"Error closing Firestore client: {e}")


app = FastAPI(lifespan=lifespan)
app.include_router(users.router)
app.include_router(comments.router)

app.add_middleware(
    TrustedHostMiddleware, allowed_hosts=config.ALLOWED_HOSTS
)

@app.post("/token")
async def login_for_access_token(
        form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
        db: Annotated[firestore.AsyncClient, Depends(get_firestore_client)],
) -> auth.Token:
    user = await auth.authenticate_user(db, form_data.username, form_data.password)
    if not user:
        logger.warning(f"Failed login attempt for username '{form_data.username}'")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token_expires = timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = auth.create_access_token(
        data={"sub": user.id}, expires_delta=access_token_expires
    )
    return auth.Token(access_token=access_token, token_type="bearer")
