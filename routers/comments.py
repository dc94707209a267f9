import logging
import json
from typing import Any, Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from google.cloud.firestore import AsyncClient

import AuthAndUser as auth
from database import get_firestore_client
from domain.comments import Comment, CommentWithAuthor
from domain.errors import CommentError, CommentValidationError, to_http_exception
from services import comments as comment_service

logger = logging.getLogger('uvicorn.error')

router = APIRouter(
    prefix="/comments",
    tags=["comments"]
)


async def read_json_body(request: Request) -> Any:
    """Empty body decodes to None; undecodable JSON is a CommentValidationError."""
    raw_body = await request.body()
    if not raw_body.strip():
        return None
    try:
        return json.loads(raw_body)
    except ValueError:
        raise CommentValidationError("request body is not valid JSON")


@router.post("/", response_model=Comment, status_code=status.HTTP_201_CREATED)
async def create_comment(
    current_user: Annotated[auth.User, Depends(auth.get_current_active_user)],
    request: Request,
    db: AsyncClient = Depends(get_firestore_client),
):
    try:
        payload = await read_json_body(request)
        return await comment_service.create_comment(db, current_user.id, payload)
    except CommentError as e:
        raise to_http_exception(e)
    except HTTPException as http_exc:
        raise http_exc
    except Exception as e:
        logger.exception(f"Error creating comment for user '{current_user.id}': {e}")
        raise HTTPException(status_code=500, detail="Internal server error while creating comment.")


@router.get("/", response_model=List[CommentWithAuthor])
async def get_all_comments(
    current_user: Annotated[auth.User, Depends(auth.get_current_active_user)],
    db: AsyncClient = Depends(get_firestore_client),
):
    try:
        return await comment_service.list_comments(db)
    except HTTPException as http_exc:
        raise http_exc
    except Exception as e:
        logger.exception(f"Error retrieving comments for user '{current_user.id}': {e}")
        raise HTTPException(status_code=500, detail="Internal server error while fetching comments.")


@router.delete("/{comment_id}")
async def delete_comment(
    comment_id: str,
    current_user: Annotated[auth.User, Depends(auth.get_current_active_user)],
    db: AsyncClient = Depends(get_firestore_client),
):
    try:
        return await comment_service.delete_comment(db, current_user.id, current_user.is_admin, comment_id)
    except CommentError as e:
        raise to_http_exception(e)
    except HTTPException as http_exc:
        raise http_exc
    except Exception as e:
        logger.exception(f"Error deleting comment '{comment_id}' for user '{current_user.id}': {e}")
        raise HTTPException(status_code=500, detail="Internal server error while deleting comment.")


@router.put("/{comment_id}", response_model=Comment)
async def update_comment(
    comment_id: str,
    current_user: Annotated[auth.User, Depends(auth.get_current_active_user)],
    request: Request,
    db: AsyncClient = Depends(get_firestore_client),
):
    try:
        payload = await read_json_body(request)
        return await comment_service.update_comment(db, current_user.id, comment_id, payload)
    except CommentError as e:
        raise to_http_exception(e)
    except HTTPException as http_exc:
        raise http_exc
    except Exception as e:
        logger.exception(f"Error updating comment '{comment_id}' for user '{current_user.id}': {e}")
        raise HTTPException(status_code=500, detail="Internal server error while updating comment.")
