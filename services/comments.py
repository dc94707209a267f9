import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from google.cloud import firestore
from google.cloud.firestore import AsyncClient
from google.cloud.firestore_v1.field_path import FieldPath
from pydantic import BaseModel, ValidationError

import config
from domain.comments import Comment, CommentCreate, CommentUpdate, CommentWithAuthor
from domain.errors import AccessDeniedError, CommentValidationError, NotFoundError
from domain.user import PublicUser

logger = logging.getLogger('uvicorn.error')

COMMENT_NOT_FOUND = "comment not found"
PROFILE_NOT_FOUND = "user profile not found"
DELETE_DENIED = "access denied, not allowed"
UPDATE_DENIED = "access denied, only user himself can edit his comment"


def validate_payload(model: type[BaseModel], payload: Any):
    """
    Validates a raw request body against *model*.

    Only the first validation problem is reported, formatted as
    ``<field>: <message>`` (or just the message for a body that is not an
    object at all).
    """
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        first_error = e.errors()[0]
        field = ".".join(str(part) for part in first_error.get("loc", ()))
        message = f"{field}: {first_error['msg']}" if field else first_error["msg"]
        raise CommentValidationError(message)


def _comment_from_snapshot(snapshot) -> Comment:
    comment_data = snapshot.to_dict()
    comment_data['id'] = snapshot.id
    return Comment(**comment_data)


async def _get_comment_snapshot(db: AsyncClient, comment_id: str):
    comment_ref = db.collection(config.COMMENTS_COLLECTION).document(comment_id)
    comment_doc = await comment_ref.get()
    if not comment_doc.exists:
        logger.warning(f"Comment '{comment_id}' not found.")
        raise NotFoundError(COMMENT_NOT_FOUND)
    return comment_ref, comment_doc


async def create_comment(db: AsyncClient, caller_id: str, payload: Any) -> Comment:
    comment_in = validate_payload(CommentCreate, payload)

    profile_doc = await db.collection(config.USERS_COLLECTION).document(caller_id).get()
    if not profile_doc.exists:
        logger.warning(f"Comment attempt by user '{caller_id}' without a profile.")
        raise NotFoundError(PROFILE_NOT_FOUND)
    author_username = profile_doc.to_dict().get("username")
    if not author_username:
        logger.error(f"Profile for user '{caller_id}' has no username.")
        raise NotFoundError(PROFILE_NOT_FOUND)

    comment_ref = db.collection(config.COMMENTS_COLLECTION).document()
    new_comment_data = {
        "postId": comment_in.postId,
        "text": comment_in.text,
        "authorUserId": caller_id,
        "authorUsername": author_username,
        "createdAt": datetime.now(timezone.utc),
    }
    await comment_ref.set(new_comment_data)
    logger.info(f"User '{caller_id}' created comment '{comment_ref.id}' on post '{comment_in.postId}'")
    return Comment(id=comment_ref.id, **new_comment_data)


async def _get_authors(db: AsyncClient, user_ids: List[str]) -> Dict[str, Optional[PublicUser]]:
    users_collection = db.collection(config.USERS_COLLECTION)
    snapshots = await asyncio.gather(
        *(users_collection.document(user_id).get() for user_id in user_ids)
    )
    authors = {}
    for user_id, snapshot in zip(user_ids, snapshots):
        authors[user_id] = None
        if not snapshot.exists:
            continue
        try:
            authors[user_id] = PublicUser(id=snapshot.id, **snapshot.to_dict())
        except ValidationError as validation_error:
            logger.error(f"Data validation error for user profile {user_id}: {validation_error}")
    return authors


async def list_comments(db: AsyncClient) -> List[CommentWithAuthor]:
    # Document id breaks ties between comments written in the same instant.
    comments_query = (
        db.collection(config.COMMENTS_COLLECTION)
        .order_by("createdAt", direction=firestore.Query.DESCENDING)
        .order_by(FieldPath.document_id(), direction=firestore.Query.DESCENDING)
    )
    comments = []
    async for doc in comments_query.stream():
        try:
            comments.append(_comment_from_snapshot(doc))
        except ValidationError as validation_error:
            logger.error(f"Data validation error for comment {doc.id}: {validation_error}. Data: {doc.to_dict()}")
            continue

    # dict.fromkeys keeps first-seen order while dropping duplicates
    author_ids = list(dict.fromkeys(comment.authorUserId for comment in comments))
    authors = await _get_authors(db, author_ids)
    return [
        CommentWithAuthor(**comment.model_dump(), author=authors.get(comment.authorUserId))
        for comment in comments
    ]


async def delete_comment(db: AsyncClient, caller_id: str, is_admin: bool, comment_id: str) -> dict:
    comment_ref, comment_doc = await _get_comment_snapshot(db, comment_id)
    author_id = comment_doc.to_dict().get("authorUserId")

    if not (is_admin or caller_id == author_id):
        logger.warning(f"Forbidden: User '{caller_id}' attempted to delete comment '{comment_id}' owned by '{author_id}'.")
        raise AccessDeniedError(DELETE_DENIED)

    await comment_ref.delete()
    logger.info(f"User '{caller_id}' (admin={is_admin}) deleted comment '{comment_id}'")
    return {"message": "comment has been deleted"}


async def update_comment(db: AsyncClient, caller_id: str, comment_id: str, payload: Any) -> Comment:
    comment_in = validate_payload(CommentUpdate, payload)

    comment_ref, comment_doc = await _get_comment_snapshot(db, comment_id)
    author_id = comment_doc.to_dict().get("authorUserId")

    # Admins may delete any comment but only the author may edit one.
    if caller_id != author_id:
        logger.warning(f"Forbidden: User '{caller_id}' attempted to edit comment '{comment_id}' owned by '{author_id}'.")
        raise AccessDeniedError(UPDATE_DENIED)

    await comment_ref.update({"text": comment_in.text})
    logger.info(f"User '{caller_id}' updated comment '{comment_id}'")
    return _comment_from_snapshot(await comment_ref.get())
