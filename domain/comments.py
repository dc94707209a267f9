from pydantic import BaseModel, Field
from typing import Optional
import datetime

from config import MAX_COMMENT_TEXT_LENGTH
from domain.user import PublicUser


class CommentCreate(BaseModel):
    postId: str = Field(min_length=1)
    text: str = Field(min_length=1, max_length=MAX_COMMENT_TEXT_LENGTH)

    model_config = {"str_strip_whitespace": True}


class CommentUpdate(BaseModel):
    text: str = Field(min_length=1, max_length=MAX_COMMENT_TEXT_LENGTH)

    model_config = {"str_strip_whitespace": True}


class Comment(BaseModel):
    id: str
    postId: str
    text: str
    authorUserId: str
    authorUsername: str
    createdAt: datetime.datetime

    model_config = {"from_attributes": True}


class CommentWithAuthor(Comment):
    # None when the author's profile has since been removed
    author: Optional[PublicUser] = None
