from fastapi import HTTPException, status


class CommentError(Exception):
    """Base class for failures reported back to the caller."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CommentValidationError(CommentError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(CommentError):
    status_code = status.HTTP_404_NOT_FOUND


class AccessDeniedError(CommentError):
    status_code = status.HTTP_403_FORBIDDEN


def to_http_exception(error: CommentError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.message)
