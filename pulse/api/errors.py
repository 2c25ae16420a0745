from fastapi import HTTPException, status

from pulse.services.errors import (
    AuthenticationError,
    CommentNotFoundError,
    CommentOwnershipError,
    DuplicateAccountError,
    LoginThrottledError,
    PostNotFoundError,
    PostOwnershipError,
    UserDeletionForbiddenError,
    UserNotFoundError,
)


def raise_for_service_error(exc: Exception) -> None:
    if isinstance(exc, LoginThrottledError):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(exc)
        ) from exc
    if isinstance(exc, AuthenticationError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    if isinstance(exc, (UserNotFoundError, PostNotFoundError, CommentNotFoundError)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, (PostOwnershipError, CommentOwnershipError, UserDeletionForbiddenError)):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    if isinstance(exc, DuplicateAccountError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if isinstance(exc, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    raise exc
