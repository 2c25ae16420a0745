from uuid import UUID


class AuthenticationError(PermissionError):
    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(message)


class LoginThrottledError(PermissionError):
    def __init__(self, email: str) -> None:
        super().__init__("Too many login attempts. Try again later.")
        self.email = email


class UserNotFoundError(LookupError):
    def __init__(self, user_id: UUID) -> None:
        super().__init__(f"User '{user_id}' not found")
        self.user_id = user_id


class PostNotFoundError(LookupError):
    def __init__(self, post_id: UUID) -> None:
        super().__init__(f"Post '{post_id}' not found")
        self.post_id = post_id


class PostOwnershipError(PermissionError):
    def __init__(self, post_id: UUID, user_id: UUID) -> None:
        super().__init__(f"You can only modify your own posts (post '{post_id}')")
        self.post_id = post_id
        self.user_id = user_id


class CommentNotFoundError(LookupError):
    def __init__(self, comment_id: UUID) -> None:
        super().__init__(f"Comment '{comment_id}' not found")
        self.comment_id = comment_id


class CommentOwnershipError(PermissionError):
    def __init__(self, comment_id: UUID, user_id: UUID) -> None:
        super().__init__(
            f"You can only modify your own comments (comment '{comment_id}')"
        )
        self.comment_id = comment_id
        self.user_id = user_id


class MediaValidationError(ValueError):
    pass


class DuplicateAccountError(ValueError):
    def __init__(self, email: str) -> None:
        super().__init__("User with this email already exists")
        self.email = email


class UserDeletionForbiddenError(PermissionError):
    pass
