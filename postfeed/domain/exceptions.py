class DomainError(Exception):
    """Base class for domain-level exceptions."""


class ValidationError(DomainError):
    pass


class NotFoundError(DomainError):
    pass


class AuthorizationError(DomainError):
    pass


class ConflictError(DomainError):
    pass


class StoreError(DomainError):
    """Transient persistence failure. The only kind a caller may retry."""


class InvalidIdentifier(DomainError):
    """Raised by repositories for ids that are not structurally valid."""


class EmptyText(ValidationError):
    pass


class PostNotFound(NotFoundError):
    pass


class CommentNotFound(NotFoundError):
    pass


class UserNotFound(NotFoundError):
    pass


class NoPostsForUser(NotFoundError):
    pass


class NotPostAuthor(AuthorizationError):
    pass


class NotCommentAuthor(AuthorizationError):
    pass


class AlreadyLiked(ConflictError):
    pass


class NotYetLiked(ConflictError):
    pass


class UserExists(ConflictError):
    pass


class ConcurrentModification(StoreError):
    pass
