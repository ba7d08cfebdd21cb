from backend.core import errors
from backend.models.user import User, UserRole

MODERATOR_ROLES = (UserRole.TEACHER, UserRole.ADMIN)
ADMIN_ROLES = (UserRole.ADMIN,)


def is_moderator(user: User) -> bool:
    return user.has_role(*MODERATOR_ROLES)


def ensure_owner_or_roles(author_id: int, user: User, roles: tuple[UserRole, ...], detail: str) -> None:
    """Allow the author of a record, or anyone holding one of ``roles``."""
    if author_id == user.id or user.has_role(*roles):
        return
    raise errors.AuthorizationError(detail)
