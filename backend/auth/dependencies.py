import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from backend.auth import jwt_handler
from backend.core import config, errors
from backend.database import get_db
from backend.models.user import User, UserRole

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_token(request: Request, credentials: HTTPAuthorizationCredentials | None) -> str | None:
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(config.SESSION_COOKIE_NAME)


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    token = get_token(request, credentials)
    if not token:
        raise errors.AuthenticationError('Authentication required.')

    try:
        claims = jwt_handler.verify(token)
    except jwt_handler.TokenExpired as exc:
        logger.info('Rejected expired token on %s', request.url.path)
        raise errors.AuthenticationError('Token expired.') from exc
    except jwt_handler.TokenInvalid as exc:
        logger.warning('Rejected invalid token on %s: %s', request.url.path, exc)
        raise errors.AuthenticationError('Invalid token.') from exc

    user = db.get(User, claims.subject)
    if user is None:
        raise errors.AuthenticationError('User not found.')
    if not user.is_active:
        raise errors.AuthorizationError('Account is deactivated.')
    return user


def require_roles(*roles: UserRole):
    allowed = frozenset(role.value for role in roles)

    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise errors.AuthorizationError('Insufficient role for this action.')
        return current_user

    return dependency


require_moderator = require_roles(UserRole.TEACHER, UserRole.ADMIN)
