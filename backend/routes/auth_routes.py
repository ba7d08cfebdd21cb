import logging
import secrets
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response
from pydantic import field_validator
from sqlalchemy.orm import Session

from backend.auth import google, jwt_handler
from backend.auth.dependencies import get_current_user
from backend.core import config, errors
from backend.database import get_db
from backend.models.user import User
from backend.schemas.common import CamelModel, MessageResponse
from backend.schemas.user import UserEnvelope, UserResponse
from backend.services import user_directory

logger = logging.getLogger(__name__)

router = APIRouter(tags=['auth'])

MAX_PROFILE_FIELD_LENGTH = 120


class UpdateProfileRequest(CamelModel):
    name: str | None = None
    department: str | None = None
    student_id: str | None = None
    avatar: str | None = None

    @field_validator('name', 'department', 'student_id')
    @classmethod
    def strip_value(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if len(normalized) > MAX_PROFILE_FIELD_LENGTH:
            raise ValueError(f'Profile fields must be {MAX_PROFILE_FIELD_LENGTH} characters or fewer.')
        return normalized

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        if value is not None and not value:
            raise ValueError('Name cannot be blank.')
        return value


class LoginResponse(CamelModel):
    access_token: str
    token_type: str
    role: str


class EmailCheckResponse(CamelModel):
    exists: bool


def set_cookie(response: Response, key: str, value: str, max_age: int) -> None:
    response.set_cookie(
        key,
        value,
        max_age=max_age,
        httponly=True,
        secure=config.COOKIE_SECURE,
        samesite='lax',
        path='/',
    )


def build_client_redirect(token: str, role: str) -> str:
    parsed = urlparse(config.CLIENT_URL)
    query = dict(parse_qsl(parsed.query))
    query.update({'token': token, 'role': role})
    return urlunparse(parsed._replace(query=urlencode(query)))


def build_client_error_redirect(reason: str) -> str:
    parsed = urlparse(config.CLIENT_URL)
    path = parsed.path.rstrip('/') + '/login'
    return urlunparse(parsed._replace(path=path, query=urlencode({'error': reason})))


@router.get('/google')
def google_login():
    if not config.GOOGLE_CLIENT_ID:
        logger.error('Google sign-in requested but GOOGLE_CLIENT_ID is not set')
        raise errors.InternalError('Google sign-in is not configured.')
    state = secrets.token_urlsafe(24)
    response = RedirectResponse(url=google.build_authorization_url(state))
    set_cookie(response, config.OAUTH_STATE_COOKIE_NAME, state, max_age=600)
    return response


@router.get('/google/callback')
async def google_callback(
    request: Request,
    code: str | None = Query(default=None),
    state: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    expected_state = request.cookies.get(config.OAUTH_STATE_COOKIE_NAME)
    if not state or not expected_state or not secrets.compare_digest(state, expected_state):
        logger.warning('OAuth callback rejected: state mismatch')
        raise errors.AuthenticationError('OAuth state mismatch.')

    try:
        identity = await google.exchange_code(code or '')
    except google.AuthProviderError as exc:
        logger.warning('Google sign-in failed: %s', exc)
        if config.CLIENT_URL:
            return RedirectResponse(url=build_client_error_redirect('auth_failed'))
        raise errors.AuthenticationError('Google authentication failed.') from exc

    user = user_directory.find_or_create_by_external_identity(db, identity)
    token = jwt_handler.issue(user)
    max_age = config.JWT_EXPIRES_MINUTES * 60

    if config.CLIENT_URL:
        response = RedirectResponse(url=build_client_redirect(token, user.role))
    else:
        login_response = LoginResponse(access_token=token, token_type='bearer', role=user.role)
        response = JSONResponse(content=login_response.model_dump(by_alias=True))
    set_cookie(response, config.SESSION_COOKIE_NAME, token, max_age=max_age)
    response.delete_cookie(config.OAUTH_STATE_COOKIE_NAME, path='/')
    return response


@router.get('/me', response_model=UserEnvelope)
def me(current_user: User = Depends(get_current_user)):
    return UserEnvelope(user=UserResponse.model_validate(current_user))


@router.put('/profile', response_model=UserEnvelope)
def update_profile(
    data: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = user_directory.update_profile(
        db,
        current_user,
        name=data.name,
        department=data.department,
        student_id=data.student_id,
        avatar=data.avatar,
    )
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.post('/logout', response_model=MessageResponse)
def logout(response: Response):
    # Tokens are stateless, so clearing the cookie works for deactivated or expired sessions too.
    response.delete_cookie(config.SESSION_COOKIE_NAME, path='/')
    logger.info('Session cookie cleared')
    return MessageResponse(message='Logged out successfully')


@router.get('/check-email/{email}', response_model=EmailCheckResponse)
def check_email(email: str, db: Session = Depends(get_db)):
    if '@' not in email:
        raise errors.ValidationError('A valid email address is required.')
    return EmailCheckResponse(exists=user_directory.email_exists(db, email))
