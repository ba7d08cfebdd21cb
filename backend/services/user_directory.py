import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.auth.google import GoogleIdentity
from backend.core import errors
from backend.models.user import ROLE_VALUES, User, UserRole, utcnow

logger = logging.getLogger(__name__)


class InvalidRole(errors.ValidationError):
    default_detail = 'Role must be one of: admin, student, teacher.'


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _find_by_identity(db: Session, identity: GoogleIdentity) -> User | None:
    return (
        db.query(User)
        .filter(
            (User.google_id == identity.external_id)
            | (User.email == normalize_email(identity.email))
        )
        .order_by(User.id.asc())
        .first()
    )


def find_or_create_by_external_identity(db: Session, identity: GoogleIdentity) -> User:
    user = _find_by_identity(db, identity)
    if user is None:
        user = User(
            google_id=identity.external_id,
            email=normalize_email(identity.email),
            name=identity.name,
            avatar=identity.avatar,
            role=UserRole.STUDENT.value,
            is_active=True,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError as exc:
            # Another request created the same account first.
            db.rollback()
            user = _find_by_identity(db, identity)
            if user is None:
                raise errors.ConflictError('An account with this email already exists.') from exc
        else:
            logger.info('Created user %s for %s', user.id, user.email)

    user.google_id = user.google_id or identity.external_id
    user.name = user.name or identity.name
    user.avatar = user.avatar or identity.avatar
    user.last_login = utcnow()
    db.commit()
    db.refresh(user)
    return user


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise errors.NotFoundError('User not found.')
    return user


def email_exists(db: Session, email: str) -> bool:
    return db.query(User.id).filter(User.email == normalize_email(email)).first() is not None


def update_profile(
    db: Session,
    user: User,
    name: str | None = None,
    department: str | None = None,
    student_id: str | None = None,
    avatar: str | None = None,
) -> User:
    if name is not None:
        user.name = name
    if department is not None:
        user.department = department
    if student_id is not None:
        user.student_id = student_id
    if avatar is not None:
        user.avatar = avatar
    db.commit()
    db.refresh(user)
    return user


def validate_role(role: str) -> str:
    normalized = (role or '').strip().lower()
    if normalized not in ROLE_VALUES:
        raise InvalidRole()
    return normalized


def update_role(db: Session, user_id: int, new_role: str, commit: bool = True) -> User:
    role = validate_role(new_role)
    user = get_user(db, user_id)
    user.role = role
    if commit:
        db.commit()
        db.refresh(user)
    return user


def toggle_active(db: Session, user_id: int, commit: bool = True) -> User:
    user = get_user(db, user_id)
    user.is_active = not user.is_active
    if commit:
        db.commit()
        db.refresh(user)
    return user
