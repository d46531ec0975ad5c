# backend/Auth/users.py
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from Auth.models import Role, User
from Auth.security import hash_password, verify_password

logger = logging.getLogger(__name__)


class CredentialStoreError(Exception):
    """The user table could not be read or written."""


class DuplicateUserError(CredentialStoreError):
    def __init__(self, username: str):
        self.username = username
        super().__init__(f"User '{username}' already exists")


def get_user(db: Session, username: str) -> User | None:
    return db.exec(select(User).where(User.username == username)).first()


def register(db: Session, username: str, raw_secret: str, role: Role = Role.viewer) -> User:
    """Store a new user with a one-way hash of the secret."""
    if get_user(db, username):
        raise DuplicateUserError(username)

    user = User(username=username, hashed_password=hash_password(raw_secret), role=role)
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        # lost a race with a concurrent registration
        db.rollback()
        raise DuplicateUserError(username) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Registering user %s failed", username)
        raise CredentialStoreError(str(exc)) from exc
    db.refresh(user)
    logger.info("Registered user %s with role %s", username, user.role.value)
    return user


def verify(db: Session, username: str, raw_secret: str) -> User | None:
    user = get_user(db, username)
    if not user or not verify_password(raw_secret, user.hashed_password):
        return None
    return user
