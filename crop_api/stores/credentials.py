"""User persistence and the password contract.

Passwords are hashed here, explicitly, before a row is written; the ORM
model has no hooks. Rows leave this module only through `public_user`,
which never includes the hash.
"""

import logging
import re
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from crop_api.auth.passwords import hash_password, verify_password as _verify_hash
from crop_api.core.errors import DuplicateIdentity, NotFound, ValidationError
from crop_api.models.user import USER_ROLES, User

logger = logging.getLogger(__name__)

USERNAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 6
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_username(username: str | None) -> str:
    return (username or "").strip()


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def validate_username(username: str | None) -> str:
    normalized = normalize_username(username)
    if not normalized:
        raise ValidationError("Username is required.")
    if len(normalized) > USERNAME_MAX_LENGTH:
        raise ValidationError(f"Username must be {USERNAME_MAX_LENGTH} characters or fewer.")
    return normalized


def validate_email(email: str | None) -> str:
    normalized = normalize_email(email)
    if not normalized:
        raise ValidationError("Email is required.")
    if not EMAIL_PATTERN.match(normalized):
        raise ValidationError("Please provide a valid email.")
    return normalized


def validate_password(password: str | None) -> str:
    if not password:
        raise ValidationError("Password is required.")
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters.")
    return password


def public_user(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "role": user.role,
        "avatar": user.avatar,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


class CredentialStore:
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, user_id: int) -> User | None:
        return self.db.query(User).filter(User.id == user_id).first()

    def find_by_email(self, email: str) -> User | None:
        normalized = normalize_email(email)
        if not normalized:
            return None
        return self.db.query(User).filter(User.email == normalized).first()

    def find_by_username(self, username: str) -> User | None:
        normalized = normalize_username(username)
        if not normalized:
            return None
        return self.db.query(User).filter(func.lower(User.username) == normalized.lower()).first()

    def _ensure_unique(self, username: str | None, email: str | None, exclude_id: int | None = None) -> None:
        conditions = []
        if username is not None:
            conditions.append(func.lower(User.username) == username.lower())
        if email is not None:
            conditions.append(User.email == email)
        if not conditions:
            return

        query = self.db.query(User).filter(or_(*conditions))
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        existing = query.first()
        if existing is None:
            return
        if email is not None and existing.email == email:
            raise DuplicateIdentity("User already exists")
        raise DuplicateIdentity("Username is already taken")

    def _commit(self, message: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise DuplicateIdentity(message) from exc

    def register(self, username: str, email: str, password: str, role: str = "user") -> dict[str, Any]:
        normalized_username = validate_username(username)
        normalized_email = validate_email(email)
        validate_password(password)
        if role not in USER_ROLES:
            raise ValidationError("Invalid role.")

        self._ensure_unique(normalized_username, normalized_email)

        user = User(
            username=normalized_username,
            email=normalized_email,
            password_hash=hash_password(password),
            role=role,
        )
        self.db.add(user)
        self._commit("User already exists")
        self.db.refresh(user)
        logger.info("Registered user id=%s", user.id)
        return public_user(user)

    def verify_password(self, user: User, password: str) -> bool:
        return _verify_hash(password, user.password_hash)

    def authenticate(self, email: str, password: str) -> User | None:
        user = self.find_by_email(email)
        if user is None:
            return None
        if not self.verify_password(user, password):
            return None
        return user

    def update_profile(
        self,
        user_id: int,
        *,
        username: str | None = None,
        email: str | None = None,
        avatar: str | None = None,
        password: str | None = None,
    ) -> dict[str, Any]:
        user = self.find_by_id(user_id)
        if user is None:
            raise NotFound("User not found")

        new_username = validate_username(username) if username is not None else None
        new_email = validate_email(email) if email is not None else None
        if password is not None:
            validate_password(password)

        self._ensure_unique(new_username, new_email, exclude_id=user.id)

        if new_username is not None:
            user.username = new_username
        if new_email is not None:
            user.email = new_email
        if avatar is not None:
            user.avatar = avatar.strip() or None
        if password is not None:
            user.password_hash = hash_password(password)

        self._commit("User already exists")
        self.db.refresh(user)
        return public_user(user)
