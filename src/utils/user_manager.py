"""User management utilities.

This module provides the credential store: user storage, password hashing,
bearer token issue/lookup/revocation, and the bootstrap admin invariant.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import List, Optional

import bcrypt
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from config import (
    BCRYPT_ROUNDS,
    DEFAULT_ADMIN_EMAIL,
    DEFAULT_ADMIN_NAME,
    DEFAULT_ADMIN_PASSWORD,
    TOKEN_TTL_DAYS,
)
from core.exceptions import (
    InvalidCredentialsError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from models.token import TokenModel
from models.user import UserModel
from schemas.user import Subscription, User
from utils.converters import model_to_user, parse_timestamp, user_to_model, utc_now

logger = logging.getLogger(__name__)

# Use bcrypt directly instead of passlib to avoid initialization issues


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserManager:
    """Manages user and token persistence using SQLAlchemy."""

    def __init__(self, db: Session, bcrypt_rounds: int = BCRYPT_ROUNDS):
        """Initialize UserManager.

        Args:
            db: SQLAlchemy Session.
            bcrypt_rounds: Cost factor for new password hashes.
        """
        self.db = db
        self.bcrypt_rounds = bcrypt_rounds

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password.

        Returns:
            Hashed password (bcrypt hash string).
        """
        # Truncate password if it exceeds bcrypt's 72-byte limit
        password_bytes = password.encode("utf-8")
        if len(password_bytes) > 72:
            logger.warning("Password exceeds 72 bytes, truncating")
            password_bytes = password_bytes[:72]

        salt = bcrypt.gensalt(rounds=self.bcrypt_rounds)
        return bcrypt.hashpw(password_bytes, salt).decode("utf-8")

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            plain_password: Plain text password to verify.
            hashed_password: Bcrypt hash string to verify against.

        Returns:
            True if password matches, False otherwise.
        """
        password_bytes = plain_password.encode("utf-8")[:72]
        try:
            return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
        except ValueError as e:
            # Malformed stored hash
            logger.error("Password verification error: %s", e)
            return False

    def create_user(
        self,
        email: str,
        password: str,
        name: str,
        phone: Optional[str] = None,
        role: str = "student",
    ) -> User:
        """Create a new user.

        Email uniqueness is case-insensitive. The pre-check gives a clean
        error in the common case; the unique index settles concurrent
        registrations, the losing writer gets UserAlreadyExistsError.

        Args:
            email: Email address, the login key.
            password: Plain text password.
            name: Display name.
            phone: Optional phone number.
            role: User role ('student' or 'admin').

        Returns:
            Created User object. Its library is empty; seeding free content
            is the entitlement engine's job.

        Raises:
            UserAlreadyExistsError: If the email is already registered.
        """
        email = normalize_email(email)
        if self.get_user_by_email(email) is not None:
            raise UserAlreadyExistsError(email)

        user = User(
            email=email,
            password_hash=self.hash_password(password),
            name=name,
            phone=phone,
            role=role,
        )

        try:
            model = user_to_model(user)
            self.db.add(model)
            self.db.commit()
            self.db.refresh(model)
        except IntegrityError as e:
            self.db.rollback()
            if "email" in str(e).lower() or "unique" in str(e).lower():
                raise UserAlreadyExistsError(email) from e
            raise

        logger.info("Created user %s with role %s", user.user_id, role)
        return model_to_user(model)

    def _get_model(self, user_id: str) -> UserModel:
        model = self.db.query(UserModel).filter(UserModel.user_id == user_id).first()
        if not model:
            raise UserNotFoundError(user_id)
        return model

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Get a user by email (case-insensitive).

        Args:
            email: Email to look up.

        Returns:
            User object if found, None otherwise.
        """
        model = (
            self.db.query(UserModel)
            .filter(UserModel.email == normalize_email(email))
            .first()
        )
        if model:
            return model_to_user(model)
        return None

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        """Get a user by user ID.

        Args:
            user_id: User ID to look up.

        Returns:
            User object if found, None otherwise.
        """
        model = self.db.query(UserModel).filter(UserModel.user_id == user_id).first()
        if model:
            return model_to_user(model)
        return None

    def get_user(self, user_id: str) -> User:
        """Like get_user_by_id but raises UserNotFoundError when absent."""
        return model_to_user(self._get_model(user_id))

    def list_users(self) -> List[User]:
        """List all users.

        Returns:
            List of User objects, oldest first.
        """
        models = self.db.query(UserModel).order_by(UserModel.created_at).all()
        return [model_to_user(m) for m in models]

    def update_user(
        self,
        user_id: str,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        password: Optional[str] = None,
    ) -> User:
        """Update profile fields. Fields left as None are unchanged.

        Raises:
            UserNotFoundError: If the user does not exist.
        """
        model = self._get_model(user_id)
        changed = False
        if name is not None:
            model.name = name
            changed = True
        if phone is not None:
            model.phone = phone
            changed = True
        if password is not None:
            model.password_hash = self.hash_password(password)
            changed = True
        if changed:
            model.updated_at = utc_now().isoformat()
            self.db.commit()
            self.db.refresh(model)
            logger.info("Updated profile of user %s", user_id)
        return model_to_user(model)

    def set_subscription(
        self, user_id: str, subscription: Subscription, commit: bool = True
    ) -> User:
        """Overwrite the user's subscription record wholesale.

        With commit=False the change is only flushed, leaving the caller to
        commit or roll back.

        Raises:
            UserNotFoundError: If the user does not exist.
        """
        model = self._get_model(user_id)
        model.subscription_plan_id = subscription.plan_id
        model.subscription_status = subscription.status
        model.subscription_expires_at = subscription.expires_at
        model.updated_at = utc_now().isoformat()
        if commit:
            self.db.commit()
            self.db.refresh(model)
        else:
            self.db.flush()
        return model_to_user(model)

    def authenticate(self, email: str, password: str) -> User:
        """Check an email/password pair.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password. The two
                cases are indistinguishable to the caller.
        """
        user = self.get_user_by_email(email)
        if user is None or not self.verify_password(password, user.password_hash):
            logger.warning("Failed login attempt")
            raise InvalidCredentialsError()
        return user

    # --- Tokens ---

    def issue_token(self, user_id: str, now: Optional[datetime] = None) -> str:
        """Issue a new opaque bearer token for a user.

        Args:
            user_id: Owner of the token.
            now: Issue time, defaults to the current UTC time.

        Returns:
            The token string.
        """
        token = secrets.token_urlsafe(32)
        self.db.add(
            TokenModel(
                token=token,
                user_id=user_id,
                issued_at=(now or utc_now()).isoformat(),
            )
        )
        self.db.commit()
        logger.info("Issued token for user %s", user_id)
        return token

    def revoke_token(self, token: str) -> None:
        """Delete a token. Revoking an unknown token is a no-op."""
        deleted = self.db.query(TokenModel).filter(TokenModel.token == token).delete()
        self.db.commit()
        if deleted:
            logger.info("Revoked a bearer token")

    def resolve_token(
        self, token: Optional[str], now: Optional[datetime] = None
    ) -> Optional[User]:
        """Resolve a bearer token to its user.

        Tokens older than TOKEN_TTL_DAYS are rejected even if never revoked,
        and are deleted on the way out.

        Args:
            token: Token string, may be None or empty.
            now: Reference time, defaults to the current UTC time.

        Returns:
            The owning User, or None if the token is missing, unknown or
            expired.
        """
        if not token:
            return None
        model = self.db.query(TokenModel).filter(TokenModel.token == token).first()
        if not model:
            return None

        now = now or utc_now()
        expires_at = parse_timestamp(model.issued_at) + timedelta(days=TOKEN_TTL_DAYS)
        if now >= expires_at:
            user_id = model.user_id
            self.db.delete(model)
            self.db.commit()
            logger.info("Discarded expired token of user %s", user_id)
            return None

        return self.get_user_by_id(model.user_id)

    def purge_expired_tokens(self, now: Optional[datetime] = None) -> int:
        """Delete every token past its lifetime.

        Returns:
            Number of tokens deleted.
        """
        cutoff = (now or utc_now()) - timedelta(days=TOKEN_TTL_DAYS)
        deleted = (
            self.db.query(TokenModel)
            .filter(TokenModel.issued_at <= cutoff.isoformat())
            .delete(synchronize_session=False)
        )
        self.db.commit()
        if deleted:
            logger.info("Purged %d expired tokens", deleted)
        return deleted

    # --- Bootstrap ---

    def has_admin(self) -> bool:
        return (
            self.db.query(UserModel.user_id).filter(UserModel.role == "admin").first()
            is not None
        )

    def ensure_admin_user(
        self,
        email: str = DEFAULT_ADMIN_EMAIL,
        password: str = DEFAULT_ADMIN_PASSWORD,
        name: str = DEFAULT_ADMIN_NAME,
    ) -> Optional[User]:
        """Create the default admin account if no admin exists.

        Safe to call any number of times, from any number of processes. The
        guard is a role query against the store; a concurrent bootstrap that
        loses the email race sees the winner's admin and returns None.

        Returns:
            The created admin, or None if an admin already existed.

        Raises:
            UserAlreadyExistsError: If no admin exists but the default email
                belongs to a non-admin account.
        """
        if self.has_admin():
            return None
        try:
            admin = self.create_user(
                email=email, password=password, name=name, role="admin"
            )
        except UserAlreadyExistsError:
            if self.has_admin():
                return None
            raise
        logger.info("Created bootstrap admin account %s", admin.email)
        return admin
