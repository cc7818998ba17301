"""
Session manager: credential checks, token issuance and the current principal.

Every public operation that can fail returns an OperationResult; errors
raised inside are converted at the method boundary and never escape.
"""

import secrets
from typing import Any, Mapping, Optional

from ..models.results import AuthPayload, OperationResult
from ..models.session import Session
from ..models.user import ROLE_HIERARCHY, PublicUser, User
from ..services.store import Store
from ..storage.local_storage import LocalStorage
from ..utils.exceptions import (
    EmailTakenError,
    InvalidCredentialsError,
    InvalidInputError,
    NotFoundError,
    PasswordMismatchError,
    UnauthenticatedError,
    UsernameTakenError,
    WeakPasswordError,
)
from ..utils.logger import get_logger
from ..utils.operations import run_operation
from .passwords import password_too_long, verify_password

logger = get_logger(__name__)

TOKEN_KEY = "auth_token"
USER_ID_KEY = "user_id"
MIN_PASSWORD_LENGTH = 6

REGISTER_FIELDS = ("username", "email", "password", "confirm_password", "name")

# Form payloads may use the camelCase spelling
FIELD_ALIASES = {"confirmPassword": "confirm_password"}


def generate_token() -> str:
    """Create an opaque session token"""
    return secrets.token_urlsafe(32)


class SessionManager:
    """Tracks at most one authenticated principal per instance"""

    def __init__(
        self,
        store: Store,
        storage: LocalStorage,
        token_key: str = TOKEN_KEY,
        user_id_key: str = USER_ID_KEY,
        min_password_length: int = MIN_PASSWORD_LENGTH,
    ):
        self.store = store
        self.storage = storage
        self.token_key = token_key
        self.user_id_key = user_id_key
        self.min_password_length = min_password_length

        self._current_user: Optional[User] = None
        self._current_session: Optional[Session] = None

    @property
    def current_session(self) -> Optional[Session]:
        return self._current_session

    def _check_new_password(self, password: str, message: str) -> None:
        if len(password) < self.min_password_length:
            raise WeakPasswordError(message.format(n=self.min_password_length))
        if password_too_long(password):
            raise InvalidInputError("Password must be at most 72 bytes long")

    def _start_session(self, user: User) -> AuthPayload:
        token = generate_token()
        session = self.store.create_session(user.id, token)

        self.storage.set_item(self.token_key, token)
        self.storage.set_item(self.user_id_key, str(user.id))

        self._current_user = user
        self._current_session = session
        return AuthPayload(user=user.public(), token=token)

    def _clear_principal(self) -> None:
        self._current_user = None
        self._current_session = None

    # Login / register

    def login(self, username: str, password: str) -> OperationResult:
        return run_operation(self._login, username, password)

    def _login(self, username: str, password: str) -> OperationResult:
        if not username or not password:
            raise InvalidInputError("Please fill in all fields")

        user = self.store.find_user_by_username(username)
        if user is None:
            raise NotFoundError("User not found")

        if not verify_password(password, user.password_hash):
            logger.warning("Failed login attempt", username=username)
            raise InvalidCredentialsError("Incorrect password")

        payload = self._start_session(user)
        logger.info("User logged in", user_id=user.id)
        return OperationResult.ok(payload)

    def register(self, fields: Mapping[str, Any]) -> OperationResult:
        return run_operation(self._register, fields)

    def _register(self, fields: Mapping[str, Any]) -> OperationResult:
        fields = dict(fields)
        for alias, name in FIELD_ALIASES.items():
            if not fields.get(name) and fields.get(alias):
                fields[name] = fields[alias]

        if any(not fields.get(name) for name in REGISTER_FIELDS):
            raise InvalidInputError("Please fill in all fields")

        password = fields["password"]
        if password != fields["confirm_password"]:
            raise PasswordMismatchError("Passwords do not match")
        self._check_new_password(password, "Password must be at least {n} characters long")

        if self.store.find_user_by_username(fields["username"]) is not None:
            raise UsernameTakenError("Username is already in use")
        if self.store.find_user_by_email(fields["email"]) is not None:
            raise EmailTakenError("Email is already registered")

        user = self.store.create_user(
            {
                "username": fields["username"],
                "email": fields["email"],
                "password": password,
                "name": fields["name"],
            }
        )
        payload = self._start_session(user)
        logger.info("User registered", user_id=user.id)
        return OperationResult.ok(payload)

    # Token validation

    def resume_session(self) -> bool:
        """Restore the principal from the durable token slot at startup"""
        token = self.storage.get_item(self.token_key)
        if not token:
            return False
        return self.validate_token(token)

    def validate_token(self, token: str) -> bool:
        """
        Check a token and repair state as a side effect.

        A missing, expired or orphaned session logs the instance out;
        a good one becomes the current principal.
        """
        session = self.store.validate_session(token)
        if session is None:
            self.logout()
            return False

        user = self.store.find_user_by_id(session.user_id)
        if user is None:
            logger.warning("Session refers to a missing user", user_id=session.user_id)
            self.logout()
            return False

        self._current_user = user
        self._current_session = session
        return True

    def is_authenticated(self) -> bool:
        token = self.storage.get_item(self.token_key)
        if not token:
            return False
        return self.validate_token(token)

    def current_user(self) -> Optional[PublicUser]:
        if self._current_user is None:
            return None
        return self._current_user.public()

    def logout(self) -> bool:
        """Drop the stored session and the principal; safe to repeat"""
        token = self.storage.get_item(self.token_key)
        if token:
            self.store.delete_session(token)

        self.storage.remove_item(self.token_key)
        self.storage.remove_item(self.user_id_key)

        if self._current_user is not None:
            logger.info("User logged out", user_id=self._current_user.id)
        self._clear_principal()
        return True

    # Authorization

    def has_permission(self, required_role: Optional[str]) -> bool:
        if not required_role:
            return True
        # Unknown roles cannot be satisfied
        if required_role not in ROLE_HIERARCHY or self._current_user is None:
            return False
        return ROLE_HIERARCHY.get(self._current_user.role, 0) >= ROLE_HIERARCHY[required_role]

    # Credentials

    def change_password(self, old_password: str, new_password: str) -> OperationResult:
        return run_operation(self._change_password, old_password, new_password)

    def _change_password(self, old_password: str, new_password: str) -> OperationResult:
        if self._current_user is None:
            raise UnauthenticatedError("No user is logged in")

        if not old_password or not verify_password(old_password, self._current_user.password_hash):
            raise InvalidCredentialsError("Current password is incorrect")

        self._check_new_password(new_password or "", "New password must be at least {n} characters long")

        user_id = self._current_user.id
        if not self.store.update_user_password(user_id, new_password):
            # Principal vanished from the store underneath us
            self.logout()
            raise NotFoundError("User not found")

        self._current_user = self.store.find_user_by_id(user_id)
        logger.info("Password changed", user_id=user_id)
        return OperationResult.ok(message="Password updated")
