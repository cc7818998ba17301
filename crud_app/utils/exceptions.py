"""Custom exceptions for the CRUD app"""

from typing import Optional


class CrudAppError(Exception):
    """Base exception for the CRUD app"""
    pass


class ConfigError(CrudAppError):
    """Configuration error"""
    pass


class StorageError(CrudAppError):
    """Durable storage could not be read or written"""
    pass


class AuthError(CrudAppError):
    """Error surfaced to callers as a failed operation result"""

    code = "error"
    default_message = "The operation could not be completed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(AuthError):
    """Required field missing or malformed"""
    code = "invalid_input"
    default_message = "Please fill in all fields"


class NotFoundError(AuthError):
    """No matching user, product or session"""
    code = "not_found"
    default_message = "Not found"


class InvalidCredentialsError(AuthError):
    """Password does not verify"""
    code = "invalid_credentials"
    default_message = "Incorrect password"


class PasswordMismatchError(AuthError):
    """Password and confirmation differ"""
    code = "password_mismatch"
    default_message = "Passwords do not match"


class WeakPasswordError(AuthError):
    """Password below the minimum length"""
    code = "weak_password"
    default_message = "Password is too short"


class UsernameTakenError(AuthError):
    code = "username_taken"
    default_message = "Username is already in use"


class EmailTakenError(AuthError):
    code = "email_taken"
    default_message = "Email is already registered"


class UnauthenticatedError(AuthError):
    """Operation requires a logged-in user"""
    code = "unauthenticated"
    default_message = "No user is logged in"


class UnauthorizedError(AuthError):
    """Role check failed"""
    code = "unauthorized"
    default_message = "You do not have permission to perform this action"
