"""
Error kinds raised by the credential services.

Each carries a machine-readable ``error`` code and the HTTP ``status`` the
API layer answers with. Token values are never put into messages.
"""


class AuthError(Exception):
    error = "AUTH_ERROR"
    status = 401
    message = "Authentication failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


class InvalidCredentials(AuthError):
    error = "INVALID_CREDENTIALS"
    status = 401
    message = "Invalid username or password"


class InvalidSignature(AuthError):
    error = "INVALID_TOKEN"
    status = 401
    message = "Access token is invalid"


class AccessTokenExpired(AuthError):
    error = "TOKEN_EXPIRED"
    status = 401
    message = "Access token has expired"


class RefreshTokenError(AuthError):
    status = 403


class TokenNotFound(RefreshTokenError):
    error = "REFRESH_TOKEN_NOT_FOUND"
    message = "Refresh token not found"


class TokenRevoked(RefreshTokenError):
    error = "REFRESH_TOKEN_REVOKED"
    message = "Refresh token has been revoked"


class TokenExpired(RefreshTokenError):
    error = "REFRESH_TOKEN_EXPIRED"
    message = "Refresh token has expired. Please login again"


class DuplicateToken(AuthError):
    """Generated token collided with a stored one: the random source is broken."""

    error = "DUPLICATE_TOKEN"
    status = 500
    message = "Refresh token collision"
