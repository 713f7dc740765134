"""Errors raised on the authentication path."""

__all__ = ["AuthenticationError"]


class AuthenticationError(Exception):
    """Upstream rejected the login (bad TOTP, credentials or API key).

    The token cache never stores anything when this is raised.
    """

    def __init__(self, message: str, account_key: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.account_key = account_key

    def __str__(self) -> str:
        if self.account_key:
            return f"AuthenticationError ({self.account_key}): {self.message}"
        return f"AuthenticationError: {self.message}"
