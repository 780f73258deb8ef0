from __future__ import annotations


class RoleGuardError(Exception):
    """Base class for access-control errors."""


class RegistryConfigError(RoleGuardError):
    """Permission catalog or route table is misconfigured (dangling parent, cycle, unknown role)."""


class RoleDataInvalid(RoleGuardError, ValueError):
    """Cached or caller-supplied role data has the wrong shape."""


class ProductionTestModeError(RoleGuardError):
    """Test mode was requested while running in production."""


class AuthorityError(RoleGuardError):
    """Base class for remote role authority failures."""


class AuthorityTimeout(AuthorityError):
    """The role authority did not answer within the configured timeout."""


class AuthorityResponseInvalid(AuthorityError):
    """The role authority answered with a malformed payload."""


class AuthorityHTTPError(AuthorityError):
    """Transport failure (status 0) or an error status from the role authority."""

    def __init__(self, status_code: int, message: str | None = None):
        self.status_code = status_code
        super().__init__(message or f"HTTP error {status_code}")


__all__ = [
    "RoleGuardError",
    "RegistryConfigError",
    "RoleDataInvalid",
    "ProductionTestModeError",
    "AuthorityError",
    "AuthorityTimeout",
    "AuthorityResponseInvalid",
    "AuthorityHTTPError",
]
