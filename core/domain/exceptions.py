"""
Domain error taxonomy.

CRITICAL: This file must contain ZERO imports from:
- sqlalchemy
- pydantic
- fastapi

Every error raised by the core derives from DomainError and carries a
stable ``code`` that the transport layer translates into a response
category (see api/errors.py).
"""
from typing import Optional


class DomainError(Exception):
    """Base class for all errors signalled by the core."""

    code: str = "domain_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationError(DomainError):
    """Malformed input reached the core."""

    code = "validation_error"


class NotFoundError(DomainError):
    """Referenced Order or Payment does not exist."""

    code = "not_found"

    def __init__(self, entity: str, key: str, value: str):
        super().__init__(f"{entity} with {key} {value} not found")
        self.entity = entity
        self.key = key
        self.value = value


class AuthorizationError(DomainError):
    """Acting user does not own the resource."""

    code = "forbidden"


class ConflictError(DomainError):
    """An invariant would be violated (e.g. second successful payment)."""

    code = "conflict"


class DuplicateKeyError(ConflictError):
    """Unique order number / payment reference already taken."""

    code = "duplicate_key"


class ConcurrencyError(ConflictError):
    """Optimistic version check lost against a concurrent writer."""

    code = "concurrent_modification"


class InvalidStateError(DomainError):
    """Operation is not legal from the current lifecycle state."""

    code = "invalid_state"


class UnsupportedProviderError(DomainError):
    """No gateway is registered under the requested provider name."""

    code = "unsupported_provider"

    def __init__(self, provider: str):
        super().__init__(f"Payment provider '{provider}' is not supported")
        self.provider = provider


class GatewayError(DomainError):
    """Remote provider call failed or returned an unexpected shape."""

    code = "gateway_error"

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.provider = provider


class GatewayTimeoutError(GatewayError):
    """Remote provider call did not complete in time."""

    code = "gateway_timeout"


class AuthenticityError(DomainError):
    """Inbound webhook token/signature is invalid."""

    code = "webhook_not_authentic"
