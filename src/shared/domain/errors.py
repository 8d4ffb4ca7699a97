"""Domain error taxonomy shared by every bounded context.

Each module raises the most specific subclass at the point of detection
(e.g. ``OrderNotFound(NotFound)``).  The ``kind`` attribute is the only
thing the transport boundary looks at when choosing a response, so
modules never import HTTP concerns.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pydantic import ValidationError


class ErrorKind(StrEnum):
    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"
    INVALID_STATE = "invalid_state"
    INVALID_TRANSITION = "invalid_transition"
    UNAUTHORIZED = "unauthorized"
    INTERNAL = "internal"


class DomainError(Exception):
    """Base class for every business failure raised by the service layer."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, *, attr: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.attr = attr


class NotFound(DomainError):
    """A referenced customer, product, order, status, coupon or address is missing."""

    kind = ErrorKind.NOT_FOUND


class InvalidInput(DomainError):
    """Malformed request data: format, range or required-field violations."""

    kind = ErrorKind.INVALID_INPUT

    @classmethod
    def from_validation_error(cls, exc: ValidationError) -> InvalidInput:
        """Build from a pydantic ``ValidationError`` keeping the first message.

        Messages raised inside our own validators are reported verbatim,
        without pydantic's ``"Value error, "`` prefix.
        """
        errors = exc.errors()
        if not errors:
            return cls(str(exc))
        first = errors[0]
        original = (first.get("ctx") or {}).get("error")
        message = str(original) if original is not None else first["msg"]
        location = ".".join(str(part) for part in first.get("loc", ()))
        return cls(message, attr=location or None)


class InvalidState(DomainError):
    """A well-formed request breaks a business rule."""

    kind = ErrorKind.INVALID_STATE


class InvalidTransition(InvalidState):
    """The order status graph does not allow the requested move."""

    kind = ErrorKind.INVALID_TRANSITION


class Unauthorized(DomainError):
    """The authenticated principal has no usable customer profile."""

    kind = ErrorKind.UNAUTHORIZED


class InternalError(DomainError):
    """Unexpected failure; the message may carry the original cause."""

    kind = ErrorKind.INTERNAL
