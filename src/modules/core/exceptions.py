"""API error boundary.

``api_exception_handler`` is registered as DRF's ``EXCEPTION_HANDLER``.  It is
the only place where domain error kinds become HTTP status codes.  Every error
response shares one envelope::

    {
        "type": "validation_error" | "client_error" | "server_error",
        "errors": [{"code": "...", "detail": "...", "attr": "..." | null}]
    }

Business messages are returned verbatim.  ``InternalError`` returns a generic
message and the original cause is logged server-side only.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

import structlog
from pydantic import BaseModel as PydanticModel
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

from shared.domain.errors import DomainError, ErrorKind, InvalidInput

logger = structlog.get_logger(__name__)

DTO = TypeVar("DTO", bound=PydanticModel)

GENERIC_INTERNAL_MESSAGE = "Error interno del servidor."

STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_STATE: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def validate_dto(dto_class: Type[DTO], data: Mapping[str, Any]) -> DTO:
    """Build a DTO from request data, reporting failures as ``InvalidInput``."""
    try:
        return dto_class.model_validate(dict(data))
    except PydanticValidationError as exc:
        raise InvalidInput.from_validation_error(exc) from exc


def _envelope(
    error_type: str, errors: List[Dict[str, Optional[str]]]
) -> Dict[str, Any]:
    return {"type": error_type, "errors": errors}


def _error_type(status_code: int) -> str:
    if status_code >= 500:
        return "server_error"
    if status_code == status.HTTP_400_BAD_REQUEST:
        return "validation_error"
    return "client_error"


def _flatten_drf_detail(
    detail: Any, attr: Optional[str] = None
) -> List[Dict[str, Optional[str]]]:
    if isinstance(detail, dict):
        errors: List[Dict[str, Optional[str]]] = []
        for key, value in detail.items():
            nested = key if attr is None else f"{attr}.{key}"
            field = None if key == "non_field_errors" else nested
            errors.extend(_flatten_drf_detail(value, field))
        return errors
    if isinstance(detail, list):
        errors = []
        for value in detail:
            errors.extend(_flatten_drf_detail(value, attr))
        return errors
    return [
        {
            "code": getattr(detail, "code", "error"),
            "detail": str(detail),
            "attr": attr,
        }
    ]


def _domain_error_response(exc: DomainError, context: Mapping[str, Any]) -> Response:
    status_code = STATUS_BY_KIND.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    view = context.get("view")
    log = logger.bind(
        error_kind=exc.kind.value,
        view=type(view).__name__ if view else None,
    )

    if exc.kind == ErrorKind.INTERNAL:
        log.error("api.internal_error", cause=exc.message, exc_info=exc)
        detail = GENERIC_INTERNAL_MESSAGE
    else:
        log.info("api.domain_error", detail=exc.message)
        detail = exc.message

    body = _envelope(
        _error_type(status_code),
        [{"code": exc.kind.value, "detail": detail, "attr": exc.attr}],
    )
    return Response(body, status=status_code)


def api_exception_handler(
    exc: Exception, context: Mapping[str, Any]
) -> Optional[Response]:
    """DRF exception handler producing the standard error envelope."""
    if isinstance(exc, DomainError):
        return _domain_error_response(exc, context)

    if isinstance(exc, PydanticValidationError):
        return _domain_error_response(InvalidInput.from_validation_error(exc), context)

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, APIException):
        detail = exc.detail
    else:
        detail = response.data.get("detail", response.data)
    errors = _flatten_drf_detail(detail)

    response.data = _envelope(_error_type(response.status_code), errors)
    return response
