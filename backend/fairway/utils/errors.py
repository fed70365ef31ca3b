from collections.abc import Iterator
from contextlib import contextmanager
from enum import auto
from typing import Any

from asyncpg.exceptions import InterfaceError, PostgresError, UniqueViolationError
from fastapi import HTTPException
from starlette import status

from fairway.utils.logging import logger
from fairway.utils.types import EnumAutoStr


class ErrorCode(EnumAutoStr):
    NOT_FOUND = auto()
    VALIDATION = auto()
    INSUFFICIENT_BALANCE = auto()
    LIMIT_EXCEEDED = auto()
    INVALID_REFERENCE = auto()
    CONFLICT = auto()
    INTERNAL = auto()
    FORBIDDEN = auto()
    UNAUTHORIZED = auto()


error_code_to_status = {
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.INSUFFICIENT_BALANCE: status.HTTP_402_PAYMENT_REQUIRED,
    ErrorCode.LIMIT_EXCEEDED: status.HTTP_403_FORBIDDEN,
    ErrorCode.INVALID_REFERENCE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
}


class FairwayError(HTTPException):
    """
    A structured, user-facing failure.

    Subclasses HTTPException so that routes and logic raise it the same way, the app-level handler
    renders `code`, `message` and `details` as the response body.
    """

    def __init__(
        self, code: ErrorCode, message: str, details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(error_code_to_status[code], message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code.value, "message": self.message, "details": self.details}


def not_found(entity: str, entity_id: int | str) -> FairwayError:
    return FairwayError(
        ErrorCode.NOT_FOUND, f"{entity} not found", {"entity": entity, "id": entity_id}
    )


@contextmanager
def translate_store_errors(operation: str) -> Iterator[None]:
    """
    Map failures of the data store inside an atomic unit onto the error taxonomy.

    A unique violation means a concurrent writer got there first, anything else from the store is
    reported as an internal error. Structured errors raised inside the block pass through.
    """
    try:
        yield
    except FairwayError:
        raise
    except UniqueViolationError as exc:
        logger.warning(f"Conflict during {operation}: {exc}")
        raise FairwayError(
            ErrorCode.CONFLICT, f"Concurrent update detected during {operation}"
        ) from exc
    except (PostgresError, InterfaceError, OSError) as exc:
        logger.exception(f"Store failure during {operation}")
        raise FairwayError(ErrorCode.INTERNAL, "An unexpected error occurred") from exc
