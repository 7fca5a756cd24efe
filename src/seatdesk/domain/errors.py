"""Error kinds raised by inventory operations.

Every failure is terminal for the call: the batch it belonged to was rolled
back and nothing was retried.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Inventory error codes."""

    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"


@dataclass(frozen=True)
class InventoryError(Exception):
    """Base inventory error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class InvalidInputError(InventoryError):
    """Raised when required fields are missing or malformed."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_INPUT, message=message)


class NotFoundError(InventoryError):
    """Raised when a referenced seat, package or transaction does not exist."""

    def __init__(self, kind: str, ids: list[str] | str) -> None:
        ids = [ids] if isinstance(ids, str) else list(ids)
        super().__init__(
            code=ErrorCode.NOT_FOUND,
            message=f"{kind} not found: {', '.join(ids)}",
        )
        self.ids = ids


class ConflictError(InventoryError):
    """Raised when seats were claimed by another operation first."""

    def __init__(self, seat_ids: list[str], message: str | None = None) -> None:
        super().__init__(
            code=ErrorCode.CONFLICT,
            message=message or f"Seats already sold: {', '.join(seat_ids)}",
        )
        self.seat_ids = list(seat_ids)


class CapacityExceededError(InventoryError):
    """Raised when a sponsorship package has no slots left."""

    def __init__(self, package_id: str) -> None:
        super().__init__(
            code=ErrorCode.CAPACITY_EXCEEDED,
            message=f"No slots remaining for package {package_id}",
        )
        self.package_id = package_id
