"""
ShieldNote Error Handling

All error codes and exception classes.
"""

from enum import IntEnum
from typing import Optional, Any


class ErrorCode(IntEnum):
    """Ledger error codes."""

    # 1xxx - General errors
    UNKNOWN_ERROR = 1000
    INVALID_PARAMETER = 1001
    INTERNAL_ERROR = 1002

    # 2xxx - Commitment tree errors
    TREE_FULL = 2001

    # 3xxx - Selection errors
    INSUFFICIENT_FUNDS = 3001

    # 4xxx - Key and signing errors
    KEY_UNAVAILABLE = 4001
    SIGNING_FAILED = 4002

    # 5xxx - Transfer errors
    ZERO_AMOUNT = 5001
    INVALID_MEMO_LENGTH = 5002
    INVALID_TRANSFER_STATE = 5003

    # 6xxx - Persistence errors
    SERIALIZATION_ERROR = 6001
    STORAGE_ERROR = 6002


class ShieldNoteError(Exception):
    """Base exception for all ShieldNote errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Any] = None
    ):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict for API responses."""
        result = {
            "code": self.code.value,
            "name": self.code.name,
            "message": self.message,
        }
        if self.details is not None:
            result["details"] = self.details
        return result


# ==============================================================================
# General Errors (1xxx)
# ==============================================================================

class InvalidParameterError(ShieldNoteError):
    def __init__(self, param: str, message: str = ""):
        msg = f"Invalid parameter: {param}"
        if message:
            msg += f" - {message}"
        super().__init__(ErrorCode.INVALID_PARAMETER, msg, {"parameter": param})


# ==============================================================================
# Commitment Tree Errors (2xxx)
# ==============================================================================

class TreeFullError(ShieldNoteError):
    """Accumulator exhausted. Requires operator action, never auto-recovered."""

    def __init__(self, capacity: int):
        self.capacity = capacity
        super().__init__(
            ErrorCode.TREE_FULL,
            f"Commitment tree is full: {capacity} leaves",
            {"capacity": capacity}
        )


# ==============================================================================
# Selection Errors (3xxx)
# ==============================================================================

class InsufficientFundsError(ShieldNoteError):
    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(
            ErrorCode.INSUFFICIENT_FUNDS,
            f"Insufficient funds: required {required}, available {available}",
            {"required": required, "available": available}
        )

    @property
    def shortfall(self) -> int:
        return self.required - self.available


# ==============================================================================
# Key and Signing Errors (4xxx)
# ==============================================================================

class KeyUnavailableError(ShieldNoteError):
    def __init__(self, path: str, reason: str = ""):
        self.path = path
        msg = f"Signing key unavailable for {path}"
        if reason:
            msg += f": {reason}"
        super().__init__(ErrorCode.KEY_UNAVAILABLE, msg, {"path": path})


class SigningError(ShieldNoteError):
    def __init__(self, path: str, reason: str = ""):
        self.path = path
        msg = f"Signing failed for {path}"
        if reason:
            msg += f": {reason}"
        super().__init__(
            ErrorCode.SIGNING_FAILED,
            msg,
            {"path": path, "reason": reason}
        )


# ==============================================================================
# Transfer Errors (5xxx)
# ==============================================================================

class ZeroAmountError(ShieldNoteError):
    def __init__(self):
        super().__init__(
            ErrorCode.ZERO_AMOUNT,
            "Transfer amount cannot be zero"
        )


class InvalidMemoLengthError(ShieldNoteError):
    def __init__(self, length: int, max_length: int):
        super().__init__(
            ErrorCode.INVALID_MEMO_LENGTH,
            f"Invalid memo length: {length} > {max_length}",
            {"length": length, "max_length": max_length}
        )


class TransferStateError(ShieldNoteError):
    def __init__(self, state: str, expected: str):
        super().__init__(
            ErrorCode.INVALID_TRANSFER_STATE,
            f"Invalid transfer state: {state} (expected: {expected})",
            {"state": state, "expected": expected}
        )


# ==============================================================================
# Persistence Errors (6xxx)
# ==============================================================================

class SerializationError(ShieldNoteError):
    def __init__(self, reason: str):
        super().__init__(
            ErrorCode.SERIALIZATION_ERROR,
            f"Serialization error: {reason}",
            {"reason": reason}
        )


class StorageError(ShieldNoteError):
    def __init__(self, reason: str):
        super().__init__(
            ErrorCode.STORAGE_ERROR,
            f"Storage error: {reason}",
            {"reason": reason}
        )
