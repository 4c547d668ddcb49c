"""
Caller-visible failures.

Every error is raised synchronously to the caller and never retried
by the coordinator. Retrying is a caller-side policy
(see salarycmp.client.session).
"""
from enum import Enum
from typing import Optional

from salarycmp.shared.protocol import Principal


class ErrorCode(Enum):
    INVALID_CIPHERTEXT = "invalid_ciphertext"
    NOT_FOUND = "not_found"
    SELF_COMPARISON = "self_comparison"
    ALREADY_PERFORMED = "already_performed"
    UNAUTHORIZED = "unauthorized"
    EMPTY_BATCH = "empty_batch"
    BATCH_TOO_LARGE = "batch_too_large"
    DUPLICATE_IN_BATCH = "duplicate_in_batch"


class ComparisonError(Exception):
    """Base class for all coordinator and engine failures."""

    code: ErrorCode

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"[{self.code.value}] {message}")


class InvalidCiphertext(ComparisonError):
    """The engine rejected an external handle or its proof. Needs a new proof."""
    code = ErrorCode.INVALID_CIPHERTEXT


class NotFound(ComparisonError):
    """
    A referenced principal has no registered value, or a comparison
    record does not exist.

    `role` tells which side was missing: "caller", "target" or "comparison".
    """
    code = ErrorCode.NOT_FOUND

    def __init__(self, principal: Principal, role: str, message: Optional[str] = None):
        self.principal = principal
        self.role = role
        super().__init__(message or f"{role} {principal} has no registered value")


class SelfComparison(ComparisonError):
    code = ErrorCode.SELF_COMPARISON

    def __init__(self, principal: Principal):
        self.principal = principal
        super().__init__(f"{principal} cannot be compared with itself")


class AlreadyPerformed(ComparisonError):
    """A direct compare was repeated; query the existing result instead."""
    code = ErrorCode.ALREADY_PERFORMED

    def __init__(self, requester: Principal, target: Principal):
        self.requester = requester
        self.target = target
        super().__init__(f"comparison {requester} -> {target} already performed")


class Unauthorized(ComparisonError):
    code = ErrorCode.UNAUTHORIZED


class EmptyBatch(ComparisonError):
    code = ErrorCode.EMPTY_BATCH

    def __init__(self):
        super().__init__("batch must contain at least one target")


class BatchTooLarge(ComparisonError):
    code = ErrorCode.BATCH_TOO_LARGE

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"batch of {size} exceeds the limit of {limit}")


class DuplicateInBatch(ComparisonError):
    code = ErrorCode.DUPLICATE_IN_BATCH

    def __init__(self, principal: Principal, index: int):
        self.principal = principal
        self.index = index
        super().__init__(f"{principal} appears more than once in batch (index {index})")
