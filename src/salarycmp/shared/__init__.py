"""Shared records, errors, configuration and utilities."""
from salarycmp.shared.protocol import (
    Principal,
    SYSTEM_PRINCIPAL,
    CiphertextType,
    CiphertextHandle,
    EncryptedValue,
    ComparisonRecord,
    ValueSubmitted,
    ValueUpdated,
    ComparisonPerformed,
    CoordinatorInfo,
)
from salarycmp.shared.errors import (
    ErrorCode,
    ComparisonError,
    InvalidCiphertext,
    NotFound,
    SelfComparison,
    AlreadyPerformed,
    Unauthorized,
    EmptyBatch,
    BatchTooLarge,
    DuplicateInBatch,
)
from salarycmp.shared.config import (
    CoordinatorConfig,
    DEFAULT_MAX_BATCH_SIZE,
    MIN_SALARY,
    MAX_SALARY,
)
from salarycmp.shared.utils import Timer, utc_now, is_valid_address

__all__ = [
    "Principal",
    "SYSTEM_PRINCIPAL",
    "CiphertextType",
    "CiphertextHandle",
    "EncryptedValue",
    "ComparisonRecord",
    "ValueSubmitted",
    "ValueUpdated",
    "ComparisonPerformed",
    "CoordinatorInfo",
    "ErrorCode",
    "ComparisonError",
    "InvalidCiphertext",
    "NotFound",
    "SelfComparison",
    "AlreadyPerformed",
    "Unauthorized",
    "EmptyBatch",
    "BatchTooLarge",
    "DuplicateInBatch",
    "CoordinatorConfig",
    "DEFAULT_MAX_BATCH_SIZE",
    "MIN_SALARY",
    "MAX_SALARY",
    "Timer",
    "utc_now",
    "is_valid_address",
]
