"""
Record and event definitions shared by the engine, server and client.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


# Principals are opaque, exactly-compared identities (e.g. account addresses).
Principal = str

# The coordinating system itself, granted access to every handle it creates.
SYSTEM_PRINCIPAL: Principal = "system"


class CiphertextType(Enum):
    """Plaintext type behind a ciphertext handle."""
    UINT64 = "euint64"   # salary values
    BOOL = "ebool"       # comparison results


@dataclass(frozen=True)
class CiphertextHandle:
    """
    Opaque reference to a ciphertext held by the homomorphic engine.

    Only the engine that issued a handle can operate on it or
    disclose what it encrypts.
    """
    id: str
    type: CiphertextType = CiphertextType.UINT64

    def __str__(self) -> str:
        return f"{self.type.value}:{self.id}"


@dataclass(frozen=True)
class EncryptedValue:
    """A participant's current encrypted salary."""
    handle: CiphertextHandle
    owner: Principal


@dataclass(frozen=True)
class ComparisonRecord:
    """
    Result of comparing requester's value against target's.

    `result` encrypts `requester_value > target_value`.
    """
    requester: Principal
    target: Principal
    result: CiphertextHandle
    performed: bool = True


@dataclass(frozen=True)
class ValueSubmitted:
    principal: Principal
    time: datetime


@dataclass(frozen=True)
class ValueUpdated:
    principal: Principal
    time: datetime


@dataclass(frozen=True)
class ComparisonPerformed:
    requester: Principal
    target: Principal
    time: datetime


@dataclass(frozen=True)
class CoordinatorInfo:
    """Public counters, safe to expose to anyone."""
    system: Principal
    total_users: int
    total_comparisons: int
    max_batch_size: int
