"""
Shared utility functions.
"""
import re
import time
from datetime import datetime, timezone
from typing import Optional


_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


def utc_now() -> datetime:
    """Wall-clock time used to stamp events."""
    return datetime.now(timezone.utc)


def is_valid_address(address: str) -> bool:
    """
    Check that a principal looks like an account address.

    Args:
        address: Candidate address, e.g. "0x" followed by 40 hex digits

    Returns:
        True if the address is well formed
    """
    return bool(_ADDRESS_RE.match(address))


class Timer:
    """Context manager for timing operations."""

    def __init__(self, name: str = "Operation"):
        self.name = name
        self.start_time: Optional[float] = None
        self.elapsed: Optional[float] = None

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args) -> None:
        self.elapsed = time.perf_counter() - self.start_time

    @property
    def elapsed_ms(self) -> float:
        """Get elapsed time in milliseconds."""
        if self.elapsed is None:
            if self.start_time is not None:
                return (time.perf_counter() - self.start_time) * 1000
            return 0.0
        return self.elapsed * 1000
