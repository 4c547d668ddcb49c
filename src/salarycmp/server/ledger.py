"""
Comparison records, keyed by ordered principal pair.

(A, B) and (B, A) are distinct records. A record is written once and
never mutated or removed, even if either participant later updates
their value.
"""
from typing import Dict, Iterator, Optional, Tuple

from salarycmp.shared.protocol import CiphertextHandle, ComparisonRecord, Principal


class ComparisonLedger:
    """Append-only store of ComparisonRecords."""

    def __init__(self):
        self._records: Dict[Tuple[Principal, Principal], ComparisonRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ComparisonRecord]:
        return iter(self._records.values())

    def record(
        self,
        requester: Principal,
        target: Principal,
        result_handle: CiphertextHandle,
    ) -> ComparisonRecord:
        """
        Insert the result of comparing requester against target.

        Args:
            requester: Principal whose value is on the left of `>`
            target: Principal whose value is on the right of `>`
            result_handle: Encrypted boolean from the engine

        Returns:
            The new record

        Raises:
            ValueError: if requester == target or the pair is already recorded
        """
        if requester == target:
            raise ValueError(f"Cannot record a comparison of {requester} with itself")
        key = (requester, target)
        if key in self._records:
            raise ValueError(f"Comparison {requester} -> {target} already recorded")

        record = ComparisonRecord(
            requester=requester,
            target=target,
            result=result_handle,
            performed=True,
        )
        self._records[key] = record
        return record

    def exists(self, requester: Principal, target: Principal) -> bool:
        return (requester, target) in self._records

    def get(self, requester: Principal, target: Principal) -> Optional[ComparisonRecord]:
        return self._records.get((requester, target))
