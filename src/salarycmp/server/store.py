"""
Per-principal encrypted value storage.
"""
from dataclasses import dataclass, field
from typing import Dict, Optional, Set

from salarycmp.shared.protocol import CiphertextHandle, EncryptedValue, Principal


@dataclass
class ValueStore:
    """
    In-memory value database.

    Holds exactly one current EncryptedValue per principal. Entries are
    replaced on update and never deleted, so presence is monotonic.
    """
    values: Dict[Principal, EncryptedValue] = field(default_factory=dict)
    present: Set[Principal] = field(default_factory=set)

    def __len__(self) -> int:
        return len(self.present)

    def __contains__(self, owner: Principal) -> bool:
        return self.has(owner)

    def put(self, owner: Principal, handle: CiphertextHandle) -> None:
        """Register or replace the encrypted value for `owner`."""
        self.values[owner] = EncryptedValue(handle=handle, owner=owner)
        self.present.add(owner)

    def get(self, owner: Principal) -> Optional[EncryptedValue]:
        return self.values.get(owner)

    def has(self, owner: Principal) -> bool:
        return owner in self.present
