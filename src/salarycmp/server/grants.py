"""
Access grant relation.

Grants are additive only: once a principal may decrypt a ciphertext,
it always may. This keeps every comparison result re-derivable by
both participants indefinitely.
"""
from typing import Dict, FrozenSet, Set

from salarycmp.shared.protocol import Principal


class AccessGrantRegistry:
    """Set of (ciphertext_id, grantee) pairs."""

    def __init__(self):
        self._grants: Dict[str, Set[Principal]] = {}

    def __len__(self) -> int:
        return sum(len(grantees) for grantees in self._grants.values())

    def grant(self, ciphertext_id: str, grantee: Principal) -> None:
        """Record a grant. Granting twice is a no-op."""
        self._grants.setdefault(ciphertext_id, set()).add(grantee)

    def is_granted(self, ciphertext_id: str, grantee: Principal) -> bool:
        return grantee in self._grants.get(ciphertext_id, ())

    def grantees(self, ciphertext_id: str) -> FrozenSet[Principal]:
        return frozenset(self._grants.get(ciphertext_id, ()))
