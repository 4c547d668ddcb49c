"""
Homomorphic engine contract.

The engine owns every ciphertext. Callers only ever see handles; the
engine is the sole enforcement point for disclosure of cleartext.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Union

from salarycmp.shared.protocol import CiphertextHandle, Principal, SYSTEM_PRINCIPAL

#: Largest plaintext an encrypted uint64 input may carry.
UINT64_MAX = 2**64 - 1


@dataclass(frozen=True)
class ExternalInput:
    """
    Client-encrypted value as submitted to the coordinator.

    `handle` is the serialized ciphertext, `proof` binds it to the
    engine that must accept it.
    """
    handle: bytes
    proof: bytes


class HomomorphicEngine(ABC):
    """Abstract base class for homomorphic engine implementations."""

    #: Principal the engine treats as "the coordinating system itself".
    system: Principal = SYSTEM_PRINCIPAL

    @abstractmethod
    def encrypt_input(self, value: int) -> ExternalInput:
        """Encrypt a cleartext on the client side (public key only)."""
        pass

    @abstractmethod
    def import_ciphertext(self, external_handle: bytes, proof: bytes) -> CiphertextHandle:
        """
        Validate and internalize an externally supplied ciphertext.

        Raises:
            InvalidCiphertext: if the handle or proof does not verify
        """
        pass

    @abstractmethod
    def greater_than(self, a: CiphertextHandle, b: CiphertextHandle) -> CiphertextHandle:
        """Return a handle encrypting `a > b`."""
        pass

    @abstractmethod
    def grant_access(self, handle: CiphertextHandle, principal: Principal) -> None:
        """Allow `principal` to request disclosure of `handle`."""
        pass

    def grant_access_self(self, handle: CiphertextHandle) -> None:
        """Allow the coordinating system to use `handle`."""
        self.grant_access(handle, self.system)

    @abstractmethod
    def reveal(self, handle: CiphertextHandle, principal: Principal) -> Union[int, bool]:
        """
        Disclose the cleartext behind `handle` to `principal`.

        Raises:
            Unauthorized: if `principal` was never granted access
        """
        pass
