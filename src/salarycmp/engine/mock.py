"""
In-process engine for tests and demos.

Cleartexts are kept in memory behind random handle ids; nothing leaves
the engine except through `reveal`, which honours the same access
grants a real engine would. Input proofs are HMAC tags under a
per-engine secret, so inputs made for one engine are rejected by another.
"""
import hashlib
import hmac
import logging
import secrets
import uuid
from typing import Dict, Optional, Set, Union

from salarycmp.engine.base import UINT64_MAX, ExternalInput, HomomorphicEngine
from salarycmp.shared.errors import InvalidCiphertext, Unauthorized
from salarycmp.shared.protocol import CiphertextHandle, CiphertextType, Principal

logger = logging.getLogger(__name__)


class MockEngine(HomomorphicEngine):
    """Engine that stores cleartexts instead of ciphertexts."""

    def __init__(self, secret: Optional[bytes] = None):
        """
        Initialize mock engine.

        Args:
            secret: HMAC key for input proofs (random if omitted)
        """
        self._secret = secret or secrets.token_bytes(32)
        self._inputs: Dict[str, int] = {}
        self._cleartexts: Dict[str, Union[int, bool]] = {}
        self._acl: Dict[str, Set[Principal]] = {}

    def __len__(self) -> int:
        return len(self._cleartexts)

    def _sign(self, payload: bytes) -> bytes:
        return hmac.new(self._secret, payload, hashlib.sha256).digest()

    def _store(self, value: Union[int, bool], type_: CiphertextType) -> CiphertextHandle:
        handle = CiphertextHandle(id=uuid.uuid4().hex, type=type_)
        self._cleartexts[handle.id] = value
        self._acl[handle.id] = set()
        return handle

    def _lookup(self, handle: CiphertextHandle) -> Union[int, bool]:
        if handle.id not in self._cleartexts:
            raise ValueError(f"Unknown ciphertext handle {handle}")
        return self._cleartexts[handle.id]

    def encrypt_input(self, value: int) -> ExternalInput:
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError(f"Expected int, got {type(value).__name__}")
        if not 0 <= value <= UINT64_MAX:
            raise ValueError(f"Value {value} does not fit in uint64")

        token = uuid.uuid4().hex
        self._inputs[token] = value
        payload = token.encode("ascii")
        return ExternalInput(handle=payload, proof=self._sign(payload))

    def import_ciphertext(self, external_handle: bytes, proof: bytes) -> CiphertextHandle:
        if not hmac.compare_digest(self._sign(external_handle), proof):
            raise InvalidCiphertext("input proof does not verify")

        token = external_handle.decode("ascii", errors="replace")
        if token not in self._inputs:
            raise InvalidCiphertext("unknown input handle")

        return self._store(self._inputs[token], CiphertextType.UINT64)

    def greater_than(self, a: CiphertextHandle, b: CiphertextHandle) -> CiphertextHandle:
        return self._store(self._lookup(a) > self._lookup(b), CiphertextType.BOOL)

    def grant_access(self, handle: CiphertextHandle, principal: Principal) -> None:
        self._lookup(handle)
        self._acl[handle.id].add(principal)

    def reveal(self, handle: CiphertextHandle, principal: Principal) -> Union[int, bool]:
        value = self._lookup(handle)
        if principal not in self._acl[handle.id]:
            logger.debug(f"Disclosure of {handle} refused for {principal}")
            raise Unauthorized(f"{principal} may not decrypt {handle}")
        return value
