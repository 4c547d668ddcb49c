"""
Homomorphic engine backed by LightPHE Paillier.

The engine holds the key pair and plays the role of the network's
decryption service: values are only decrypted for `reveal`, and only
for principals holding a grant.

Paillier is additively homomorphic, so `a > b` is evaluated as a
masked difference:

    m = r * (a - b) - s,   r >= 1,  0 <= s < r

which is positive exactly when a > b. Only the sign of m is ever
disclosed; the magnitude of a - b stays hidden behind r and s.
"""
import hashlib
import hmac
import logging
import secrets
import uuid
from pathlib import Path
from typing import Any, Dict, Optional, Set, Union

from lightphe import LightPHE

from salarycmp.engine.base import UINT64_MAX, ExternalInput, HomomorphicEngine
from salarycmp.shared.errors import InvalidCiphertext, Unauthorized
from salarycmp.shared.protocol import CiphertextHandle, CiphertextType, Principal

logger = logging.getLogger(__name__)


class PaillierEngine(HomomorphicEngine):
    """
    Paillier-based engine.

    Responsible for:
    - Generating or loading the Paillier key pair
    - Encrypting client inputs with the public key
    - Evaluating encrypted comparisons
    - Decrypting for granted principals only
    """

    DEFAULT_KEY_SIZE = 2048  # bits
    MASK_BITS = 32           # size of the random comparison mask r

    def __init__(
        self,
        key_size: int = DEFAULT_KEY_SIZE,
        keys: Optional[dict] = None,
        key_file: Optional[str] = None,
        secret: Optional[bytes] = None,
    ):
        """
        Initialize Paillier engine.

        Args:
            key_size: Paillier key size in bits (2048 recommended for security)
            keys: Pre-existing key pair dict
            key_file: Path to load keys from
            secret: Key for input proofs. Defaults to a digest of the
                private key, so an engine reloaded from the same key file
                still accepts inputs made before the reload.
        """
        self.key_size = key_size

        self._cs = LightPHE(
            algorithm_name="Paillier",
            keys=keys,
            key_file=key_file,
            key_size=key_size,
        )
        if self._cs.cs.keys.get("private_key") is None:
            raise ValueError("PaillierEngine needs the private key to serve disclosures")

        if secret is None:
            private_key = self._cs.cs.keys["private_key"]
            material = repr(sorted(private_key.items())).encode("ascii")
            secret = hashlib.sha256(b"salarycmp-input-proof:" + material).digest()
        self._secret = secret

        self._ciphertexts: Dict[str, Any] = {}
        self._acl: Dict[str, Set[Principal]] = {}

    def __len__(self) -> int:
        return len(self._ciphertexts)

    @property
    def modulus(self) -> int:
        """Public modulus n; plaintexts live in Z_n."""
        return self._cs.cs.keys["public_key"]["n"]

    @property
    def public_key(self) -> dict:
        """Get the public key for sharing with clients."""
        return {"public_key": self._cs.cs.keys.get("public_key", {})}

    def _bind(self, payload: bytes) -> bytes:
        # Only the private-key holder can tag inputs; the public modulus is not enough.
        return hmac.new(self._secret, payload, hashlib.sha256).digest()

    def _store(self, ciphertext: Any, type_: CiphertextType) -> CiphertextHandle:
        handle = CiphertextHandle(id=uuid.uuid4().hex, type=type_)
        self._ciphertexts[handle.id] = ciphertext
        self._acl[handle.id] = set()
        return handle

    def _lookup(self, handle: CiphertextHandle) -> Any:
        if handle.id not in self._ciphertexts:
            raise ValueError(f"Unknown ciphertext handle {handle}")
        return self._ciphertexts[handle.id]

    def _negate(self, ciphertext: Any) -> Any:
        # Enc(x) * (n - 1) == Enc(-x mod n)
        return ciphertext * (self.modulus - 1)

    def _to_signed(self, plaintext: int) -> int:
        n = self.modulus
        plaintext %= n
        return plaintext - n if plaintext > n // 2 else plaintext

    def encrypt_input(self, value: int) -> ExternalInput:
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError(f"Expected int, got {type(value).__name__}")
        if not 0 <= value <= UINT64_MAX:
            raise ValueError(f"Value {value} does not fit in uint64")

        ciphertext = self._cs.encrypt(value, silent=True)
        payload = str(ciphertext.value).encode("ascii")
        return ExternalInput(handle=payload, proof=self._bind(payload))

    def import_ciphertext(self, external_handle: bytes, proof: bytes) -> CiphertextHandle:
        if not hmac.compare_digest(self._bind(external_handle), proof):
            raise InvalidCiphertext("input proof does not verify")

        try:
            value = int(external_handle.decode("ascii"))
        except (UnicodeDecodeError, ValueError) as e:
            raise InvalidCiphertext(f"malformed ciphertext: {e}") from e

        n = self.modulus
        if not 0 < value < n * n:
            raise InvalidCiphertext("ciphertext outside Z_n^2")

        return self._store(self._cs.create_ciphertext_obj(value), CiphertextType.UINT64)

    def greater_than(self, a: CiphertextHandle, b: CiphertextHandle) -> CiphertextHandle:
        ca, cb = self._lookup(a), self._lookup(b)

        r = secrets.randbits(self.MASK_BITS) + 1
        s = secrets.randbelow(r)

        difference = ca + self._negate(cb)
        masked = difference * r + self._negate(self._cs.encrypt(s, silent=True))
        return self._store(masked, CiphertextType.BOOL)

    def grant_access(self, handle: CiphertextHandle, principal: Principal) -> None:
        self._lookup(handle)
        self._acl[handle.id].add(principal)

    def reveal(self, handle: CiphertextHandle, principal: Principal) -> Union[int, bool]:
        ciphertext = self._lookup(handle)
        if principal not in self._acl[handle.id]:
            logger.debug(f"Disclosure of {handle} refused for {principal}")
            raise Unauthorized(f"{principal} may not decrypt {handle}")

        plaintext = self._cs.decrypt(ciphertext)
        if handle.type is CiphertextType.BOOL:
            return self._to_signed(plaintext) > 0
        return plaintext

    def export_keys(self, path: Union[str, Path]) -> None:
        """Export full key pair (including private key) to file."""
        self._cs.export_keys(str(path), public=False)

    @classmethod
    def from_key_file(cls, key_file: Union[str, Path]) -> "PaillierEngine":
        """
        Create engine from exported key file.

        Args:
            key_file: Path to key file

        Returns:
            PaillierEngine instance
        """
        return cls(key_file=str(key_file))
