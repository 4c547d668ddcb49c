"""Homomorphic engines that own ciphertexts and serve disclosures."""
from salarycmp.engine.base import ExternalInput, HomomorphicEngine
from salarycmp.engine.mock import MockEngine

# PaillierEngine is optional (requires lightphe)
try:
    from salarycmp.engine.paillier import PaillierEngine
    _HAS_PAILLIER = True
except ImportError:
    _HAS_PAILLIER = False

__all__ = ["ExternalInput", "HomomorphicEngine", "MockEngine"]

if _HAS_PAILLIER:
    __all__.append("PaillierEngine")
