"""Server-side record keeping and comparison orchestration."""
from salarycmp.server.grants import AccessGrantRegistry
from salarycmp.server.store import ValueStore
from salarycmp.server.ledger import ComparisonLedger
from salarycmp.server.coordinator import ComparisonCoordinator

__all__ = [
    "AccessGrantRegistry",
    "ValueStore",
    "ComparisonLedger",
    "ComparisonCoordinator",
]
