"""
Comparison coordinator.

Orchestrates the public operations:
- submit_value / update_value: register an encrypted salary
- compare / batch_compare: evaluate "my salary > theirs" under encryption
- get_comparison / has_comparison / get_my_value: queries

All business rules are enforced here before any work is delegated to
the homomorphic engine. Each operation runs under one coordinator-wide
lock, so check-then-act sequences see a total order even when the
coordinator is hosted behind a threaded server.
"""
import logging
import threading
from typing import Callable, Iterable, List, Optional, Sequence, Union

from salarycmp.engine.base import HomomorphicEngine
from salarycmp.server.grants import AccessGrantRegistry
from salarycmp.server.ledger import ComparisonLedger
from salarycmp.server.store import ValueStore
from salarycmp.shared.config import CoordinatorConfig
from salarycmp.shared.errors import (
    AlreadyPerformed,
    BatchTooLarge,
    ComparisonError,
    DuplicateInBatch,
    EmptyBatch,
    NotFound,
    SelfComparison,
    Unauthorized,
)
from salarycmp.shared.protocol import (
    CiphertextHandle,
    ComparisonPerformed,
    CoordinatorInfo,
    Principal,
    ValueSubmitted,
    ValueUpdated,
)
from salarycmp.shared.utils import utc_now

logger = logging.getLogger(__name__)

Event = Union[ValueSubmitted, ValueUpdated, ComparisonPerformed]
Listener = Callable[[Event], None]


class ComparisonCoordinator:
    """
    Access-controlled record and comparison state machine.

    Per principal, value presence goes Absent -> Present and never back.
    Per ordered pair, a comparison goes NoRecord -> Performed and never back.
    """

    def __init__(
        self,
        engine: HomomorphicEngine,
        config: Optional[CoordinatorConfig] = None,
        store: Optional[ValueStore] = None,
        ledger: Optional[ComparisonLedger] = None,
        grants: Optional[AccessGrantRegistry] = None,
        clock: Callable = utc_now,
    ):
        """
        Initialize coordinator.

        Args:
            engine: Homomorphic engine owning all ciphertexts
            config: Policy configuration (defaults to CoordinatorConfig())
            store: Value storage (fresh if omitted)
            ledger: Comparison storage (fresh if omitted)
            grants: Grant relation (fresh if omitted)
            clock: Returns the wall-clock time used to stamp events
        """
        self.engine = engine
        self.config = config or CoordinatorConfig()
        self.store = store if store is not None else ValueStore()
        self.ledger = ledger if ledger is not None else ComparisonLedger()
        self.grants = grants if grants is not None else AccessGrantRegistry()
        self.clock = clock
        self.principal: Principal = engine.system

        self._lock = threading.RLock()
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        """Deliver every emitted event to `listener`, synchronously."""
        self._listeners.append(listener)

    def _emit(self, event: Event) -> Event:
        # Runs after state is committed; listener errors are logged, not raised.
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(f"Listener {listener!r} failed on {type(event).__name__}")
        return event

    def _check_granted(self, handle: CiphertextHandle, principal: Principal) -> None:
        if not self.grants.is_granted(handle.id, principal):
            logger.error(f"Grant registry lost {principal} on {handle.id}")
            raise RuntimeError(f"{principal} holds no grant on {handle.id}")

    def _grant(self, handle: CiphertextHandle, grantees: Iterable[Principal]) -> None:
        for grantee in grantees:
            self.grants.grant(handle.id, grantee)
            if grantee == self.principal:
                self.engine.grant_access_self(handle)
            else:
                self.engine.grant_access(handle, grantee)

    def _store_value(self, caller: Principal, external_handle: bytes, proof: bytes) -> None:
        handle = self.engine.import_ciphertext(external_handle, proof)
        self.store.put(caller, handle)
        self._grant(handle, (caller, self.principal))

    def _require_value(self, principal: Principal, role: str) -> CiphertextHandle:
        value = self.store.get(principal)
        if value is None:
            raise NotFound(principal, role)
        return value.handle

    def _perform(self, caller: Principal, other: Principal) -> ComparisonPerformed:
        mine = self._require_value(caller, "caller")
        theirs = self._require_value(other, "target")

        result = self.engine.greater_than(mine, theirs)
        self.ledger.record(caller, other, result)
        self._grant(result, (caller, other, self.principal))

        logger.info(f"Comparison performed: {caller} -> {other}")
        return self._emit(ComparisonPerformed(requester=caller, target=other, time=self.clock()))

    def submit_value(self, caller: Principal, external_handle: bytes, proof: bytes) -> ValueSubmitted:
        """
        Register the caller's encrypted value.

        Args:
            caller: Principal submitting the value
            external_handle: Client-encrypted value
            proof: Validity proof for `external_handle`

        Returns:
            The emitted ValueSubmitted event

        Raises:
            InvalidCiphertext: if the engine rejects the input
        """
        with self._lock:
            try:
                self._store_value(caller, external_handle, proof)
            except ComparisonError as e:
                logger.debug(f"submit_value rejected for {caller}: {e.code.value}")
                raise
            logger.info(f"Value submitted: {caller}")
            return self._emit(ValueSubmitted(principal=caller, time=self.clock()))

    def update_value(self, caller: Principal, external_handle: bytes, proof: bytes) -> ValueUpdated:
        """
        Replace the caller's encrypted value.

        Existing comparison records are kept as they are.

        Raises:
            NotFound: if the caller never submitted a value
            InvalidCiphertext: if the engine rejects the input
        """
        with self._lock:
            try:
                if not self.store.has(caller):
                    raise NotFound(caller, "caller", f"{caller} must submit a value before updating it")
                self._store_value(caller, external_handle, proof)
            except ComparisonError as e:
                logger.debug(f"update_value rejected for {caller}: {e.code.value}")
                raise
            logger.info(f"Value updated: {caller}")
            return self._emit(ValueUpdated(principal=caller, time=self.clock()))

    def compare(self, caller: Principal, other: Principal) -> ComparisonPerformed:
        """
        Compare caller's value against other's.

        The result encrypts "caller's value > other's value" and is
        decryptable by both participants.

        Raises:
            SelfComparison: if caller == other
            NotFound: if either side has no value
            AlreadyPerformed: if (caller, other) was compared before
        """
        with self._lock:
            try:
                if caller == other:
                    raise SelfComparison(caller)
                self._require_value(caller, "caller")
                self._require_value(other, "target")
                if self.ledger.exists(caller, other):
                    raise AlreadyPerformed(caller, other)
                return self._perform(caller, other)
            except ComparisonError as e:
                logger.debug(f"compare {caller} -> {other} rejected: {e.code.value}")
                raise

    def batch_compare(self, caller: Principal, others: Sequence[Principal]) -> List[ComparisonPerformed]:
        """
        Compare caller's value against each of `others`, in order.

        Pairs already compared are skipped silently. The batch is not
        atomic: if an entry fails, entries before it stay recorded.

        Args:
            caller: Requesting principal
            others: Targets, at most config.max_batch_size, no repeats

        Returns:
            Events for the comparisons actually performed, in input order

        Raises:
            EmptyBatch, BatchTooLarge, DuplicateInBatch: on invalid input
            SelfComparison: when an entry equals caller
            NotFound: when caller or an entry has no value
        """
        others = list(others)
        with self._lock:
            try:
                if not others:
                    raise EmptyBatch()
                if len(others) > self.config.max_batch_size:
                    raise BatchTooLarge(len(others), self.config.max_batch_size)
                for i, other in enumerate(others):
                    if other in others[:i]:
                        raise DuplicateInBatch(other, i)
                self._require_value(caller, "caller")

                events = []
                skipped = 0
                for other in others:
                    if other == caller:
                        raise SelfComparison(caller)
                    self._require_value(other, "target")
                    if self.ledger.exists(caller, other):
                        logger.debug(f"Batch skip: {caller} -> {other} already performed")
                        skipped += 1
                        continue
                    events.append(self._perform(caller, other))
            except ComparisonError as e:
                logger.debug(f"batch_compare for {caller} stopped: {e.code.value}")
                raise

            logger.info(f"Batch compare by {caller}: {len(events)} performed, {skipped} skipped")
            return events

    def get_comparison(self, viewer: Principal, user1: Principal, user2: Principal) -> CiphertextHandle:
        """
        Return the result handle for ordered pair (user1, user2).

        There is no symmetric lookup: query with the order used at
        compare time.

        Raises:
            Unauthorized: if viewer is neither user1 nor user2
            NotFound: if the pair was never compared
        """
        with self._lock:
            if viewer != user1 and viewer != user2:
                logger.debug(f"get_comparison {user1} -> {user2} refused for {viewer}")
                raise Unauthorized(f"{viewer} is not a participant of {user1} -> {user2}")

            record = self.ledger.get(user1, user2)
            if record is None:
                raise NotFound(user1, "comparison", f"no comparison {user1} -> {user2}")

            self._check_granted(record.result, viewer)
            return record.result

    def has_comparison(self, user1: Principal, user2: Principal) -> bool:
        with self._lock:
            return self.ledger.exists(user1, user2)

    def get_my_value(self, caller: Principal) -> CiphertextHandle:
        """
        Return the caller's current value handle.

        Raises:
            NotFound: if the caller has no value
        """
        with self._lock:
            handle = self._require_value(caller, "caller")
            self._check_granted(handle, caller)
            return handle

    def has_value(self, principal: Principal) -> bool:
        with self._lock:
            return self.store.has(principal)

    def get_info(self) -> CoordinatorInfo:
        """Public counters: registered users and comparisons performed."""
        with self._lock:
            return CoordinatorInfo(
                system=self.principal,
                total_users=len(self.store),
                total_comparisons=len(self.ledger),
                max_batch_size=self.config.max_batch_size,
            )
