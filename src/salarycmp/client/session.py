"""
Client-side session for one participant.

Coordinates the participant's flow:
1. Encrypt a salary and submit (or update) it
2. Request comparisons against other participants
3. Ask the engine to disclose results the participant is entitled to

Retrying a rejected submission is a policy of this client, not of the
coordinator.
"""
import logging
import time
from typing import Callable, List, Sequence, Union

from salarycmp.engine.base import HomomorphicEngine
from salarycmp.server.coordinator import ComparisonCoordinator
from salarycmp.shared.config import MAX_SALARY, MIN_SALARY
from salarycmp.shared.errors import InvalidCiphertext
from salarycmp.shared.protocol import (
    ComparisonPerformed,
    Principal,
    ValueSubmitted,
    ValueUpdated,
)

logger = logging.getLogger(__name__)


class SalaryClient:
    """
    Participant-side coordinator.

    Handles the submit/compare/reveal lifecycle for a single principal.
    """

    DEFAULT_MAX_RETRIES = 3
    DEFAULT_RETRY_DELAY = 2.0  # seconds

    def __init__(
        self,
        principal: Principal,
        coordinator: ComparisonCoordinator,
        engine: HomomorphicEngine,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize salary client.

        Args:
            principal: Identity this client acts as
            coordinator: Coordinator holding records and grants
            engine: Engine used to encrypt inputs and request disclosures
            max_retries: Extra submission attempts after InvalidCiphertext
            retry_delay: Seconds to wait between attempts
            sleep: Sleep function (injectable for tests)
        """
        self.principal = principal
        self.coordinator = coordinator
        self.engine = engine
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._sleep = sleep

    @property
    def has_salary(self) -> bool:
        return self.coordinator.has_value(self.principal)

    def submit_salary(self, amount: int) -> Union[ValueSubmitted, ValueUpdated]:
        """
        Encrypt and register a salary, updating it if one exists.

        Each attempt uses a fresh encryption, since a rejected proof
        cannot be resubmitted as is.

        Args:
            amount: Salary in whole dollars

        Returns:
            ValueSubmitted or ValueUpdated event

        Raises:
            ValueError: if amount is outside [MIN_SALARY, MAX_SALARY]
            InvalidCiphertext: if every attempt was rejected
        """
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ValueError(f"Salary must be an integer, got {amount!r}")
        if not MIN_SALARY <= amount <= MAX_SALARY:
            raise ValueError(f"Salary must be between {MIN_SALARY} and {MAX_SALARY}")

        attempt = 0
        while True:
            encrypted = self.engine.encrypt_input(amount)
            try:
                if self.has_salary:
                    return self.coordinator.update_value(self.principal, encrypted.handle, encrypted.proof)
                return self.coordinator.submit_value(self.principal, encrypted.handle, encrypted.proof)
            except InvalidCiphertext:
                if attempt >= self.max_retries:
                    raise
                attempt += 1
                logger.warning(
                    f"Submission by {self.principal} rejected, "
                    f"retrying ({attempt}/{self.max_retries})"
                )
                self._sleep(self.retry_delay)

    def compare_with(self, other: Principal) -> ComparisonPerformed:
        return self.coordinator.compare(self.principal, other)

    def compare_many(self, others: Sequence[Principal]) -> List[ComparisonPerformed]:
        return self.coordinator.batch_compare(self.principal, others)

    def reveal_my_salary(self) -> int:
        """Decrypt this participant's own stored salary."""
        handle = self.coordinator.get_my_value(self.principal)
        return self.engine.reveal(handle, self.principal)

    def reveal_comparison(self, requester: Principal, target: Principal) -> bool:
        """
        Decrypt the result of comparison (requester, target).

        Returns:
            True if requester's salary is strictly greater than target's
        """
        handle = self.coordinator.get_comparison(self.principal, requester, target)
        return bool(self.engine.reveal(handle, self.principal))
