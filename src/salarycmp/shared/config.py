"""
Policy constants and coordinator configuration.
"""
from pydantic import BaseModel, ConfigDict, Field


DEFAULT_MAX_BATCH_SIZE = 10

# Accepted salary range for client-side submission (USD).
MIN_SALARY = 1
MAX_SALARY = 10_000_000


class CoordinatorConfig(BaseModel):
    """Configuration for ComparisonCoordinator."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    max_batch_size: int = Field(
        default=DEFAULT_MAX_BATCH_SIZE,
        ge=1,
        description="Bounds the batch_compare input length",
    )
