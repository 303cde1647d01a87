"""Backoff policy model."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from querywait.domain.duration import parse_duration
from querywait.domain.errors import InvalidBackoffConfigError


class BackoffPolicy(BaseModel):
    """Pacing between poll attempts.

    Delays grow from ``min_interval`` by ``multiplier`` per unsatisfied
    attempt and are capped at ``max_interval``. Durations are seconds;
    duration strings such as ``500ms`` are accepted on input.

    Attributes:
        min_interval: Delay after the first unsatisfied attempt
        max_interval: Upper bound for any delay
        multiplier: Growth factor, must be greater than 1.0
        initial_delay: Delay before the first query (0 = run immediately)
    """

    min_interval: float = Field(1.0, ge=0.0)
    max_interval: float = Field(10.0, ge=0.0)
    multiplier: float = Field(2.0, gt=1.0)
    initial_delay: float = Field(0.0, ge=0.0)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("min_interval", "max_interval", "initial_delay", mode="before")
    @classmethod
    def _parse_duration(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_duration(value)
        return value

    @model_validator(mode="after")
    def _check_bounds(self) -> "BackoffPolicy":
        if self.max_interval < self.min_interval:
            raise ValueError("max_interval must be greater than or equal to min_interval")
        return self


def build_backoff_policy(**values: Any) -> BackoffPolicy:
    """Create a BackoffPolicy, ignoring ``None`` values

    Raises:
        InvalidBackoffConfigError: If the resulting policy is invalid
    """
    try:
        return BackoffPolicy(**{k: v for k, v in values.items() if v is not None})
    except ValidationError as e:
        errors = []
        for error in e.errors():
            field = ".".join(str(x) for x in error["loc"]) or "backoff"
            errors.append(f"{field}: {error['msg']}")
        raise InvalidBackoffConfigError(errors) from e
