"""Wait limits configuration model."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from querywait.domain.duration import parse_duration


class WaitConfig(BaseModel):
    """Default limits for a wait.

    Attributes:
        timeout: Overall deadline in seconds (0 = unlimited)
        max_attempts: Attempt budget (0 = unlimited)
    """

    timeout: float = Field(300.0, ge=0.0)
    max_attempts: int = Field(0, ge=0)

    model_config = ConfigDict(extra="forbid")

    @field_validator("timeout", mode="before")
    @classmethod
    def _parse_timeout(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_duration(value)
        return value
