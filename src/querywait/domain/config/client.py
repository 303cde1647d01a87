"""Query client configuration model."""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from querywait.domain.config.retry import RetryConfig


class ClientConfig(BaseModel):
    """Configuration for the query executor.

    Attributes:
        executor: Executor implementation (http or mock)
        url: Environment base URL (None = from QUERYWAIT_URL env)
        token: Bearer token (None = from QUERYWAIT_TOKEN env)
        request_timeout: Per-request HTTP timeout in seconds
        retry: Transport retry settings
    """

    executor: Literal["http", "mock"] = "http"
    url: Optional[str] = None
    token: Optional[str] = None
    request_timeout: float = Field(360.0, gt=0.0)
    retry: RetryConfig = Field(default_factory=RetryConfig)

    model_config = ConfigDict(extra="forbid")
