"""Main application configuration model."""

from pydantic import BaseModel, ConfigDict, Field

from querywait.domain.config.backoff import BackoffPolicy
from querywait.domain.config.client import ClientConfig
from querywait.domain.config.output import OutputConfig
from querywait.domain.config.wait import WaitConfig


class AppConfig(BaseModel):
    """Main application configuration.

    This is the root configuration model that aggregates all configuration sections.
    Validation is performed at load time to fail fast on configuration errors.

    Attributes:
        client: Query executor configuration
        backoff: Default backoff policy
        wait: Default wait limits
        output: Result rendering configuration
    """

    client: ClientConfig = Field(default_factory=ClientConfig)
    backoff: BackoffPolicy = Field(default_factory=BackoffPolicy)
    wait: WaitConfig = Field(default_factory=WaitConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    model_config = ConfigDict(
        validate_assignment=True,  # Validate on attribute assignment
        extra="forbid",  # Reject unknown fields
        json_schema_extra={
            "example": {
                "client": {
                    "executor": "http",
                    "url": "https://abc12345.apps.example.com",
                    "token": None,
                    "request_timeout": 360,
                    "retry": {
                        "max_attempts": 3,
                        "initial_delay": 1.0,
                        "backoff_multiplier": 2.0,
                        "jitter": 0.1,
                    },
                },
                "backoff": {
                    "min_interval": "1s",
                    "max_interval": "10s",
                    "multiplier": 2.0,
                    "initial_delay": "0s",
                },
                "wait": {
                    "timeout": "5m",
                    "max_attempts": 0,
                },
                "output": {
                    "format": "json",
                },
            }
        },
    )
