"""Configuration models with Pydantic validation."""

from querywait.domain.config.app import AppConfig
from querywait.domain.config.backoff import BackoffPolicy, build_backoff_policy
from querywait.domain.config.client import ClientConfig
from querywait.domain.config.output import OutputConfig
from querywait.domain.config.retry import RetryConfig
from querywait.domain.config.wait import WaitConfig

__all__ = [
    "AppConfig",
    "BackoffPolicy",
    "build_backoff_policy",
    "ClientConfig",
    "OutputConfig",
    "RetryConfig",
    "WaitConfig",
]
