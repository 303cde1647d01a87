"""Output configuration model."""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


class OutputConfig(BaseModel):
    """Configuration for result rendering.

    Attributes:
        format: Format for the records on success (None = print nothing)
    """

    format: Optional[Literal["json", "yaml", "table", "csv"]] = None

    model_config = ConfigDict(extra="forbid")
