"""
Classified error model.

A ClassifiedError is the bounded-set view of a raw failure: it is created
once per caught exception by the ErrorClassifier and folded into either a
retry decision or the final RetryExhausted error.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from postia_generation.models.enums import ErrorKind


class ClassifiedError(BaseModel):
    """
    Raw failure annotated with its ErrorKind.

    The original exception travels along in ``error`` but is excluded from
    serialization, so ``to_json``/``from_json`` only carry the audit fields.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: ErrorKind = Field(..., description="Classified failure kind")
    message: str = Field(..., description="Original error message")
    retryable: bool = Field(..., description="Default retryability for this failure")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the failure was classified",
    )
    context: dict[str, Any] = Field(default_factory=dict, description="Free-form context")
    error: Optional[BaseException] = Field(default=None, exclude=True, repr=False)

    def to_json(self) -> str:
        """Serialize for logs and persistence (original exception excluded)."""
        return self.model_dump_json()

    @classmethod
    def from_json(cls, payload: str) -> "ClassifiedError":
        return cls.model_validate_json(payload)
