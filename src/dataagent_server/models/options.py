"""Pydantic models for options shared by all data agent operations."""

from pydantic import BaseModel, Field


class RetryPolicyOptions(BaseModel):
    """Retry policy accepted by every data agent operation.

    The policy is carried through the service layer for callers that set it,
    but no request is currently retried.
    """

    max_retries: int = Field(default=3, ge=0, description="Maximum retry attempts")
    delay_seconds: float = Field(default=2.0, ge=0, description="Initial delay between retries")
    max_delay_seconds: float = Field(default=10.0, ge=0, description="Maximum delay between retries")
    mode: str = Field(default="exponential", description="Retry mode (fixed or exponential)")
    network_timeout_seconds: float = Field(default=100.0, gt=0, description="Network timeout per request")
