"""Pydantic schemas for API request/response validation."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(description="healthy or degraded")
    version: str
    engine: str
    namespace: str
    poll_loop_running: bool


class CountsResponse(BaseModel):
    """Aggregate experiment counts currently exposed."""
    total: float
    passed: float
    failed: float


class StatusResponse(BaseModel):
    """Poll loop statistics and the series currently exposed."""
    engine: str
    namespace: str
    labels: dict
    polls: int
    successes: int
    failures: int
    consecutive_failures: int
    last_success_at: Optional[datetime] = None
    last_failure_at: Optional[datetime] = None
    last_error: Optional[str] = None
    counts: CountsResponse
    experiment_series: List[str] = Field(default_factory=list)
