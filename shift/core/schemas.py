"""Pydantic response schemas for JSON output."""

from pydantic import BaseModel, Field


class EventResponse(BaseModel):
    """Schema for a stored task event."""
    id: int
    task_name: str = Field(..., min_length=1)
    kind: str
    timestamp: str


class IntervalResponse(BaseModel):
    """Schema for a running interval, ``end`` is null while still open."""
    start: str
    end: str | None = None
    seconds: float = Field(..., ge=0)


class TaskReportResponse(BaseModel):
    """Schema for one task's share of a report."""
    task_name: str
    intervals: list[IntervalResponse] = Field(default_factory=list)
    total_seconds: float = Field(..., ge=0)


class ReportResponse(BaseModel):
    """Schema for a full report over a window."""
    window_from: str | None = None
    window_to: str | None = None
    generated_at: str
    tasks: list[TaskReportResponse] = Field(default_factory=list)
    total_seconds: float = Field(..., ge=0)


class StatusResponse(BaseModel):
    """Schema for an ongoing task."""
    task_name: str
    state: str
    since: str
    elapsed_seconds: float = Field(..., ge=0)
