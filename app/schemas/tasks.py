"""Schemas for task previews: raw tasks in, agent-enriched tasks and summary out.

Attributes are snake_case; JSON on the wire (HTTP API and agent payloads) uses
camelCase aliases. Either spelling is accepted on input.

Agent output is passed through, not curated: unknown fields are kept and
enumerated values (platform, issue code, severity) are plain strings so an
unexpected value from the model does not fail the preview.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class RawTask(_WireModel):
    """A content task as exported from the project tool. Immutable once received."""

    model_config = ConfigDict(frozen=True)

    task_id: str = Field(..., description="Stable task identifier.")
    name: str
    account: str | None = None
    post_type: str | None = None
    status: str | None = None
    created_at: str | None = None
    due_date: str | None = None
    tags: list[str] = Field(default_factory=list)
    caption: str | None = None
    video_url: str | None = None
    thumbnail_url: str | None = None
    assignee: str | None = None
    assignee_email: str | None = None
    project: str | None = None
    section: str | None = None


class ValidationIssue(_WireModel):
    code: str = Field(..., description="MISSING_CAPTION, MISSING_ASSET, BAD_DUE_DATE, PLATFORM_MISMATCH or OTHER.")
    severity: str = Field(..., description="info, warning or critical.")
    message: str


class TaskValidation(_WireModel):
    score: int | float = 0
    issues: list[ValidationIssue] = Field(default_factory=list)


class EnhancedCaption(_WireModel):
    platform: str = Field(..., description="instagram, facebook, tiktok, linkedin or youtube.")
    original: str
    optimized: str
    hashtags: list[str] = Field(default_factory=list)


class ScheduleSuggestion(_WireModel):
    platform: str = Field(..., description="instagram, facebook, tiktok, linkedin or youtube.")
    suggested_time: str
    conflict: bool = False
    reason: str = ""


class OrchestratedTask(_WireModel):
    """One task as returned by the agent: validation, per-platform captions, schedule, readiness."""

    task: RawTask
    validation: TaskValidation = Field(default_factory=TaskValidation)
    captions: list[EnhancedCaption] = Field(default_factory=list)
    schedule: list[ScheduleSuggestion] = Field(default_factory=list)
    ready: bool = False


class PreviewSummary(_WireModel):
    total_tasks: int = 0
    ready_to_schedule: int = 0
    avg_completeness: float = Field(0, description="Average task completeness, 0-1.")
    key_risks: list[str] = Field(default_factory=list)


class PreviewResponse(_WireModel):
    """Agent output for one batch, or the merged output of all batches."""

    tasks: list[OrchestratedTask] = Field(default_factory=list)
    summary: PreviewSummary = Field(default_factory=PreviewSummary)


class PreviewRequest(_WireModel):
    """Request body for POST /tasks/preview."""

    model_config = ConfigDict(extra="ignore")

    tasks: list[RawTask] = Field(..., description="Tasks to preview, in display order.")


class ApiResponse(BaseModel, Generic[T]):
    """Response envelope shared by task endpoints."""

    status: int
    data: T | None = None
    message: str
