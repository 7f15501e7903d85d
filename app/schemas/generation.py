"""Generation batch schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class GenerationBatchCreate(BaseModel):
    """Schema for starting a generation batch."""

    topics: list[str] = Field(min_length=1)
    count: int = Field(ge=1)
    min_words: int | None = Field(default=None, ge=1)
    max_words: int | None = Field(default=None, ge=1)
    max_retries_per_item: int | None = Field(default=None, ge=1, le=10)
    expand_topics: bool = False


class ItemFailureResponse(BaseModel):
    index: int
    topic: str
    attempts: int
    error: str


class GenerationBatchResponse(BaseModel):
    """Schema for generation batch status."""

    batch_id: str
    status: str
    completed: int = 0
    count: int
    topics: list[str] = Field(default_factory=list)
    created_ids: list[str] = Field(default_factory=list)
    failures: list[ItemFailureResponse] = Field(default_factory=list)
    message: str | None = None
    cancel_requested: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SubtopicPlanRequest(BaseModel):
    """Schema for previewing topic expansion."""

    topics: list[str] = Field(min_length=1)
    count: int = Field(default=1, ge=1)


class SubtopicPlanResponse(BaseModel):
    topics: list[str]
