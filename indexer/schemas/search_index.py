"""Pydantic schemas for the search index admin endpoints."""

from pydantic import BaseModel, Field


class QueueStatusResponse(BaseModel):
    """Pending markers in the search index queue."""

    total: int = Field(..., ge=0, description="Total number of queued items")
    by_kind: dict[str, int] = Field(
        default_factory=dict, description="Number of queued items per item kind"
    )


class IndexUpdateResponse(BaseModel):
    """Result of a manual queue drain or rebuild."""

    chunks: int = Field(..., ge=0, description="Number of processed queue chunks")
    processed: int = Field(..., ge=0, description="Number of queue markers read")
    deleted: int = Field(..., ge=0, description="Number of queue markers removed")
