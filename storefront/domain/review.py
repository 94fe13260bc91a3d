"""
Review Domain Models
"""
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .base import DomainModel
from .catalog import ImageRef


class ReviewStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReportAction(str, Enum):
    KEEP = "keep"
    DELETE = "delete"


class ReviewCreate(BaseModel):
    product_id: int
    rating: int = Field(..., ge=1, le=5)
    title: Optional[str] = Field(None, max_length=255)
    comment: str = Field(..., min_length=1, max_length=5000)
    images: List[ImageRef] = Field(default_factory=list)


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    title: Optional[str] = Field(None, max_length=255)
    comment: Optional[str] = Field(None, min_length=1, max_length=5000)
    images: Optional[List[ImageRef]] = None


class ReviewStatusUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    status: ReviewStatus


class ReviewReportRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000)


class ReportHandleRequest(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    action: ReportAction


class ReviewAuthor(DomainModel):
    id: int
    name: str


class ReviewResponse(DomainModel):
    id: int
    product_id: int
    user: Optional[ReviewAuthor] = None
    rating: int
    title: Optional[str] = None
    comment: str
    images: Optional[List[Any]] = None
    verified_purchase: bool
    helpful_votes: int
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None


class ReportedReviewResponse(ReviewResponse):
    report_count: int = 0
    reasons: List[str] = Field(default_factory=list)
