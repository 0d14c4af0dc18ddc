"""Tutor directory and rating schemas."""

from typing import List, Optional

from .base import Money, StandardizedModel


class TutorRatingResponse(StandardizedModel):
    tutor_id: str
    average_rating: Optional[Money] = None
    rating_count: int


class TutorSummaryResponse(StandardizedModel):
    id: str
    name: str
    bio: Optional[str] = None
    subjects: List[str] = []
    average_rating: Optional[Money] = None
    rating_count: int


class TutorListResponse(StandardizedModel):
    tutors: List[TutorSummaryResponse]
    total: int
