"""
API contract schemas for versioned endpoints.

Future-proofing notes:
- RecommendationResult keeps `error` optional so a failed run still returns the same shape
  with an empty course list.
- ApiResponse is a generic wrapper model so different endpoints can return consistent envelopes while varying `data` types.
"""
from __future__ import annotations

import json
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, field_validator

from .course import CourseSuggestion, ResolvedCourse


class ProfileUser(BaseModel):
    id: int
    forename: str = ""
    family_name: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.forename} {self.family_name}".strip()


class ProfileQuestion(BaseModel):
    id: int
    question: str
    answer: List[str] = Field(default_factory=list)

    @field_validator("answer", mode="before")
    @classmethod
    def normalize_answer(cls, v: Any) -> List[str]:
        """Accept lists, JSON-encoded lists or bare strings as stored by older clients."""
        if v is None:
            return []
        if isinstance(v, str):
            try:
                decoded = json.loads(v)
            except json.JSONDecodeError:
                decoded = v
            if decoded is None:
                return []
            # Scalars keep their stored spelling ("true", not "True")
            if isinstance(decoded, (list, tuple)):
                v = decoded
        if isinstance(v, (list, tuple)):
            return [str(item) for item in v if item is not None and str(item).strip()]
        return [str(v)] if str(v).strip() else []


class UserProfileData(BaseModel):
    """Profile and questionnaire answers used to build the recommendation prompt."""
    user: ProfileUser
    questions: List[ProfileQuestion] = Field(default_factory=list)

    def question(self, question_id: int) -> Optional[ProfileQuestion]:
        for q in self.questions:
            if q.id == question_id:
                return q
        return None


class RecommendationPayload(BaseModel):
    """Structured part of the recommendation model's answer."""
    summary: str = ""
    recommended_courses: List[CourseSuggestion] = Field(default_factory=list)


class RecommendationResult(BaseModel):
    summary: str = ""
    recommended_courses: List[ResolvedCourse] = Field(default_factory=list)
    error: Optional[str] = Field(default=None, description="Set when recommendations are unavailable")

    @classmethod
    def unavailable(cls, reason: str) -> "RecommendationResult":
        return cls(summary="", recommended_courses=[], error=reason)


T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Generic response wrapper to stabilize external API while allowing inner schema evolution.

    Always return this envelope so clients can rely on `request_id` and `status`, irrespective of changes in `data`.
    """
    request_id: str
    status: str
    data: T
