"""
Course schemas shared by the resolution pipeline and the API.

Design choices:
- `provider` stays a free string: the recommendation model is untrusted and may name
  platforms outside the known set, which the resolver degrades gracefully.
- ResolvedCourse extends CourseSuggestion so a suggestion can be enriched in place of
  being re-declared.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Platforms the recommendation prompt is allowed to name
KNOWN_PROVIDERS = (
    "Coursera",
    "Udemy",
    "edX",
    "LinkedIn Learning",
    "Skillshare",
    "FutureLearn",
    "YouTube",
)


class CourseSuggestion(BaseModel):
    course_title: str = Field(description="Course title as suggested by the model", min_length=1, max_length=300)
    provider: str = Field(default="", description="Provider name as suggested by the model", max_length=100)

    model_config = ConfigDict(extra="ignore")

    @field_validator("course_title")
    @classmethod
    def validate_course_title(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError("Course title cannot be empty")
        return cleaned

    @field_validator("provider", mode="before")
    @classmethod
    def clean_provider(cls, v: Optional[str]) -> str:
        return (v or "").strip()


class ResolvedCourse(CourseSuggestion):
    url: str = Field(min_length=1, description="Validated course page or provider search URL")
    image: str = Field(min_length=1, description="Platform logo or placeholder image URL")
    resolution: str = Field(default="search", description="Which step produced the URL: pattern, scrape, search or placeholder")


class SavedCourse(BaseModel):
    """A course row as stored for a user."""
    course_title: str
    provider: str
    link: str
    image_url: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ManualCourseRequest(BaseModel):
    course_title: str = Field(min_length=1, max_length=300)
    link: str = Field(min_length=1, max_length=2000)
    provider: Optional[str] = Field(default=None, max_length=100)
    image_url: Optional[str] = Field(default=None, max_length=2000)
