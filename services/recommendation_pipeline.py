"""
Recommendation pipeline: profile -> prompt -> model -> course resolution -> persistence.

Design choices:
- Collaborators (profile store, provider, course store) are injected so the API can pass
  request-scoped repositories and tests can pass fakes.
- Only upstream failures (provider unreachable, unparsable output) abort a run; they
  surface as RecommendationsUnavailableError. Per-course problems are absorbed by the
  resolver.
- Nothing is persisted until every course of the batch is resolved.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, Iterable, List, Optional, Protocol

from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from core.config import Settings, get_settings
from schemas.api import RecommendationPayload, RecommendationResult, UserProfileData
from schemas.course import CourseSuggestion, ResolvedCourse
from services.course_resolver import CourseResolver
from services.http_client import HttpClient
from services.prompt_builder import build_system_prompt, build_user_prompt
from services.recommendation_provider import JsonExtractionError, RecommendationProvider, extract_json_object

logger = logging.getLogger("recommendation_pipeline")


class RecommendationsUnavailableError(RuntimeError):
    """The recommendation provider could not produce a usable answer."""


class ProfileStore(Protocol):
    def get_profile(self, user_id: int) -> UserProfileData:
        ...


class CourseStore(Protocol):
    def upsert_courses(self, user_id: int, courses: Iterable[ResolvedCourse]) -> int:
        ...


@asynccontextmanager
async def default_resolver(settings: Settings) -> AsyncIterator[CourseResolver]:
    """One HTTP session per batch, closed whatever happens inside the block."""
    async with HttpClient(settings) as client:
        yield CourseResolver.from_settings(client, settings)


def parse_recommendations(data: Dict[str, Any]) -> RecommendationPayload:
    """Validate model JSON, dropping course entries that are not usable suggestions."""
    if "recommended_courses" not in data:
        raise JsonExtractionError("recommended_courses is missing")
    summary = data.get("summary")
    raw_courses = data["recommended_courses"]
    if raw_courses is None:
        raw_courses = []
    if not isinstance(raw_courses, list):
        raise JsonExtractionError("recommended_courses is not a list")

    courses: List[CourseSuggestion] = []
    for entry in raw_courses:
        try:
            courses.append(CourseSuggestion.model_validate(entry))
        except ValidationError as e:
            logger.warning(f"Dropping malformed course suggestion: {e.errors()[:1]}")
    return RecommendationPayload(summary=summary if isinstance(summary, str) else "", recommended_courses=courses)


class RecommendationPipeline:
    def __init__(
        self,
        profile_store: ProfileStore,
        provider: RecommendationProvider,
        course_store: CourseStore,
        resolver_factory: Optional[Callable[[Settings], Any]] = None,
        settings: Optional[Settings] = None,
    ):
        self.profile_store = profile_store
        self.provider = provider
        self.course_store = course_store
        self.resolver_factory = resolver_factory or default_resolver
        self.settings = settings or get_settings()

    async def fetch_recommendations(self, profile: UserProfileData) -> RecommendationPayload:
        response = await self.provider.complete(
            build_system_prompt(self.settings.recommended_course_count),
            build_user_prompt(profile),
        )
        if not response.success or not response.text:
            raise RecommendationsUnavailableError(response.error or "Empty response from recommendation provider")
        try:
            return parse_recommendations(extract_json_object(response.text, required_key="recommended_courses"))
        except JsonExtractionError as e:
            logger.error(f"Unparsable recommendation output: {e}", extra={"user_id": profile.user.id})
            raise RecommendationsUnavailableError(str(e)) from e

    async def resolve_recommendations(self, user_id: int) -> RecommendationResult:
        # Stores are synchronous SQLAlchemy repositories
        profile = await run_in_threadpool(self.profile_store.get_profile, user_id)
        payload = await self.fetch_recommendations(profile)

        async with self.resolver_factory(self.settings) as resolver:
            resolved = await resolver.resolve_all(payload.recommended_courses)

        if resolved:
            await run_in_threadpool(self.course_store.upsert_courses, user_id, resolved)
        logger.info("recommendations resolved", extra={"user_id": user_id, "courses": len(resolved)})
        return RecommendationResult(summary=payload.summary, recommended_courses=resolved)
