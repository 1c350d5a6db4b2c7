"""
Versioned API v1 routes.

Design choices:
- The router does not hardcode a version prefix; main.py mounts it using settings.api_v1_prefix. This allows changing the prefix centrally.
- Responses are wrapped in the generic ApiResponse to keep a stable envelope while inner data evolves.
- Collaborators come in through Depends() so tests can swap them with app.dependency_overrides.
"""
from __future__ import annotations

import logging
from typing import Dict, List
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from core.config import get_settings
from core.logging_config import set_request_id
from database import get_db
from repository import ProfileRepository, UserCourseRepository, UserNotFoundError
from schemas.api import ApiResponse, RecommendationResult
from schemas.course import CourseSuggestion, ManualCourseRequest, ResolvedCourse, SavedCourse
from services.course_resolver import CourseResolver
from services.http_client import HttpClient
from services.recommendation_pipeline import RecommendationPipeline, RecommendationsUnavailableError
from services.recommendation_provider import ChatCompletionProvider

router = APIRouter(tags=["courses"])  # mounted under /api/v1 by main.py
logger = logging.getLogger("api")


def _new_request_id() -> str:
    req_id = str(uuid4())
    set_request_id(req_id)
    return req_id


def get_recommendation_provider() -> ChatCompletionProvider:
    return ChatCompletionProvider(get_settings())


def get_pipeline(
    db: Session = Depends(get_db),
    provider: ChatCompletionProvider = Depends(get_recommendation_provider),
) -> RecommendationPipeline:
    return RecommendationPipeline(
        profile_store=ProfileRepository(db),
        provider=provider,
        course_store=UserCourseRepository(db),
        settings=get_settings(),
    )


async def get_course_resolver():
    settings = get_settings()
    async with HttpClient(settings) as client:
        yield CourseResolver.from_settings(client, settings)


def get_course_repository(db: Session = Depends(get_db)) -> UserCourseRepository:
    return UserCourseRepository(db)


@router.post("/recommendations/{user_id}", response_model=ApiResponse[RecommendationResult])
async def post_recommendations(user_id: int, pipeline: RecommendationPipeline = Depends(get_pipeline)):
    """Generate recommendations for a user, resolve each course URL and save the result."""
    req_id = _new_request_id()
    try:
        result = await pipeline.resolve_recommendations(user_id)
    except UserNotFoundError:
        raise HTTPException(status_code=404, detail=f"User {user_id} not found")
    except RecommendationsUnavailableError as e:
        logger.error("recommendations_unavailable", extra={"user_id": user_id, "error": str(e)})
        body = ApiResponse[RecommendationResult](
            request_id=req_id,
            status="error",
            data=RecommendationResult.unavailable("Recommendations are currently unavailable"),
        )
        return JSONResponse(status_code=503, content=body.model_dump())
    except Exception as e:
        logger.error("recommendations_failed", extra={"user_id": user_id, "error": f"{type(e).__name__}: {e}"})
        raise HTTPException(
            status_code=500,
            detail="An internal error occurred while processing your request. Please try again later.",
        )

    return ApiResponse[RecommendationResult](request_id=req_id, status="ok", data=result)


@router.post("/courses/resolve", response_model=ApiResponse[ResolvedCourse])
async def post_resolve_course(course: CourseSuggestion, resolver: CourseResolver = Depends(get_course_resolver)):
    """Resolve a single course suggestion without saving it."""
    req_id = _new_request_id()
    resolved = await resolver.resolve(course)
    return ApiResponse[ResolvedCourse](request_id=req_id, status="ok", data=resolved)


@router.get("/users/{user_id}/courses", response_model=ApiResponse[List[SavedCourse]])
def get_user_courses(user_id: int, repo: UserCourseRepository = Depends(get_course_repository)):
    req_id = _new_request_id()
    return ApiResponse[List[SavedCourse]](request_id=req_id, status="ok", data=repo.list_courses(user_id))


@router.post("/users/{user_id}/courses", response_model=ApiResponse[SavedCourse])
def post_user_course(
    user_id: int,
    request: ManualCourseRequest,
    repo: UserCourseRepository = Depends(get_course_repository),
):
    """Save a course the user added by hand (upserted by title)."""
    req_id = _new_request_id()
    saved = repo.save_manual_course(
        user_id,
        course_title=request.course_title.strip(),
        link=request.link.strip(),
        provider=request.provider,
        image_url=request.image_url,
    )
    logger.info("manual_course_saved", extra={"user_id": user_id, "course_title": saved.course_title})
    return ApiResponse[SavedCourse](request_id=req_id, status="ok", data=saved)


@router.delete("/users/{user_id}/courses", response_model=ApiResponse[Dict[str, int]])
def delete_user_courses(user_id: int, repo: UserCourseRepository = Depends(get_course_repository)):
    req_id = _new_request_id()
    deleted = repo.delete_courses(user_id)
    return ApiResponse[Dict[str, int]](request_id=req_id, status="ok", data={"deleted": deleted})
