from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

import models
from schemas.api import ProfileQuestion, ProfileUser, UserProfileData
from schemas.course import ResolvedCourse, SavedCourse
from services.provider_catalog import DEFAULT_PLACEHOLDER


class UserNotFoundError(LookupError):
    pass


class ProfileRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_profile(self, user_id: int) -> UserProfileData:
        user = self.db.get(models.User, user_id)
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")

        rows = (
            self.db.query(models.Question, models.UserAnswer)
            .join(models.UserAnswer, models.UserAnswer.question_id == models.Question.id)
            .filter(models.UserAnswer.user_id == user_id)
            .order_by(models.Question.id)
            .all()
        )
        questions = [
            ProfileQuestion(id=question.id, question=question.question_text, answer=answer.answer)
            for question, answer in rows
        ]
        return UserProfileData(
            user=ProfileUser(id=user.id, forename=user.forename or "", family_name=user.family_name or ""),
            questions=questions,
        )


class UserCourseRepository:
    def __init__(self, db: Session):
        self.db = db

    def _find(self, user_id: int, course_title: str) -> Optional[models.UserCourse]:
        return (
            self.db.query(models.UserCourse)
            .filter(models.UserCourse.user_id == user_id, models.UserCourse.course_title == course_title)
            .first()
        )

    def _upsert(self, user_id: int, course_title: str, provider: Optional[str], link: str, image_url: Optional[str]):
        row = self._find(user_id, course_title)
        if row is None:
            row = models.UserCourse(user_id=user_id, course_title=course_title)
            self.db.add(row)
        row.provider = provider or "Unknown"
        row.link = link
        row.image_url = image_url or DEFAULT_PLACEHOLDER
        return row

    def upsert_courses(self, user_id: int, courses: Iterable[ResolvedCourse]) -> int:
        """Insert or update by (user_id, course_title) in a single transaction."""
        count = 0
        try:
            for course in courses:
                self._upsert(user_id, course.course_title, course.provider, course.url, course.image)
                # Same title twice in one batch must hit the row added above
                self.db.flush()
                count += 1
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return count

    def save_manual_course(self, user_id: int, course_title: str, link: str,
                           provider: Optional[str] = None, image_url: Optional[str] = None) -> SavedCourse:
        try:
            row = self._upsert(user_id, course_title, provider, link, image_url)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return SavedCourse.model_validate(row)

    def list_courses(self, user_id: int) -> List[SavedCourse]:
        rows = (
            self.db.query(models.UserCourse)
            .filter(models.UserCourse.user_id == user_id)
            .order_by(models.UserCourse.created_at.desc(), models.UserCourse.id.desc())
            .all()
        )
        return [SavedCourse.model_validate(row) for row in rows]

    def delete_courses(self, user_id: int) -> int:
        deleted = self.db.query(models.UserCourse).filter(models.UserCourse.user_id == user_id).delete()
        self.db.commit()
        return deleted
