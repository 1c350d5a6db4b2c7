"""Prompt construction from a user's questionnaire answers."""
from __future__ import annotations

from typing import Dict, List, Optional

from schemas.api import ProfileQuestion, UserProfileData
from schemas.course import KNOWN_PROVIDERS

INDUSTRY_QUESTION_ID = 2

# Questions every prompt includes, in addition to the industry follow-up
CORE_QUESTION_IDS = (1, INDUSTRY_QUESTION_ID, 10, 11, 12)

# Industry answer -> id of the follow-up question asked for that industry
INDUSTRY_FOLLOW_UP_QUESTION: Dict[str, int] = {
    "Technology & Software Development": 3,
    "Retail & E-Commerce": 4,
    "Finance & Banking": 5,
    "Hospitality & Tourism": 6,
    "Business & Marketing": 7,
    "Language Studies": 8,
    "Media & Entertainment": 9,
}


def follow_up_question_id(profile: UserProfileData) -> Optional[int]:
    industry = profile.question(INDUSTRY_QUESTION_ID)
    if industry is None or not industry.answer:
        return None
    return INDUSTRY_FOLLOW_UP_QUESTION.get(industry.answer[0].strip())


def select_questions(profile: UserProfileData) -> List[ProfileQuestion]:
    """Core questions plus the follow-up for the user's industry, in profile order."""
    wanted = set(CORE_QUESTION_IDS)
    follow_up = follow_up_question_id(profile)
    if follow_up is not None:
        wanted.add(follow_up)
    return [q for q in profile.questions if q.id in wanted]


def build_system_prompt(course_count: int) -> str:
    providers = ", ".join(KNOWN_PROVIDERS)
    provider_union = " | ".join(f'"{p}"' for p in KNOWN_PROVIDERS)
    return (
        f"You are a career advisor. Summarize the user's career profile and recommend "
        f"{course_count} real online courses (not marketing pages). Respond with JSON only:\n"
        "{\n"
        '  "summary": string,\n'
        '  "recommended_courses": [\n'
        f'    {{ "course_title": string, "provider": {provider_union} }}\n'
        "  ]\n"
        "}\n"
        f"Only use these platforms: {providers}. Use each course's exact public title."
    )


def build_user_prompt(profile: UserProfileData) -> str:
    lines = [
        f"{q.question}: {', '.join(q.answer) if q.answer else 'No answer'}"
        for q in select_questions(profile)
    ]
    return f"User Name: {profile.user.full_name}\n\nResponses:\n" + "\n".join(lines)
