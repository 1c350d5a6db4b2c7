import pytest

from schemas.api import ProfileQuestion, ProfileUser, UserProfileData
from schemas.course import KNOWN_PROVIDERS
from services.prompt_builder import (
    build_system_prompt,
    build_user_prompt,
    follow_up_question_id,
    select_questions,
)


def _profile(industry):
    return UserProfileData(
        user=ProfileUser(id=7, forename="Ada", family_name="Lovelace"),
        questions=[
            ProfileQuestion(id=1, question="What is your current role?", answer=["Student"]),
            ProfileQuestion(id=2, question="Which industry interests you?", answer=[industry]),
            ProfileQuestion(id=3, question="Which tech area?", answer=["Data", "Cloud"]),
            ProfileQuestion(id=5, question="Which finance area?", answer=["Trading"]),
            ProfileQuestion(id=10, question="How do you like to learn?", answer=[]),
            ProfileQuestion(id=11, question="Weekly hours?", answer=["5-10"]),
            ProfileQuestion(id=13, question="Unused question", answer=["ignored"]),
        ],
    )


def test_industry_selects_its_follow_up_question():
    profile = _profile("Finance & Banking")
    assert follow_up_question_id(profile) == 5
    assert [q.id for q in select_questions(profile)] == [1, 2, 5, 10, 11]


def test_unknown_industry_has_no_follow_up():
    profile = _profile("Agriculture")
    assert follow_up_question_id(profile) is None
    assert [q.id for q in select_questions(profile)] == [1, 2, 10, 11]


def test_user_prompt_lists_name_and_answers():
    prompt = build_user_prompt(_profile("Technology & Software Development"))
    assert prompt.startswith("User Name: Ada Lovelace")
    assert "Which tech area?: Data, Cloud" in prompt
    assert "How do you like to learn?: No answer" in prompt
    assert "Unused question" not in prompt
    assert "Which finance area?" not in prompt


def test_system_prompt_names_providers_and_count():
    prompt = build_system_prompt(8)
    assert "recommend 8 real online courses" in prompt
    for provider in KNOWN_PROVIDERS:
        assert provider in prompt
    assert '"recommended_courses"' in prompt


@pytest.mark.parametrize("stored, expected", [
    ('["Data", "Cloud"]', ["Data", "Cloud"]),
    ("Retail", ["Retail"]),
    ("null", []),
    ("true", ["true"]),
    ("42", ["42"]),
    (None, []),
])
def test_stored_answers_are_normalized(stored, expected):
    assert ProfileQuestion(id=1, question="q", answer=stored).answer == expected
