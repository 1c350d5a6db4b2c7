import aiohttp
import pytest
from tenacity import wait_none

from conftest import FakeResponse, FakeSession
from services.recommendation_provider import ChatCompletionProvider, JsonExtractionError, extract_json_object

COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"


def test_extracts_object_wrapped_in_prose():
    text = 'Sure! Here are your courses:\n{"summary": "Analyst", "recommended_courses": []}\nGood luck {not json}'
    assert extract_json_object(text) == {"summary": "Analyst", "recommended_courses": []}


def test_extracts_object_from_markdown_fence():
    text = '```json\n{"summary": "x", "recommended_courses": [{"course_title": "SQL", "provider": "Udemy"}]}\n```'
    assert extract_json_object(text)["recommended_courses"][0]["course_title"] == "SQL"


def test_braces_inside_strings_do_not_break_balance():
    text = 'Result: {"summary": "Use {curly} braces \\"wisely\\"", "recommended_courses": []} trailing'
    assert extract_json_object(text)["summary"] == 'Use {curly} braces "wisely"'


def test_skips_unparsable_candidates():
    text = "{oops} and then {\"summary\": \"ok\"}"
    assert extract_json_object(text) == {"summary": "ok"}


def test_unbalanced_prefix_is_skipped():
    text = 'Note { unfinished... {"summary": "ok"}'
    assert extract_json_object(text) == {"summary": "ok"}


def test_required_key_skips_unrelated_objects():
    text = 'Note {"tip": 1} then {"summary": "s", "recommended_courses": []}'
    assert extract_json_object(text) == {"tip": 1}
    assert extract_json_object(text, required_key="recommended_courses") == {"summary": "s", "recommended_courses": []}


def test_required_key_missing_everywhere_raises():
    with pytest.raises(JsonExtractionError):
        extract_json_object('{"tip": 1}', required_key="recommended_courses")


@pytest.mark.parametrize("text", ["", "no json here", "[1, 2, 3]", '{"summary": '])
def test_missing_object_raises(text):
    with pytest.raises(JsonExtractionError):
        extract_json_object(text)


@pytest.mark.asyncio
async def test_complete_returns_message_content(settings):
    body = {"choices": [{"message": {"content": '  {"summary": "hi"}  '}}]}
    session = FakeSession({("POST", COMPLETIONS_URL): FakeResponse(200, json_body=body)})
    provider = ChatCompletionProvider(settings, session=session)

    response = await provider.complete("system", "user")

    assert response.success
    assert response.text == '{"summary": "hi"}'
    assert response.model_used == settings.llm_model


@pytest.mark.asyncio
async def test_complete_reports_http_errors(settings):
    session = FakeSession({("POST", COMPLETIONS_URL): FakeResponse(429, body="rate limited")})
    response = await ChatCompletionProvider(settings, session=session).complete("s", "u")
    assert not response.success
    assert "429" in response.error


@pytest.mark.asyncio
async def test_complete_reports_unexpected_shape(settings):
    session = FakeSession({("POST", COMPLETIONS_URL): FakeResponse(200, json_body={"choices": []})})
    response = await ChatCompletionProvider(settings, session=session).complete("s", "u")
    assert not response.success


@pytest.mark.asyncio
async def test_complete_without_api_key(settings):
    settings.llm_api_key = None
    session = FakeSession()
    response = await ChatCompletionProvider(settings, session=session).complete("s", "u")
    assert not response.success
    assert session.calls == []


@pytest.mark.asyncio
async def test_complete_retries_then_reports_unreachable(monkeypatch, settings):
    monkeypatch.setattr(ChatCompletionProvider._post.retry, "wait", wait_none())
    session = FakeSession({("POST", COMPLETIONS_URL): aiohttp.ClientError("connection refused")})

    response = await ChatCompletionProvider(settings, session=session).complete("s", "u")

    assert not response.success
    assert len(session.calls) == 3
