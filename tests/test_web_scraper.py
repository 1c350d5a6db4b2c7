import pytest

from conftest import FakeResponse
from services.web_scraper import (
    CourseraScraper,
    LinkedInLearningScraper,
    SkillshareScraper,
    UdemyScraper,
    get_discovery_strategy,
)

COURSERA_SEARCH = "https://www.coursera.org/search?query=Machine%20Learning"

COURSERA_HTML = """
<html><body>
  <ul>
    <li class="cds-9"><a href="/articles/what-is-ai">Article</a></li>
    <li class="cds-9"><a href="https://www.example.com/learn/machine-learning">Mirror</a></li>
    <li class="cds-9"><a href="/learn/machine-learning-old">Retired</a></li>
    <li class="cds-9"><a href="/learn/machine-learning">Machine Learning</a></li>
    <li class="cds-9"><a href="/learn/machine-learning">Machine Learning (dup)</a></li>
  </ul>
  <a href="/learn/not-a-result">Footer link</a>
</body></html>
"""


def test_extract_links_absolutizes_and_deduplicates():
    links = CourseraScraper(limit=10).extract_links(COURSERA_HTML)
    assert links == [
        "https://www.coursera.org/articles/what-is-ai",
        "https://www.example.com/learn/machine-learning",
        "https://www.coursera.org/learn/machine-learning-old",
        "https://www.coursera.org/learn/machine-learning",
    ]


def test_extract_links_respects_limit():
    assert len(CourseraScraper(limit=2).extract_links(COURSERA_HTML)) == 2


def test_is_course_link_filters_domain_and_path():
    scraper = CourseraScraper()
    assert scraper.is_course_link("https://www.coursera.org/learn/python")
    assert not scraper.is_course_link("https://www.coursera.org/articles/python")
    assert not scraper.is_course_link("https://www.example.com/learn/python")
    assert not scraper.is_course_link("https://evilcoursera.org/learn/python")


def test_skillshare_accepts_classes_paths():
    assert SkillshareScraper().is_course_link("https://www.skillshare.com/en/classes/logo-design/123")


@pytest.mark.asyncio
async def test_discover_returns_first_confirmed_course_link(make_client):
    client = make_client({
        COURSERA_SEARCH: FakeResponse(200, body=COURSERA_HTML),
        ("HEAD", "https://www.coursera.org/learn/machine-learning-old"): FakeResponse(404),
        ("HEAD", "https://www.coursera.org/learn/machine-learning"): FakeResponse(200),
    })
    url = await CourseraScraper(limit=5).discover("Machine Learning", client)
    assert url == "https://www.coursera.org/learn/machine-learning"
    # Foreign and non-course links are never probed
    assert ("HEAD", "https://www.example.com/learn/machine-learning") not in client.session.calls
    assert ("HEAD", "https://www.coursera.org/articles/what-is-ai") not in client.session.calls


@pytest.mark.asyncio
async def test_discover_returns_none_when_search_page_fails(make_client):
    client = make_client({COURSERA_SEARCH: FakeResponse(503)})
    assert await CourseraScraper().discover("Machine Learning", client) is None


@pytest.mark.asyncio
async def test_discover_returns_none_when_nothing_confirms(make_client):
    client = make_client({COURSERA_SEARCH: FakeResponse(200, body=COURSERA_HTML)})
    assert await CourseraScraper().discover("Machine Learning", client) is None


@pytest.mark.asyncio
async def test_udemy_selector(make_client):
    html = """
    <div><h3 data-purpose="course-title-url"><a href="/course/the-complete-python-bootcamp/">Python</a></h3></div>
    """
    client = make_client({
        "https://www.udemy.com/courses/search/?q=Python": FakeResponse(200, body=html),
        ("HEAD", "https://www.udemy.com/course/the-complete-python-bootcamp/"): FakeResponse(200),
    })
    assert await UdemyScraper().discover("Python", client) == "https://www.udemy.com/course/the-complete-python-bootcamp/"


@pytest.mark.asyncio
async def test_exists_falls_back_to_get_when_head_is_refused(make_client):
    url = "https://www.coursera.org/learn/python"
    client = make_client({("HEAD", url): FakeResponse(405), ("GET", url): FakeResponse(200)})
    assert await client.exists(url) is True


@pytest.mark.asyncio
async def test_exists_never_raises(make_client):
    url = "https://www.coursera.org/learn/python"
    client = make_client({("HEAD", url): ConnectionResetError("reset")})
    assert await client.exists(url) is False


def test_registry_lookup():
    assert isinstance(get_discovery_strategy("LinkedIn Learning"), LinkedInLearningScraper)
    assert isinstance(get_discovery_strategy("COURSERA", limit=3), CourseraScraper)
    assert get_discovery_strategy("YouTube") is None
    assert get_discovery_strategy("Pluralsight") is None
