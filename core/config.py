"""
Core configuration module for environment variables and settings management.

Design choices:
- Uses python-dotenv to load environment variables from a .env file when present.
- Avoids pydantic BaseSettings to keep dependencies minimal and compatible with pydantic v1/v2.
- Provides a single get_settings() accessor with LRU caching to avoid repeated parsing.
"""
from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings(BaseModel):
    environment: str = "dev"

    # Persistence
    database_url: str = "sqlite:///./career_courses.db"

    # Recommendation provider (OpenAI-compatible chat completions)
    llm_api_key: Optional[str] = None
    llm_api_base: str = "https://api.openai.com/v1"
    llm_model: str = "gpt-3.5-turbo"
    llm_timeout: int = 30
    llm_max_tokens: int = 900
    recommended_course_count: int = 8

    # Course URL resolution
    validation_timeout: float = 5.0
    max_redirects: int = 5
    course_resolution_timeout: float = 25.0
    resolution_concurrency: int = 4
    enable_scrape_discovery: bool = True
    scrape_result_limit: int = 5
    user_agent_rotation: bool = False
    fetch_og_images: bool = False

    # API versioning (useful for mounting routers and future deprecations)
    api_v1_prefix: str = "/api/v1"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load environment variables (from .env if present) and build a Settings object.

    This function is cached so app startup and repeated imports are efficient.
    """
    load_dotenv()  # no-op if .env not present
    return Settings(
        environment=os.getenv("ENVIRONMENT", "dev"),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./career_courses.db"),
        llm_api_key=os.getenv("LLM_API_KEY") or os.getenv("OPENAI_API_KEY"),
        llm_api_base=os.getenv("LLM_API_BASE", "https://api.openai.com/v1"),
        llm_model=os.getenv("LLM_MODEL", "gpt-3.5-turbo"),
        llm_timeout=int(os.getenv("LLM_TIMEOUT", "30")),
        llm_max_tokens=int(os.getenv("LLM_MAX_TOKENS", "900")),
        recommended_course_count=int(os.getenv("RECOMMENDED_COURSE_COUNT", "8")),
        validation_timeout=float(os.getenv("VALIDATION_TIMEOUT", "5")),
        max_redirects=int(os.getenv("MAX_REDIRECTS", "5")),
        course_resolution_timeout=float(os.getenv("COURSE_RESOLUTION_TIMEOUT", "25")),
        resolution_concurrency=int(os.getenv("RESOLUTION_CONCURRENCY", "4")),
        enable_scrape_discovery=_env_bool("ENABLE_SCRAPE_DISCOVERY", "true"),
        scrape_result_limit=int(os.getenv("SCRAPE_RESULT_LIMIT", "5")),
        user_agent_rotation=_env_bool("USER_AGENT_ROTATION", "false"),
        fetch_og_images=_env_bool("FETCH_OG_IMAGES", "false"),
        api_v1_prefix=os.getenv("API_V1_PREFIX", "/api/v1"),
    )
