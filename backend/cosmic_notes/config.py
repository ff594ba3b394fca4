from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="APP_",
        extra="ignore",
        case_sensitive=False,
    )

    # Application
    debug: bool = False
    log_level: str = "INFO"

    # API
    api_prefix: str = "/api/v1"
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:8000",
    ]

    cors_origin_regex: str | None = None
    trusted_hosts: list[str] = ["*"]
    root_path: str = ""

    # Supabase
    supabase_url: str
    supabase_anon_key: str
    supabase_service_role_key: str

    # OpenAI
    openai_api_key: str
    agent_model: str = "gpt-5"
    agent_model_reasoning: str = "medium"
    agent_model_text_verbosity: str = "low"

    tagging_model: str = "gpt-5-nano"
    classification_model: str = "gpt-5-nano"
    summary_model: str = "gpt-5-mini"
    llm_reasoning_effort: str = "low"
    embedding_model: str = "text-embedding-3-small"

    # Tagging
    tag_confidence_threshold: float = 0.5
    tag_denylist: list[str] = ["X20"]
    refresh_max_tags: int = 2

    # Clustering
    cluster_min_notes: int = 2

    # Weekly review
    review_model: str = "gpt-5-mini"
    review_window_days: int = 7

    # Merge suggestions
    merge_suggestion_confidence: float = 0.7
    merge_suggestion_guidelines: str | None = None

    # Semantic search
    semantic_match_threshold: float = 0.5
    semantic_match_count: int = 20


settings = Settings()
