from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from a .env file if present (local dev only)
load_dotenv()


class Settings(BaseSettings):
    """Application configuration loaded from environment variables or .env file."""

    # LLM provider selection
    llm_provider: str = Field("openrouter", description="openrouter | openai")

    # OpenRouter
    openrouter_api_key: Optional[str] = Field(default=None, description="Absence disables all AI features.")
    openrouter_text_model: str = "allenai/olmo-3-32b-think"
    openrouter_vision_model: Optional[str] = Field(default=None, description="Defaults to the text model.")
    openrouter_referer: Optional[str] = None
    openrouter_app_title: Optional[str] = "WhatsApp Demo Bot"
    openrouter_timeout: float = 60.0

    # OpenAI (via langchain-openai)
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o"
    openai_base_url: Optional[str] = None

    # WhatsApp / Meta Cloud API
    whatsapp_token: str = ""
    whatsapp_phone_id: str = ""
    whatsapp_api_version: str = "v19.0"
    whatsapp_app_secret: str = ""
    whatsapp_verify_token: str = ""
    primary_user_phone: Optional[str] = Field(
        default=None,
        description="If set, messages from any other sender are ignored.",
    )

    # Local storage
    downloads_dir: Path = Field(Path("downloads"), description="Where downloaded media is written.")
    data_dir: Path = Field(Path("data"), description="Where per-chat meal logs are written.")

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


@lru_cache()
def get_settings() -> Settings:  # pragma: no cover
    """Return a cached Settings instance so it is only parsed once."""

    return Settings()
