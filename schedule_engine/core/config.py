"""Configuration module for the Schedule Command Engine.

This module handles all application configuration using pydantic-settings.
Settings are built once per request (or script run) and handed to adapters
at construction time; the core resolvers only ever see plain arguments.
"""

import logging
from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, Dict, List
from pydantic import Field

# Explicitly load .env file BEFORE BaseSettings reads environment variables
load_dotenv()

logger = logging.getLogger(__name__)

SYSTEM_DEFAULT_TIMEZONE = "UTC"


class Settings(BaseSettings):
    """Application settings class.

    Settings are loaded from environment variables with appropriate defaults.
    Credentials keep their conventional upper-case environment names.
    """

    # Application settings
    environment: str = "development"
    debug: bool = False
    log_level: str = Field(default="INFO", description="Root log level for the application.")
    default_timezone: str = Field(
        default=SYSTEM_DEFAULT_TIMEZONE,
        description="IANA zone used when neither the text nor the caller names one.",
    )

    # LLM settings
    llm_provider: str = Field(default="openai", description="LLM provider ('openai' or 'ollama')")
    ollama_base_url: str = Field(default="http://localhost:11434", description="Base URL for the Ollama API server.")
    default_model: str = Field(default="llama3.1:latest", description="Default Ollama model to use.")
    OPENAI_API_KEY: Optional[str] = Field(default=None, description="API Key for OpenAI intent classification.")
    OPENAI_CHAT_MODEL_NAME: str = Field(default="gpt-4o-mini", description="OpenAI chat model used for classification.")
    llm_temperature: float = Field(default=0.3, description="Sampling temperature for classification calls.")
    llm_max_tokens: int = Field(default=1000, description="Maximum tokens for a classification response.")
    context_event_limit: int = Field(
        default=10,
        description="Number of upcoming events passed to the model as grounding context.",
        gt=0,
    )

    # --- Google Calendar Settings ---
    GOOGLE_CLIENT_ID: Optional[str] = Field(default=None, description="OAuth client id for Google Calendar.")
    GOOGLE_CLIENT_SECRET: Optional[str] = Field(default=None, description="OAuth client secret for Google Calendar.")
    GOOGLE_REFRESH_TOKEN: Optional[str] = Field(default=None, description="Long-lived refresh token for the calendar owner.")
    GOOGLE_TOKEN_URI: str = Field(default="https://oauth2.googleapis.com/token")
    GOOGLE_CALENDAR_ID: str = Field(default="primary", description="Calendar the engine reads and writes.")
    GOOGLE_CALENDAR_API_SCOPES: List[str] = Field(
        default=["https://www.googleapis.com/auth/calendar.events"],
        description="Scopes for Google Calendar API access.",
    )
    upcoming_events_limit: int = Field(
        default=20,
        description="How many upcoming events are fetched as the matching snapshot.",
        gt=0,
    )

    # --- Trello Settings ---
    TRELLO_API_KEY: Optional[str] = Field(default=None, description="Trello API key.")
    TRELLO_TOKEN: Optional[str] = Field(default=None, description="Trello API token.")
    TRELLO_BOARD_LISTS: Dict[str, str] = Field(
        default_factory=dict,
        description='Board name to list id mapping, e.g. {"personal": "5f1..."}.',
    )
    DEFAULT_TRELLO_BOARD: Optional[str] = Field(default=None, description="Board used when a request names none.")

    # API Server Configuration (for uvicorn)
    api_host: str = Field(default="0.0.0.0", description="Host for the FastAPI server.")
    api_port: int = Field(default=3001, description="Port for the FastAPI server.")
    api_reload: bool = Field(default=False, description="Enable auto-reload for the FastAPI server (development).")
    api_log_level: str = Field(default="info", description="Log level for the FastAPI server.")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra='ignore'
    )

    @property
    def google_configured(self) -> bool:
        return bool(self.GOOGLE_CLIENT_ID and self.GOOGLE_CLIENT_SECRET and self.GOOGLE_REFRESH_TOKEN)

    @property
    def trello_configured(self) -> bool:
        return bool(self.TRELLO_API_KEY and self.TRELLO_TOKEN)


def get_settings() -> Settings:
    """Get application settings from the environment and .env file.

    Returns:
        Settings: A fresh settings instance.
    """
    settings = Settings()
    logger.debug(
        f"Settings loaded (environment={settings.environment}, llm_provider={settings.llm_provider}, "
        f"default_timezone={settings.default_timezone})"
    )
    return settings
